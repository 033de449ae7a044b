"""
MongoDB handle for the development API.

DATABASE_URL selects a real MongoDB server through pymongo. Without it the API
runs on mongomock, which keeps the same collections in process memory.
"""
import logging
from typing import Optional

import mongomock
from pymongo import MongoClient
from pymongo.database import Database

from config import load_settings

logger = logging.getLogger(__name__)


def connect(database_url: Optional[str], database_name: str) -> Database:
    if database_url:
        logger.info("Using MongoDB database %s", database_name)
        return MongoClient(database_url)[database_name]
    logger.info("DATABASE_URL not set, using in-memory database %s", database_name)
    return mongomock.MongoClient()[database_name]


_settings = load_settings()
db = connect(_settings.database_url, _settings.database_name)
