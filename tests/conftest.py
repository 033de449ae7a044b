import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main  # noqa: E402
from client import PlatformClient  # noqa: E402
from context import AppContext  # noqa: E402
from database import db  # noqa: E402


def reset_database():
    for name in db.list_collection_names():
        db.drop_collection(name)


@pytest.fixture
def api():
    """Development API with a freshly seeded in-memory store."""
    reset_database()
    main.seed_data()
    return TestClient(main.app)


@pytest.fixture
def client(api):
    return PlatformClient(api)


@pytest.fixture
def ctx(client):
    return AppContext.create(client)


@pytest.fixture
def signed_in(ctx):
    ctx.session.login("ada", "analytical")
    return ctx


@pytest.fixture
def offline_client():
    """A client whose every request fails before reaching a server."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.Client(base_url="http://codeabode.test", transport=httpx.MockTransport(handler))
    return PlatformClient(http)
