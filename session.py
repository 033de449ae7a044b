"""
Session state: who is signed in, as far as the client can tell.

The identity cookie is the single source of truth: login never trusts the
response body, it re-reads the cookie the server just set. Two states only:
    signed-out ⇄ signed-in(identity)
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Protocol
from urllib.parse import unquote

import httpx

from client import PlatformClient

logger = logging.getLogger(__name__)

NAME_COOKIE = "name"
TOKEN_COOKIE = "token"
SESSION_COOKIES = (NAME_COOKIE, TOKEN_COOKIE)


class CookieStore(Protocol):
    def get(self, name: str) -> Optional[str]: ...

    def delete(self, name: str) -> None: ...


class HttpxCookieStore:
    """Reads and clears cookies in the jar the PlatformClient sends with each request."""

    def __init__(self, cookies: httpx.Cookies) -> None:
        self.cookies = cookies

    def get(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

    def delete(self, name: str) -> None:
        self.cookies.delete(name)


class MemoryCookieStore:
    def __init__(self, values: Optional[Dict[str, str]] = None) -> None:
        self.values: Dict[str, str] = dict(values or {})

    def get(self, name: str) -> Optional[str]:
        return self.values.get(name)

    def set(self, name: str, value: str) -> None:
        self.values[name] = value

    def delete(self, name: str) -> None:
        self.values.pop(name, None)


class SessionState:
    """Tracks the signed-in identity. One instance per application session."""

    def __init__(self, client: PlatformClient, cookies: CookieStore) -> None:
        self.client = client
        self.cookies = cookies
        self.user: Optional[str] = None
        self.is_loading = True
        self._listeners: List[Callable[[Optional[str]], None]] = []

    @property
    def signed_in(self) -> bool:
        return self.user is not None

    def subscribe(self, callback: Callable[[Optional[str]], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_user(self, user: Optional[str]) -> None:
        previous = self.user
        self.user = user
        self.is_loading = False
        if user == previous:
            return
        if user is None:
            logger.info("Signed out (was %s)", previous)
        else:
            logger.info("Signed in as %s", user)
        for callback in list(self._listeners):
            callback(user)

    # Operations

    def check_auth(self) -> Optional[str]:
        """Set the identity from the name cookie, or clear it when the cookie is gone."""
        raw = self.cookies.get(NAME_COOKIE)
        self._set_user(unquote(raw) if raw else None)
        return self.user

    # window focus and explicit resync both just re-read the cookie
    refresh = check_auth
    on_focus = check_auth

    def login(self, username: str, password: str) -> Optional[str]:
        """Sign in; raises the client's ApiError (message = server body) on failure."""
        self.client.login(username, password)
        return self.check_auth()

    def logout(self) -> None:
        for name in SESSION_COOKIES:
            self.cookies.delete(name)
        self._set_user(None)
