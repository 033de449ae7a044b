"""
AppContext. Everything one loaded application instance shares.

Built once and handed to every page controller, so the caches, the session and
the navigation slot live exactly as long as this object does.
"""
from dataclasses import dataclass, field
from typing import Optional

from cache import ProjectCache, StudentCache
from client import PlatformClient
from config import Settings, load_settings
from navigation import NavigationContext
from session import CookieStore, HttpxCookieStore, SessionState


@dataclass
class AppContext:
    client: PlatformClient
    session: SessionState
    students: StudentCache = field(default_factory=StudentCache)
    projects: ProjectCache = field(default_factory=ProjectCache)
    navigation: NavigationContext = field(default_factory=NavigationContext)

    @classmethod
    def create(cls, client: PlatformClient, cookies: Optional[CookieStore] = None) -> "AppContext":
        if cookies is None:
            cookies = HttpxCookieStore(client.http.cookies)
        session = SessionState(client, cookies)
        session.check_auth()
        return cls(client=client, session=session)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AppContext":
        settings = settings or load_settings()
        return cls.create(PlatformClient.connect(settings.api_url, settings.timeout))

    def close(self) -> None:
        self.client.close()
