"""
Client for the auth/session collaborator

Only used to read the signed-in user and stored agent settings so they can
seed the connection options. The collaborator keeps its session in a
cookie, so one aiohttp session (and cookie jar) is reused for all calls.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp

from config import get_auth_config
from core.logging_config import get_logger
from events import event_bus, EventTypes
from tokens.request_builder import ConnectionOptions


class AuthError(Exception):
    """Raised when login or registration is rejected"""
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


@dataclass
class UserSession:
    email: str
    settings: Dict[str, Any] = field(default_factory=dict)


def options_from_settings(settings: Optional[Dict[str, Any]],
                          display_name: Optional[str] = None) -> ConnectionOptions:
    """Seed connection options from stored user settings"""
    settings = settings or {}

    def pick(key: str) -> Optional[str]:
        value = settings.get(key)
        return value if isinstance(value, str) and value else None

    return ConnectionOptions(
        display_name=display_name or pick("name") or pick("user_name"),
        voice=pick("voice"),
        personality=pick("personality"),
        language=pick("language"),
    )


class AuthClient:
    """Talks to the session, login, register and logout routes"""

    def __init__(self, base_url: Optional[str] = None, routes: Optional[Dict[str, str]] = None):
        auth_config = get_auth_config()
        self.logger = get_logger(__name__)
        self.base_url = (base_url or auth_config["base_url"]).rstrip("/")
        self.routes = routes or auth_config["routes"]
        self._session: Optional[aiohttp.ClientSession] = None

        self.user: Optional[UserSession] = None

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def _url(self, route: str) -> str:
        return f"{self.base_url}{self.routes[route]}"

    def _http(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            # Unsafe jar so cookies from localhost/IP hosts are kept
            self._session = aiohttp.ClientSession(cookie_jar=aiohttp.CookieJar(unsafe=True))
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def get_session(self) -> Optional[UserSession]:
        """Return the signed-in user, or None when not authenticated"""
        async with self._http().get(self._url("session")) as response:
            if response.status == 401:
                self.user = None
                return None
            if response.status >= 400:
                raise AuthError(f"Session check failed with HTTP {response.status}", response.status)
            try:
                data = await response.json(content_type=None)
            except ValueError:
                data = None

        user = data.get("user") if isinstance(data, dict) else None
        email = user.get("email") if isinstance(user, dict) else None
        if not email:
            self.user = None
            raise AuthError("Session response did not include a user", response.status)

        self.user = UserSession(email=email, settings=data.get("settings") or {})
        return self.user

    async def login(self, email: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Sign in and return the user's stored settings, if any

        Raises:
            AuthError: credentials rejected
        """
        data = await self._post("login", {"email": email, "password": password}, "Login failed")
        settings = data.get("settings") or None
        user = data.get("user") if isinstance(data.get("user"), dict) else {}
        self.user = UserSession(email=user.get("email") or email, settings=settings or {})

        self.logger.info("Signed in", extra={"extra_data": {"email": self.user.email, "has_settings": bool(settings)}})
        event_bus.emit(EventTypes.AUTH_LOGIN, {"email": self.user.email}, source="auth_client")
        return settings

    async def register(self, email: str, password: str, name: str) -> Optional[Dict[str, Any]]:
        """Create an account, then sign in with it"""
        await self._post("register", {"email": email, "password": password, "name": name},
                         "Registration failed")
        return await self.login(email, password)

    async def logout(self) -> None:
        async with self._http().post(self._url("logout")) as response:
            self.logger.debug(f"Logout returned HTTP {response.status}")
        self.user = None
        event_bus.emit(EventTypes.AUTH_LOGOUT, {}, source="auth_client")

    async def _post(self, route: str, body: Dict[str, Any], failure_message: str) -> Dict[str, Any]:
        async with self._http().post(self._url(route), json=body) as response:
            try:
                data = await response.json(content_type=None)
            except ValueError:
                data = None
            if not isinstance(data, dict):
                data = {}

            if response.status >= 400:
                raise AuthError(data.get("error") or failure_message, response.status)

        return data

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
