"""
OTP login relay.

The backend issues its own session cookie (``connect.sid``) on a successful
OTP verification. We keep that value in a cookie of our own and hand it back
to the backend on every call.
"""

import logging
import re
from typing import Optional

from aquafeed_admin.config import get_settings
from aquafeed_admin.errors import AdminRequired, BackendError, NotAuthenticated
from aquafeed_admin.models.auth import SessionUser
from aquafeed_admin.services.backend import BackendClient, BackendResponse
from aquafeed_admin.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

AUTH_ME_FAMILY = "auth-me"


def extract_session_id(set_cookie: Optional[str], cookie_name: str) -> Optional[str]:
    """Pull the backend session id out of a ``set-cookie`` header."""
    if not set_cookie:
        return None
    match = re.search(rf"{re.escape(cookie_name)}=([^;,\s]+)", set_cookie)
    return match.group(1) if match else None


def session_user(data) -> Optional[SessionUser]:
    """The ``user`` object of an auth response, if any."""
    if isinstance(data, dict) and isinstance(data.get("user"), dict):
        return SessionUser.model_validate(data["user"])
    return None


class AuthService:
    """Relays the OTP handshake and checks admin sessions."""

    def __init__(self, backend: BackendClient, cache: QueryCache):
        self.backend = backend
        self.cache = cache
        self.settings = get_settings()

    async def request_otp(self, email: str) -> BackendResponse:
        return await self.backend.request("POST", "/auth/request-otp", json={"email": email})

    async def verify_otp(self, email: str, otp: str) -> tuple[BackendResponse, Optional[str]]:
        """Verify the code; returns the backend answer and the relayed session id."""
        response = await self.backend.request(
            "POST", "/auth/verify-otp", json={"email": email, "otp": otp}
        )
        session_id = extract_session_id(response.set_cookie, self.settings.backend_session_cookie)
        if response.ok and session_id is None:
            logger.warning("OTP verified for %s but backend sent no session cookie", email)
        return response, session_id

    async def me(self, session_id: str) -> BackendResponse:
        return await self.backend.request("GET", "/auth/me", session_id=session_id)

    async def logout(self, session_id: Optional[str]):
        """End the backend session (if there is one) and forget its cached user."""
        if session_id:
            self.cache.remove((AUTH_ME_FAMILY, session_id))
            try:
                await self.backend.request("POST", "/auth/logout", session_id=session_id)
            except BackendError as e:
                logger.warning("Backend logout failed, clearing local session anyway: %s", e)

    async def current_admin(self, session_id: Optional[str]) -> SessionUser:
        """Resolve the session to an admin user.

        Raises NotAuthenticated for missing or rejected sessions and
        AdminRequired for non-admin users.
        """
        if not session_id:
            raise NotAuthenticated()

        async def fetch():
            return await self.backend.get("/auth/me", session_id=session_id)

        try:
            result = await self.cache.fetch((AUTH_ME_FAMILY, session_id), fetch)
        except BackendError as e:
            if e.status_code in (401, 403):
                raise NotAuthenticated() from e
            raise

        if result.error:
            # Never serve a cached user for a session the backend now refuses.
            self.cache.remove((AUTH_ME_FAMILY, session_id))
            raise NotAuthenticated(result.error)

        user = session_user(result.data)
        if user is None:
            raise NotAuthenticated()
        if not user.is_admin:
            raise AdminRequired()
        return user
