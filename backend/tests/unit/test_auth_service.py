"""
Unit tests for the OTP login relay and admin session checks.
"""

import pytest

from aquafeed_admin.errors import AdminRequired, BackendError, NotAuthenticated
from aquafeed_admin.services.auth import AUTH_ME_FAMILY, AuthService, extract_session_id, session_user

ADMIN_SESSION = "admin-session"
FARMER_SESSION = "farmer-session"
ADMIN_USER = {"_id": "u-admin", "email": "admin@aquafeed.ng", "name": "Ada Admin", "role": "admin"}


@pytest.fixture
def auth(backend_client, query_cache):
    return AuthService(backend_client, query_cache)


class TestExtractSessionId:
    """Tests for reading the backend session from set-cookie."""

    @pytest.mark.unit
    def test_extracts_value(self):
        header = "connect.sid=s%3AabcDEF.sig; Path=/; Expires=Wed, 21 Oct 2026 07:28:00 GMT; HttpOnly"
        assert extract_session_id(header, "connect.sid") == "s%3AabcDEF.sig"

    @pytest.mark.unit
    def test_missing_cookie(self):
        assert extract_session_id(None, "connect.sid") is None
        assert extract_session_id("other=1; Path=/", "connect.sid") is None


class TestSessionUser:
    """Tests for session_user."""

    @pytest.mark.unit
    def test_reads_user(self):
        user = session_user({"user": ADMIN_USER})
        assert user.is_admin
        assert user.initial == "A"

    @pytest.mark.unit
    def test_no_user(self):
        assert session_user({"message": "ok"}) is None
        assert session_user(None) is None


class TestOtpHandshake:
    """Tests for request_otp and verify_otp."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_request_otp(self, auth, fake_backend):
        fake_backend.add("POST", "/auth/request-otp", {"message": "OTP sent"})
        result = await auth.request_otp("admin@aquafeed.ng")
        assert result.ok
        assert fake_backend.called("POST", "/auth/request-otp")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_verify_otp_returns_session(self, auth, fake_backend):
        fake_backend.add(
            "POST", "/auth/verify-otp", {"user": ADMIN_USER},
            headers={"set-cookie": "connect.sid=new-session; Path=/; HttpOnly"},
        )
        result, session_id = await auth.verify_otp("admin@aquafeed.ng", "123456")
        assert result.ok
        assert session_id == "new-session"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_verify_otp_failure_has_no_session(self, auth, fake_backend):
        fake_backend.add("POST", "/auth/verify-otp", {"error": "Invalid OTP"}, status=400)
        result, session_id = await auth.verify_otp("admin@aquafeed.ng", "000000")
        assert result.status_code == 400
        assert session_id is None


class TestCurrentAdmin:
    """Tests for current_admin."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_admin_session(self, auth):
        user = await auth.current_admin(ADMIN_SESSION)
        assert user.email == ADMIN_USER["email"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cached_per_session(self, auth, fake_backend):
        await auth.current_admin(ADMIN_SESSION)
        await auth.current_admin(ADMIN_SESSION)
        assert len(fake_backend.called("GET", "/auth/me")) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_session(self, auth):
        with pytest.raises(NotAuthenticated):
            await auth.current_admin(None)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rejected_session(self, auth):
        with pytest.raises(NotAuthenticated):
            await auth.current_admin("expired")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_admin(self, auth):
        with pytest.raises(AdminRequired) as exc:
            await auth.current_admin(FARMER_SESSION)
        assert exc.value.message == "Access denied. Admin account required."

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_backend_outage_is_not_a_logout(self, auth, fake_backend):
        fake_backend.add("GET", "/auth/me", {"error": "down"}, status=503)
        with pytest.raises(BackendError):
            await auth.current_admin(ADMIN_SESSION)


class TestLogout:
    """Tests for logout."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_logout_forgets_cached_user(self, auth, fake_backend, query_cache):
        fake_backend.add("POST", "/auth/logout", {"message": "bye"})
        await auth.current_admin(ADMIN_SESSION)

        await auth.logout(ADMIN_SESSION)

        assert query_cache.peek((AUTH_ME_FAMILY, ADMIN_SESSION)) is None
        request = fake_backend.called("POST", "/auth/logout")[0]
        assert request.headers["cookie"] == f"connect.sid={ADMIN_SESSION}"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_logout_without_session_is_a_no_op(self, auth, fake_backend):
        await auth.logout(None)
        assert not fake_backend.called("POST", "/auth/logout")
