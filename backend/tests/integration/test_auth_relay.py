"""
Integration tests for the OTP login relay endpoints.
"""

import json

import pytest

SESSION_COOKIE = "backend_session"


class TestSendOtp:
    """Tests for /api/auth/send-otp."""

    @pytest.mark.integration
    def test_forwards_backend_answer(self, client, fake_backend):
        fake_backend.add("POST", "/auth/request-otp", {"message": "OTP sent to your email"})

        response = client.post("/api/auth/send-otp", json={"email": "admin@aquafeed.ng"})

        assert response.status_code == 200
        assert response.json() == {"message": "OTP sent to your email"}
        sent = json.loads(fake_backend.called("POST", "/auth/request-otp")[0].content)
        assert sent == {"email": "admin@aquafeed.ng"}

    @pytest.mark.integration
    def test_forwards_backend_error_status(self, client, fake_backend):
        fake_backend.add("POST", "/auth/request-otp", {"error": "Too many requests"}, status=429)
        response = client.post("/api/auth/send-otp", json={"email": "admin@aquafeed.ng"})
        assert response.status_code == 429
        assert response.json()["error"] == "Too many requests"

    @pytest.mark.integration
    def test_invalid_body(self, client):
        response = client.post("/api/auth/send-otp", json={})
        assert response.status_code == 422


class TestVerifyOtp:
    """Tests for /api/auth/verify-otp."""

    @pytest.mark.integration
    def test_sets_session_cookie(self, client, fake_backend):
        fake_backend.add(
            "POST", "/auth/verify-otp", {"user": {"email": "admin@aquafeed.ng", "role": "admin"}},
            headers={"set-cookie": "connect.sid=s%3Anew; Path=/; HttpOnly"},
        )

        response = client.post("/api/auth/verify-otp", json={"email": "admin@aquafeed.ng", "otp": "123456"})

        assert response.status_code == 200
        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"{SESSION_COOKIE}=")
        assert "s%3Anew" in cookie
        assert "HttpOnly" in cookie
        assert "Max-Age=2592000" in cookie

    @pytest.mark.integration
    def test_wrong_code(self, client, fake_backend):
        fake_backend.add("POST", "/auth/verify-otp", {"error": "Invalid OTP"}, status=400)

        response = client.post("/api/auth/verify-otp", json={"email": "admin@aquafeed.ng", "otp": "000000"})

        assert response.status_code == 400
        assert "set-cookie" not in response.headers


class TestMeAndLogout:
    """Tests for /api/auth/me and /api/auth/logout."""

    @pytest.mark.integration
    def test_me_without_cookie(self, client, fake_backend):
        response = client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}
        assert not fake_backend.calls

    @pytest.mark.integration
    def test_me_relays_session(self, admin_client):
        response = admin_client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

    @pytest.mark.integration
    def test_logout(self, admin_client, fake_backend):
        fake_backend.add("POST", "/auth/logout", {"message": "bye"})

        response = admin_client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json() == {"message": "Logged out successfully"}
        assert fake_backend.called("POST", "/auth/logout")
        assert f'{SESSION_COOKIE}=""' in response.headers["set-cookie"]

    @pytest.mark.integration
    def test_backend_unreachable(self, client, fake_backend):
        import httpx

        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        fake_backend.add_handler("POST", "/auth/request-otp", refuse)

        response = client.post("/api/auth/send-otp", json={"email": "admin@aquafeed.ng"})

        assert response.status_code == 500
        assert response.json()["error"] == "Proxy error"
