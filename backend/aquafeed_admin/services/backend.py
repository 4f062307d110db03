"""Client for the feed-formulation backend REST API."""

import logging
from dataclasses import dataclass, field
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Optional

import httpx

from aquafeed_admin.config import get_settings
from aquafeed_admin.errors import BackendError

logger = logging.getLogger(__name__)


@dataclass
class BackendResponse:
    """Raw backend answer, relayed as-is by the proxy and auth routes."""

    status_code: int
    data: Any = field(default_factory=dict)
    set_cookie: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def error_message(data: Any, default: str) -> str:
    """Pick the human-readable message out of a backend error body."""
    if isinstance(data, dict):
        for key in ("error", "message"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return default


class BackendClient:
    """Async client for the backend API, relaying the admin's session cookie."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.backend_base_url).rstrip("/")
        self.timeout = timeout or settings.backend_timeout_seconds
        self.session_cookie = settings.backend_session_cookie
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
                transport=self._transport,
                # Sessions travel only in the explicit Cookie header.
                cookies=CookieJar(policy=DefaultCookiePolicy(allowed_domains=[])),
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _headers(self, session_id: str | None) -> dict[str, str]:
        if not session_id:
            return {}
        return {"Cookie": f"{self.session_cookie}={session_id}"}

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        session_id: str | None = None,
    ) -> BackendResponse:
        """Send a request and return the backend's answer without judging its status.

        Raises BackendError only when the backend cannot be reached.
        """
        client = self._get_client()
        url = "/" + path.lstrip("/")
        logger.info("[Proxy %s] Forwarding to: %s%s", method.upper(), self.base_url, url)
        try:
            response = await client.request(
                method.upper(),
                url,
                params=params,
                json=json,
                headers=self._headers(session_id),
            )
        except httpx.HTTPError as e:
            logger.error("Backend unreachable for %s %s: %s", method.upper(), url, e)
            raise BackendError(None, f"Backend unreachable: {e}") from e

        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = {"error": response.text}
        else:
            data = {}

        return BackendResponse(
            status_code=response.status_code,
            data=data,
            set_cookie=response.headers.get("set-cookie"),
        )

    async def _call(self, method: str, path: str, **kwargs) -> Any:
        response = await self.request(method, path, **kwargs)
        if not response.ok:
            message = error_message(response.data, f"Backend returned {response.status_code}")
            if response.status_code >= 500:
                logger.error("Backend %s %s failed (%s): %s", method, path, response.status_code, message)
            else:
                logger.warning("Backend %s %s rejected (%s): %s", method, path, response.status_code, message)
            payload = response.data if isinstance(response.data, dict) else {}
            raise BackendError(response.status_code, message, payload)
        return response.data

    async def get(self, path: str, params: Any = None, session_id: str | None = None) -> Any:
        """Make GET request to the backend."""
        return await self._call("GET", path, params=params, session_id=session_id)

    async def post(
        self, path: str, json: Any = None, params: Any = None, session_id: str | None = None
    ) -> Any:
        """Make POST request to the backend."""
        return await self._call("POST", path, json=json, params=params, session_id=session_id)

    async def put(self, path: str, json: Any = None, session_id: str | None = None) -> Any:
        """Make PUT request to the backend."""
        return await self._call("PUT", path, json=json, session_id=session_id)

    async def patch(self, path: str, json: Any = None, session_id: str | None = None) -> Any:
        """Make PATCH request to the backend."""
        return await self._call("PATCH", path, json=json, session_id=session_id)

    async def delete(self, path: str, params: Any = None, session_id: str | None = None) -> Any:
        """Make DELETE request to the backend."""
        return await self._call("DELETE", path, params=params, session_id=session_id)
