"""
Common dependencies for API endpoints and pages.
"""

from typing import Optional

from fastapi import Depends, Request

from aquafeed_admin.config import get_settings
from aquafeed_admin.models.auth import SessionUser
from aquafeed_admin.services.auth import AuthService
from aquafeed_admin.services.backend import BackendClient
from aquafeed_admin.services.dashboard import DashboardService
from aquafeed_admin.services.query_cache import QueryCache
from aquafeed_admin.services.resources import ResourceService

_backend: Optional[BackendClient] = None
_cache: Optional[QueryCache] = None


def get_backend() -> BackendClient:
    """Get the shared backend client."""
    global _backend
    if _backend is None:
        _backend = BackendClient()
    return _backend


def get_cache() -> QueryCache:
    """Get the shared query cache."""
    global _cache
    if _cache is None:
        _cache = QueryCache()
    return _cache


async def close_backend():
    global _backend
    if _backend is not None:
        await _backend.close()
        _backend = None


def get_session_id(request: Request) -> Optional[str]:
    """The relayed backend session id, from our own cookie."""
    return request.cookies.get(get_settings().session_cookie_name) or None


def get_auth_service(
    backend: BackendClient = Depends(get_backend),
    cache: QueryCache = Depends(get_cache),
) -> AuthService:
    return AuthService(backend, cache)


async def require_admin(
    session_id: Optional[str] = Depends(get_session_id),
    auth: AuthService = Depends(get_auth_service),
) -> SessionUser:
    """Current admin user; raises NotAuthenticated or AdminRequired otherwise."""
    return await auth.current_admin(session_id)


def get_resource_service(
    backend: BackendClient = Depends(get_backend),
    cache: QueryCache = Depends(get_cache),
    session_id: Optional[str] = Depends(get_session_id),
) -> ResourceService:
    return ResourceService(backend, cache, session_id)


def get_dashboard_service(
    backend: BackendClient = Depends(get_backend),
    cache: QueryCache = Depends(get_cache),
    session_id: Optional[str] = Depends(get_session_id),
) -> DashboardService:
    return DashboardService(backend, cache, session_id)
