"""Generic relay of JSON calls to the backend API with the admin's session."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from aquafeed_admin.api.auth import proxy_error
from aquafeed_admin.api.deps import get_backend, get_session_id
from aquafeed_admin.errors import BackendError
from aquafeed_admin.services.backend import BackendClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/proxy", tags=["proxy"])

BODY_METHODS = {"POST", "PUT", "PATCH"}


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def proxy(
    path: str,
    request: Request,
    backend: BackendClient = Depends(get_backend),
    session_id: Optional[str] = Depends(get_session_id),
):
    """Forward ``/api/proxy/<path>?<query>`` to ``<backend>/<path>?<query>``."""
    method = request.method
    try:
        body = await request.json() if method in BODY_METHODS and await request.body() else None
        result = await backend.request(
            method,
            path,
            params=list(request.query_params.multi_items()) or None,
            json=body,
            session_id=session_id,
        )
    except (BackendError, ValueError) as e:
        logger.error("[Proxy %s Error]: %s", method, e)
        return proxy_error(e)
    return JSONResponse(status_code=result.status_code, content=result.data)
