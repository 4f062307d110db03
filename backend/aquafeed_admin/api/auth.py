"""OTP login relay endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from aquafeed_admin.api.deps import get_auth_service, get_session_id
from aquafeed_admin.config import get_settings
from aquafeed_admin.errors import BackendError
from aquafeed_admin.models.auth import OTPRequest, OTPVerifyRequest
from aquafeed_admin.services.auth import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def set_session_cookie(response: Response, session_id: str):
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        session_id,
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def clear_session_cookie(response: Response):
    response.delete_cookie(get_settings().session_cookie_name)


def proxy_error(e: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Proxy error", "details": str(e)})


@router.post("/send-otp")
async def send_otp(body: OTPRequest, auth: AuthService = Depends(get_auth_service)):
    """Ask the backend to email a one-time code."""
    try:
        result = await auth.request_otp(body.email)
    except BackendError as e:
        logger.error("[Proxy send-otp Error]: %s", e)
        return proxy_error(e)
    return JSONResponse(status_code=result.status_code, content=result.data)


@router.post("/verify-otp")
async def verify_otp(body: OTPVerifyRequest, auth: AuthService = Depends(get_auth_service)):
    """Verify the code and keep the backend session in our cookie."""
    try:
        result, session_id = await auth.verify_otp(body.email, body.otp)
    except BackendError as e:
        logger.error("[Proxy verify-otp Error]: %s", e)
        return proxy_error(e)

    response = JSONResponse(status_code=result.status_code, content=result.data)
    if session_id:
        set_session_cookie(response, session_id)
    return response


@router.get("/me")
async def me(
    session_id: Optional[str] = Depends(get_session_id),
    auth: AuthService = Depends(get_auth_service),
):
    if not session_id:
        return JSONResponse(status_code=401, content={"error": "Not authenticated"})
    try:
        result = await auth.me(session_id)
    except BackendError as e:
        logger.error("[Proxy auth/me Error]: %s", e)
        return proxy_error(e)
    return JSONResponse(status_code=result.status_code, content=result.data)


@router.post("/logout")
async def logout(
    session_id: Optional[str] = Depends(get_session_id),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(session_id)
    response = JSONResponse(content={"message": "Logged out successfully"})
    clear_session_cookie(response)
    return response
