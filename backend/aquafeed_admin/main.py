"""
aquafeed-admin: server-rendered admin dashboard for the AquaFeed platform.

Run with: uvicorn aquafeed_admin.main:app --reload

Architecture:
- Renders every admin page server-side from the backend REST API
- Relays the backend's OTP session through an httpOnly cookie
- Caches backend reads in-process (stale time, de-duplication, retry)
- Sweeps idle cache entries on a background schedule
"""

import logging
from contextlib import asynccontextmanager
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse

from aquafeed_admin.api import auth, health, pages, proxy
from aquafeed_admin.api.auth import clear_session_cookie
from aquafeed_admin.api.deps import close_backend, get_backend, get_cache
from aquafeed_admin.api.views import templates
from aquafeed_admin.config import get_settings
from aquafeed_admin.errors import AdminRequired, BackendError, NotAuthenticated
from aquafeed_admin.jobs.scheduler import shutdown_scheduler, start_scheduler

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting aquafeed-admin against %s", settings.backend_base_url)

    app.state.backend = get_backend()
    app.state.query_cache = get_cache()

    start_scheduler(app.state.query_cache)
    logger.info("Scheduler started")

    yield

    # Shutdown
    logger.info("Shutting down aquafeed-admin...")
    shutdown_scheduler()
    await close_backend()


app = FastAPI(
    title="aquafeed-admin",
    description="Admin dashboard for the AquaFeed feed-formulation platform",
    version=settings.app_version,
    lifespan=lifespan,
)


def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/")


@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    if _wants_json(request):
        return JSONResponse(status_code=401, content={"error": "Not authenticated"})
    response = RedirectResponse("/login", status_code=303)
    clear_session_cookie(response)
    return response


@app.exception_handler(AdminRequired)
async def admin_required_handler(request: Request, exc: AdminRequired):
    if _wants_json(request):
        return JSONResponse(status_code=403, content={"error": exc.message})
    response = RedirectResponse("/login?" + urlencode({"error": exc.message}), status_code=303)
    clear_session_cookie(response)
    return response


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    status_code = exc.status_code if exc.is_client_error else 502
    logger.error("Unhandled backend error on %s: %s", request.url.path, exc)
    if _wants_json(request):
        return JSONResponse(status_code=status_code, content={"error": exc.message})
    return templates.TemplateResponse(
        request, "error.html", {"message": exc.message, "status_code": status_code}, status_code=status_code
    )


# Include routers
app.include_router(health.router)
app.include_router(auth.router)  # /api/auth
app.include_router(proxy.router)  # /api/proxy
app.include_router(pages.router)  # HTML pages, last: owns /{resource}


def run():
    """Console entry point: serve the dashboard with uvicorn."""
    import uvicorn

    uvicorn.run(
        "aquafeed_admin.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    run()
