"""Health check endpoints."""

import platform
from datetime import datetime

import psutil
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from aquafeed_admin.api.deps import get_backend, get_cache
from aquafeed_admin.config import get_settings
from aquafeed_admin.services.backend import BackendClient
from aquafeed_admin.services.healthcheck import HealthChecker, HealthStatus
from aquafeed_admin.services.query_cache import QueryCache

router = APIRouter(tags=["health"])


def get_health_checker(
    backend: BackendClient = Depends(get_backend),
    cache: QueryCache = Depends(get_cache),
) -> HealthChecker:
    return HealthChecker(backend, cache)


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health(cache: QueryCache = Depends(get_cache)):
    """Detailed health check with system info and query cache stats."""
    settings = get_settings()

    # CPU
    cpu_percent = psutil.cpu_percent(interval=0.1)
    cpu_count = psutil.cpu_count()

    # Memory
    memory = psutil.virtual_memory()
    memory_used_gb = memory.used / (1024**3)
    memory_total_gb = memory.total / (1024**3)

    # Disk
    disk = psutil.disk_usage("/")
    disk_used_gb = disk.used / (1024**3)
    disk_total_gb = disk.total / (1024**3)

    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.app_version,
        "environment": settings.environment,
        "backend_url": settings.backend_base_url,
        "system": {
            "platform": platform.system(),
            "machine": platform.machine(),
            "python": platform.python_version(),
        },
        "cpu": {
            "percent": cpu_percent,
            "count": cpu_count,
        },
        "memory": {
            "used_gb": round(memory_used_gb, 2),
            "total_gb": round(memory_total_gb, 2),
            "percent": memory.percent,
        },
        "disk": {
            "used_gb": round(disk_used_gb, 2),
            "total_gb": round(disk_total_gb, 2),
            "percent": disk.percent,
        },
        "query_cache": cache.stats(),
    }


@router.get("/health/services")
async def services_health(checker: HealthChecker = Depends(get_health_checker)):
    """
    Health of the backend API and the query cache.
    """
    report = await checker.run_all_checks()
    return report.to_dict()


@router.get("/health/ready")
async def readiness_check(checker: HealthChecker = Depends(get_health_checker)):
    """
    Readiness check.

    Returns 200 while the backend answers at all, 503 when it cannot be reached.
    """
    backend = await checker.check_backend()

    if backend.status != HealthStatus.UNHEALTHY:
        return {"ready": True, "backend": backend.status.value}
    return JSONResponse(status_code=503, content={"ready": False, "error": backend.message})
