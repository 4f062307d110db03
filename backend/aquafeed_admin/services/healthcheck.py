"""
Health checks for the dashboard.

Checks:
- API responsiveness
- Backend REST API reachability
- Query cache
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from aquafeed_admin.config import get_settings
from aquafeed_admin.errors import BackendError
from aquafeed_admin.services.backend import BackendClient
from aquafeed_admin.services.query_cache import QueryCache

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health check status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class CheckResult:
    """Result of a single health check."""
    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0
    details: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)


@dataclass
class HealthReport:
    """Complete health report for the dashboard."""
    status: HealthStatus
    checks: list[CheckResult]
    timestamp: datetime = field(default_factory=datetime.utcnow)
    version: str = field(default_factory=lambda: get_settings().app_version)

    @property
    def healthy_count(self) -> int:
        return sum(1 for c in self.checks if c.status == HealthStatus.HEALTHY)

    @property
    def total_count(self) -> int:
        return len(self.checks)

    def check(self, name: str) -> CheckResult | None:
        return next((c for c in self.checks if c.name == name), None)

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "version": self.version,
            "timestamp": self.timestamp.isoformat(),
            "summary": f"{self.healthy_count}/{self.total_count} checks passing",
            "checks": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": round(c.latency_ms, 2),
                    "details": c.details,
                }
                for c in self.checks
            ]
        }


class HealthChecker:
    """Runs health checks against the backend and the local cache."""

    def __init__(self, backend: BackendClient, cache: QueryCache):
        self.backend = backend
        self.cache = cache

    async def run_all_checks(self) -> HealthReport:
        """Run all health checks and return report."""
        names = ("api", "backend", "query_cache")
        checks = await asyncio.gather(
            self.check_api(),
            self.check_backend(),
            self.check_query_cache(),
            return_exceptions=True,
        )

        results = []
        for name, check in zip(names, checks):
            if isinstance(check, Exception):
                logger.error("Health check %s crashed: %s", name, check)
                results.append(CheckResult(
                    name=name,
                    status=HealthStatus.UNHEALTHY,
                    message=str(check),
                ))
            else:
                results.append(check)

        if all(c.status == HealthStatus.HEALTHY for c in results):
            overall = HealthStatus.HEALTHY
        elif any(c.name == "backend" and c.status == HealthStatus.UNHEALTHY for c in results):
            overall = HealthStatus.UNHEALTHY
        else:
            overall = HealthStatus.DEGRADED

        return HealthReport(status=overall, checks=results)

    async def check_api(self) -> CheckResult:
        """Check API is responsive."""
        return CheckResult(
            name="api",
            status=HealthStatus.HEALTHY,
            message="API is responsive",
        )

    async def check_backend(self) -> CheckResult:
        """Any HTTP answer from the backend counts as reachable."""
        start = time.time()
        try:
            response = await self.backend.request("GET", "/auth/me")
        except BackendError as e:
            return CheckResult(
                name="backend",
                status=HealthStatus.UNHEALTHY,
                message=str(e),
                latency_ms=(time.time() - start) * 1000,
                details={"url": self.backend.base_url},
            )

        latency = (time.time() - start) * 1000
        if response.status_code >= 500:
            return CheckResult(
                name="backend",
                status=HealthStatus.DEGRADED,
                message=f"Backend returned {response.status_code}",
                latency_ms=latency,
                details={"url": self.backend.base_url},
            )
        return CheckResult(
            name="backend",
            status=HealthStatus.HEALTHY,
            message="Backend reachable",
            latency_ms=latency,
            details={"url": self.backend.base_url, "status_code": response.status_code},
        )

    async def check_query_cache(self) -> CheckResult:
        """Report query cache size and hit rate."""
        stats = self.cache.stats()
        lookups = stats["hits"] + stats["misses"]
        stats["hit_rate"] = round(stats["hits"] / lookups, 3) if lookups else None
        return CheckResult(
            name="query_cache",
            status=HealthStatus.HEALTHY,
            message=f"{stats['entries']} cached queries",
            details=stats,
        )
