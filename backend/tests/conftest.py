"""
Pytest configuration and shared fixtures.

Fixtures defined here are available to all tests.
"""

import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional, Union

import httpx
import pytest

# Add backend to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment
os.environ["TESTING"] = "true"

BACKEND_URL = "http://backend.test/api/v1"
ADMIN_SESSION = "admin-session"
FARMER_SESSION = "farmer-session"

ADMIN_USER = {"_id": "u-admin", "email": "admin@aquafeed.ng", "name": "Ada Admin", "role": "admin"}
FARMER_USER = {"_id": "u-farmer", "email": "farmer@aquafeed.ng", "name": "Femi Farmer", "role": "farmer"}


# =============================================================================
# Fake Backend
# =============================================================================


Handler = Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """Canned answers for the backend REST API, keyed by method and path.

    Paths are given without the ``/api/v1`` prefix. Every request is recorded
    in ``calls`` so tests can assert what was forwarded.
    """

    def __init__(self):
        self.routes: dict[tuple[str, str], Union[Handler, tuple[int, Any, dict]]] = {}
        self.calls: list[httpx.Request] = []

    def add(self, method: str, path: str, json: Any = None, status: int = 200, headers: Optional[dict] = None):
        self.routes[(method.upper(), path)] = (status, {} if json is None else json, headers or {})

    def add_handler(self, method: str, path: str, handler: Handler):
        self.routes[(method.upper(), path)] = handler

    @staticmethod
    def path_of(request: httpx.Request) -> str:
        path = request.url.path
        return path[len("/api/v1"):] if path.startswith("/api/v1") else path

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, self.path_of(request)))
        if route is None:
            return httpx.Response(404, json={"error": f"No route for {request.method} {self.path_of(request)}"})
        if callable(route):
            return route(request)
        status, body, headers = route
        return httpx.Response(status, json=body, headers=headers)

    def called(self, method: str, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.method == method.upper() and self.path_of(c) == path]


def _session_of(request: httpx.Request) -> Optional[str]:
    cookie = request.headers.get("cookie", "")
    for part in cookie.split(";"):
        name, _, value = part.strip().partition("=")
        if name == "connect.sid":
            return value
    return None


def auth_me(request: httpx.Request) -> httpx.Response:
    """``/auth/me`` that knows the admin and farmer sessions."""
    session = _session_of(request)
    if session == ADMIN_SESSION:
        return httpx.Response(200, json={"user": ADMIN_USER})
    if session == FARMER_SESSION:
        return httpx.Response(200, json={"user": FARMER_USER})
    return httpx.Response(401, json={"error": "Not authenticated"})


@pytest.fixture
def fake_backend():
    """Fake backend that already recognises the test sessions."""
    fake = FakeBackend()
    fake.add_handler("GET", "/auth/me", auth_me)
    return fake


@pytest.fixture
def backend_client(fake_backend):
    """BackendClient wired to the fake backend."""
    from aquafeed_admin.services.backend import BackendClient
    return BackendClient(base_url=BACKEND_URL, transport=httpx.MockTransport(fake_backend.handler))


@pytest.fixture
def query_cache():
    """Fresh query cache per test."""
    from aquafeed_admin.services.query_cache import QueryCache
    return QueryCache(stale_time=45, gc_time=300, retry=1)


# =============================================================================
# App Fixtures
# =============================================================================


@pytest.fixture
def app(backend_client, query_cache):
    """FastAPI test application talking to the fake backend."""
    from aquafeed_admin.api.deps import get_backend, get_cache
    from aquafeed_admin.main import app

    app.dependency_overrides[get_backend] = lambda: backend_client
    app.dependency_overrides[get_cache] = lambda: query_cache
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Sync test client for page and API tests."""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def admin_client(client):
    """Test client holding an admin session cookie."""
    from aquafeed_admin.config import get_settings
    client.cookies.set(get_settings().session_cookie_name, ADMIN_SESSION)
    return client


@pytest.fixture
def farmer_client(client):
    """Test client holding a non-admin session cookie."""
    from aquafeed_admin.config import get_settings
    client.cookies.set(get_settings().session_cookie_name, FARMER_SESSION)
    return client


@pytest.fixture
async def async_client(app):
    """Async test client for API tests."""
    from httpx import AsyncClient, ASGITransport
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_ingredient():
    """Sample ingredient document."""
    return {
        "_id": "ing-1",
        "name": "Fish Meal 72%",
        "category": "protein",
        "defaultPrice": 1850,
        "bagWeight": 25,
        "isActive": True,
        "isAutoCalculated": False,
        "nutrients": {"protein": 72, "fat": 9, "fiber": 1, "ash": 14, "lysine": 5.1, "methionine": 1.9},
        "constraints": {"max_inclusion": 30},
        "tags": ["animal", "premium"],
    }


@pytest.fixture
def ingredient_list(sample_ingredient):
    """``GET /admin/ingredients`` body with one page of results."""
    second = dict(sample_ingredient, _id="ing-2", name="Soybean Meal", defaultPrice=620, isActive=False)
    return {
        "ingredients": [sample_ingredient, second],
        "filteredTotal": 2,
        "summary": {
            "total": 2,
            "active": 1,
            "inactive": 1,
            "byCategory": {"protein": 2},
            "byCategoryActive": {"protein": 1},
        },
        "meta": {"page": 1, "limit": 10, "total": 2, "pages": 1},
    }


@pytest.fixture
def ingredient_categories():
    """``GET /ingredients/categories?type=ingredient`` body."""
    return {
        "categories": [
            {"_id": "cat-1", "name": "protein", "displayName": "Protein Sources", "type": "ingredient"},
            {"_id": "cat-2", "name": "energy", "displayName": "Energy Sources", "type": "ingredient"},
        ]
    }


@pytest.fixture
def template_list():
    """``GET /admin/templates`` body (unpaginated)."""
    return {
        "templates": [
            {
                "_id": f"tpl-{i}",
                "name": f"Catfish Grower {i}" if i % 2 else f"Broiler Starter {i}",
                "feedCategory": "Catfish" if i % 2 else "Poultry",
                "stage": "Grower",
                "isActive": i != 3,
                "items": [{"ingredientId": "ing-1", "ratio": 60}, {"ingredientId": "ing-2", "ratio": 40}],
            }
            for i in range(1, 13)
        ]
    }


@pytest.fixture
def stats_body():
    """``GET /admin/stats`` body."""
    return {"users": 42, "activeFarms": 17, "platformRevenue": 125000, "ingredients": 64, "formulations": 310}
