from __future__ import annotations

import json
import os
import time
from typing import Any, Callable, Dict, List, Optional

# Settings are read when the package is imported, so the environment must be ready first.
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SITE_URL", "https://www.vuelatour.com")
os.environ.setdefault("AUTH_COOKIE_SECURE", "false")

import httpx
import pytest
from jose import jwt

from vuelatour_site.auth_utils import SessionStore
from vuelatour_site.config import settings
from vuelatour_site.content_store import ContentStore

REST_BASE = "https://test-project.supabase.co/rest/v1"
AUTH_BASE = "https://test-project.supabase.co/auth/v1"


def _encoded(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def _matches(row: Dict[str, Any], column: str, expression: str) -> bool:
    value = row.get(column)
    if expression == "is.null":
        return value is None
    if expression == "not.is.null":
        return value is not None
    if expression.startswith("eq."):
        return value is not None and _encoded(value) == expression[3:]
    if expression.startswith("neq."):
        return value is None or _encoded(value) != expression[4:]
    raise AssertionError(f"Unexpected filter {column}={expression}")


def rest_handler(tables: Dict[str, List[Dict[str, Any]]], calls: Optional[list] = None) -> Callable:
    """A tiny in-memory stand-in for the REST endpoint, honouring the filters the store sends."""

    def handler(request: httpx.Request) -> httpx.Response:
        table = request.url.path.rsplit("/", 1)[-1]
        if calls is not None:
            calls.append((table, list(request.url.params.multi_items())))
        rows = list(tables.get(table, []))
        order = None
        limit = None
        for column, expression in request.url.params.multi_items():
            if column == "select":
                continue
            if column == "order":
                order = expression
                continue
            if column == "limit":
                limit = int(expression)
                continue
            rows = [row for row in rows if _matches(row, column, expression)]
        if order:
            column, direction = order.rsplit(".", 1)
            rows.sort(key=lambda row: row.get(column) or 0, reverse=direction == "desc")
        if limit is not None:
            rows = rows[:limit]
        return httpx.Response(200, json=rows)

    return handler


def make_content_store(tables: Dict[str, List[Dict[str, Any]]], calls: Optional[list] = None) -> ContentStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(rest_handler(tables, calls)))
    return ContentStore(base_url=REST_BASE, api_key="test-anon-key", client=client)


def failing_content_store() -> ContentStore:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("backend unreachable", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ContentStore(base_url=REST_BASE, api_key="test-anon-key", client=client)


def make_token(sub: str = "user-1", expires_in: int = 3600) -> str:
    return jwt.encode({"sub": sub, "exp": int(time.time()) + expires_in}, "test-secret", algorithm="HS256")


class FakeAuthBackend:
    """Records calls and answers like the hosted auth endpoint."""

    def __init__(self, users: Optional[Dict[str, Dict[str, Any]]] = None, password: str = "correct-horse"):
        self.users = users or {}
        self.password = password
        self.calls: List[str] = []
        self.valid_refresh_tokens: Dict[str, str] = {}
        self.fail_with: Optional[Exception] = None
        self.issued = 0

    def issue(self, user_id: str, expires_in: int = 3600) -> Dict[str, Any]:
        access = make_token(user_id, expires_in)
        self.issued += 1
        refresh = f"refresh-{user_id}-{self.issued}"
        self.valid_refresh_tokens[refresh] = user_id
        self.users.setdefault(user_id, {"id": user_id, "email": f"{user_id}@vuelatour.com", "role": "authenticated"})
        self.users[user_id]["token"] = access
        return {"access_token": access, "refresh_token": refresh, "expires_in": expires_in}

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(f"{request.method} {path}")
        if self.fail_with is not None:
            raise self.fail_with
        if path.endswith("/token"):
            body = json.loads(request.content or b"{}")
            grant = request.url.params.get("grant_type")
            if grant == "password":
                if body.get("password") != self.password:
                    return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})
                return httpx.Response(200, json=self.issue(body["email"].split("@")[0]))
            if grant == "refresh_token":
                user_id = self.valid_refresh_tokens.pop(body.get("refresh_token"), None)
                if user_id is None:
                    return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid Refresh Token"})
                return httpx.Response(200, json=self.issue(user_id))
        if path.endswith("/user"):
            token = request.headers.get("Authorization", "").removeprefix("Bearer ")
            for user in self.users.values():
                if user.get("token") == token:
                    return httpx.Response(200, json={k: v for k, v in user.items() if k != "token"})
            return httpx.Response(401, json={"msg": "invalid JWT"})
        if path.endswith("/logout"):
            return httpx.Response(204)
        return httpx.Response(404)

    def store(self) -> SessionStore:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return SessionStore(
            auth_url=AUTH_BASE,
            api_key="test-anon-key",
            client=client,
            access_cookie=settings.ACCESS_COOKIE_NAME,
            refresh_cookie=settings.REFRESH_COOKIE_NAME,
        )


def sample_tables() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "destinations": [
            {"id": 1, "slug": "cozumel", "name_es": "Cozumel", "name_en": "Cozumel", "description_es": "Isla del Caribe",
             "description_en": None, "flight_time": "25 min", "price_from": 1500, "is_active": True,
             "display_order": 1, "updated_at": "2025-03-15T10:00:00+00:00"},
            {"id": 2, "slug": "holbox", "name_es": "Holbox", "name_en": "Holbox", "is_active": True,
             "display_order": 2, "updated_at": None},
            {"id": 3, "slug": "merida", "name_es": "Mérida", "name_en": "Merida", "is_active": True,
             "display_order": 3},
            {"id": 4, "slug": "retired", "name_es": "Retirado", "name_en": "Retired", "is_active": False,
             "display_order": 4},
        ],
        "air_tours": [
            {"id": 10, "slug": "tulum", "name_es": "Tulum desde el aire", "name_en": "Tulum from above",
             "duration": "45 min", "price_from": 450, "is_active": True, "display_order": 1,
             "highlights_es": ["Ruinas de Tulum", "Playa Paraíso", " "], "highlights_en": ["Tulum ruins", "Paradise Beach"]},
            {"id": 11, "slug": "chichen-itza", "name_es": "Chichén Itzá", "name_en": "Chichen Itza",
             "is_active": True, "display_order": 2},
            {"id": 12, "slug": "isla-mujeres", "name_es": "Isla Mujeres", "name_en": "Isla Mujeres",
             "is_active": True, "display_order": 3},
        ],
        "site_content": [
            {"key": "hero_title", "value_es": "Vuela el Caribe", "value_en": "Fly the Caribbean"},
            {"key": "hero_subtitle", "value_es": "Vuelos privados", "value_en": ""},
        ],
        "site_images": [
            {"url": "/images/hero-a.jpg", "category": "hero", "is_primary": False, "alt_es": "A", "alt_en": "A"},
            {"url": "https://cdn.example.com/hero-b.jpg", "category": "hero", "is_primary": True,
             "alt_es": "Avioneta", "alt_en": "Plane"},
            {"url": "/images/fleet.jpg", "category": "fleet", "is_primary": None},
        ],
        "legal_pages": [
            {"slug": "terms", "title_es": None, "title_en": "Terms", "content_es": "", "content_en": "Be nice.",
             "updated_at": "2025-03-15T00:00:00+00:00"},
        ],
        "contact_requests": [
            {"destination": "Holbox", "service_type": "charter"},
            {"destination": "holbox", "service_type": "charter"},
            {"destination": "Cozumel", "service_type": "charter"},
            {"destination": "", "service_type": "tour"},
        ],
        "site_settings": [
            {"key": "site_currency", "value": "USD"},
        ],
    }


@pytest.fixture
def tables() -> Dict[str, List[Dict[str, Any]]]:
    return sample_tables()


@pytest.fixture
def auth_backend() -> FakeAuthBackend:
    return FakeAuthBackend()
