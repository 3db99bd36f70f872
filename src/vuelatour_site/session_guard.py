# src/vuelatour_site/session_guard.py

import enum
from typing import List, Optional, Sequence

from fastapi import status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse

from .auth_utils import session_store_for
from .config import settings
from .session_data import CookieMutation, SessionUser


class RouteClass(str, enum.Enum):
    PUBLIC = "public"
    ADMIN = "admin"
    ADMIN_LOGIN = "admin_login"


class GuardAction(str, enum.Enum):
    CONTINUE = "continue"
    REDIRECT_LOGIN = "redirect_login"
    REDIRECT_DASHBOARD = "redirect_dashboard"


class GuardDecision(BaseModel):
    action: GuardAction
    location: Optional[str] = None
    cookies: List[CookieMutation] = []


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def classify_route(
        path: str,
        admin_prefix: str = settings.ADMIN_PREFIX,
        login_path: str = settings.ADMIN_LOGIN_PATH,
) -> RouteClass:
    if _under(path, login_path):
        return RouteClass.ADMIN_LOGIN
    if _under(path, admin_prefix):
        return RouteClass.ADMIN
    return RouteClass.PUBLIC


def decide(
        path: str,
        user: Optional[SessionUser],
        cookies: Sequence[CookieMutation] = (),
        admin_prefix: str = settings.ADMIN_PREFIX,
        login_path: str = settings.ADMIN_LOGIN_PATH,
        dashboard_path: str = settings.ADMIN_DASHBOARD_PATH,
) -> GuardDecision:
    """
    Pure routing decision for one request. Redirect targets are fixed internal
    paths, never derived from the request.
    """
    route = classify_route(path, admin_prefix=admin_prefix, login_path=login_path)
    if route is RouteClass.ADMIN and user is None:
        return GuardDecision(action=GuardAction.REDIRECT_LOGIN, location=login_path, cookies=list(cookies))
    if path == login_path and user is not None:
        return GuardDecision(action=GuardAction.REDIRECT_DASHBOARD, location=dashboard_path, cookies=list(cookies))
    return GuardDecision(action=GuardAction.CONTINUE, cookies=list(cookies))


def redirect_status(method: str) -> int:
    """307 keeps GET/HEAD as they are; any other method is turned into a GET with 303."""
    if method in ("GET", "HEAD"):
        return status.HTTP_307_TEMPORARY_REDIRECT
    return status.HTTP_303_SEE_OTHER


def apply_cookies(response: StarletteResponse, cookies: Sequence[CookieMutation]) -> None:
    for cookie in cookies:
        if cookie.is_delete:
            response.delete_cookie(
                cookie.name,
                path="/",
                secure=settings.AUTH_COOKIE_SECURE,
                httponly=True,
                samesite="lax",
            )
        else:
            response.set_cookie(
                cookie.name,
                cookie.value,
                max_age=cookie.max_age,
                path="/",
                httponly=True,
                secure=settings.AUTH_COOKIE_SECURE,
                samesite="lax",
            )


class SessionGuardMiddleware(BaseHTTPMiddleware):
    """
    Runs before every route: reads (and renews) the session, keeps anonymous
    visitors out of the admin area and sends signed-in staff past the login page.
    """

    async def dispatch(self, request, call_next):
        path = request.url.path
        user: Optional[SessionUser] = None
        cookie_writes: List[CookieMutation] = []

        try:
            store = session_store_for(request.app)
            try:
                user, cookie_writes = await store.get_current_user(request.cookies)
            finally:
                await store.aclose()
        except Exception as e:
            # Fail closed: the admin area stays protected when the auth backend misbehaves
            print(f"GUARD: Session lookup raised {e.__class__.__name__}: {e}. Treating request as anonymous.")
            user, cookie_writes = None, []

        request.state.user = user
        decision = decide(path, user, cookie_writes)

        if decision.action is GuardAction.CONTINUE:
            response: StarletteResponse = await call_next(request)
        else:
            print(f"GUARD: {path} -> {decision.location} ({decision.action.value})")
            response = RedirectResponse(url=decision.location, status_code=redirect_status(request.method))

        apply_cookies(response, decision.cookies)
        return response
