# src/vuelatour_site/auth_utils.py
import time
import typing
from typing import List, Mapping, Optional, Tuple

import httpx
from fastapi import Request
from jose import JWTError, jwt  # python-jose

from .config import settings
from .errors import AuthFailure, StoreUnavailable
from .session_data import CookieMutation, SessionTokens, SessionUser

INVALID_CREDENTIALS = "invalid_credentials"
AUTH_BACKEND_ERROR = "auth_backend_error"


def token_expiry(access_token: str) -> Optional[int]:
    """
    Reads the `exp` claim without verifying the signature.
    The auth backend verifies the token on /user; this is only used to decide when to refresh.
    """
    try:
        claims = jwt.get_unverified_claims(access_token)
    except JWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, (int, float)) else None


def needs_refresh(access_token: Optional[str], margin_seconds: int, now: Optional[float] = None) -> bool:
    if not access_token:
        return True
    exp = token_expiry(access_token)
    if exp is None:
        # Unreadable token: let /user decide, a refresh would not help
        return False
    now = time.time() if now is None else now
    return exp - now <= margin_seconds


class SessionStore:
    """
    Client for the hosted auth endpoint. Sessions live in two cookies
    (access and refresh token); this class reads them, renews them when they
    are about to expire and reports which cookie writes the response must carry.
    """

    def __init__(
            self,
            auth_url: str,
            api_key: str,
            client: Optional[httpx.AsyncClient] = None,
            timeout: float = 10.0,
            access_cookie: str = "sb-access-token",
            refresh_cookie: str = "sb-refresh-token",
            cookie_max_age: int = 60 * 60 * 24 * 400,
            refresh_margin_seconds: int = 60,
    ):
        self.auth_url = auth_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.headers = {"apikey": api_key, "Content-Type": "application/json"}
        self.access_cookie = access_cookie
        self.refresh_cookie = refresh_cookie
        self.cookie_max_age = cookie_max_age
        self.refresh_margin_seconds = refresh_margin_seconds

    async def __aenter__(self) -> "SessionStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # --- Cookie helpers ---

    def cookies_for(self, tokens: SessionTokens) -> List[CookieMutation]:
        return [
            CookieMutation(name=self.access_cookie, value=tokens.access_token, max_age=self.cookie_max_age),
            CookieMutation(name=self.refresh_cookie, value=tokens.refresh_token, max_age=self.cookie_max_age),
        ]

    def clear_cookies(self) -> List[CookieMutation]:
        return [CookieMutation(name=self.access_cookie), CookieMutation(name=self.refresh_cookie)]

    # --- Backend calls ---

    async def _post_token(self, grant_type: str, payload: dict) -> SessionTokens:
        url = f"{self.auth_url}/token"
        try:
            response = await self.client.post(
                url, params={"grant_type": grant_type}, json=payload, headers=self.headers
            )
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"token ({grant_type}): {e.__class__.__name__}: {e}")

        if response.status_code != 200:
            raise StoreUnavailable(
                f"token ({grant_type}) rejected: {_error_message(response)}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
            expires_at = body.get("expires_at")
            if expires_at is None and body.get("expires_in") is not None:
                expires_at = int(time.time()) + int(body["expires_in"])
            return SessionTokens(
                access_token=body["access_token"],
                refresh_token=body["refresh_token"],
                expires_at=expires_at,
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StoreUnavailable(f"token ({grant_type}): unexpected response body ({e})")

    async def _fetch_user(self, access_token: str) -> SessionUser:
        try:
            response = await self.client.get(
                f"{self.auth_url}/user",
                headers={**self.headers, "Authorization": f"Bearer {access_token}"},
            )
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"user: {e.__class__.__name__}: {e}")
        if response.status_code != 200:
            raise StoreUnavailable(f"user rejected: {_error_message(response)}", status_code=response.status_code)
        try:
            body = response.json()
        except ValueError as e:
            raise StoreUnavailable(f"user: response body is not JSON ({e})")
        if not isinstance(body, dict) or body.get("id") is None:
            raise StoreUnavailable(f"user: unexpected response body ({type(body).__name__})")
        return SessionUser(id=str(body["id"]), email=body.get("email"), role=body.get("role"))

    async def get_current_user(
            self, cookies: Mapping[str, str]
    ) -> Tuple[Optional[SessionUser], List[CookieMutation]]:
        """
        Returns the signed-in user (or None) and the cookie writes the response must carry.
        Any backend failure counts as "no user".
        """
        access_token = cookies.get(self.access_cookie)
        refresh_token = cookies.get(self.refresh_cookie)
        mutations: List[CookieMutation] = []

        if not access_token and not refresh_token:
            return None, mutations

        if refresh_token and needs_refresh(access_token, self.refresh_margin_seconds):
            try:
                tokens = await self._post_token("refresh_token", {"refresh_token": refresh_token})
            except StoreUnavailable as e:
                print(f"AUTH: Session refresh failed. {e.detail}")
                if e.status_code is not None and 400 <= e.status_code < 500:
                    # The refresh token is spent or revoked; the cookies are useless now
                    return None, self.clear_cookies()
                return None, mutations
            print("AUTH: Session refreshed, renewed cookies will be sent.")
            access_token = tokens.access_token
            mutations = self.cookies_for(tokens)

        if not access_token:
            return None, mutations

        try:
            user = await self._fetch_user(access_token)
        except (StoreUnavailable, KeyError, TypeError, ValueError) as e:
            print(f"AUTH: User lookup failed, treating request as anonymous. {e}")
            return None, mutations
        return user, mutations

    async def sign_in(self, email: str, password: str) -> Tuple[SessionUser, List[CookieMutation]]:
        try:
            tokens = await self._post_token("password", {"email": email, "password": password})
        except StoreUnavailable as e:
            print(f"AUTH: Sign-in failed for {email}. {e.detail}")
            if e.status_code == 400 and _is_credentials_error(e.detail):
                raise AuthFailure(INVALID_CREDENTIALS, e.detail)
            raise AuthFailure(AUTH_BACKEND_ERROR, e.detail)

        try:
            user = await self._fetch_user(tokens.access_token)
        except (StoreUnavailable, KeyError, TypeError, ValueError) as e:
            raise AuthFailure(AUTH_BACKEND_ERROR, str(e))
        print(f"AUTH: User '{user.email or user.id}' signed in.")
        return user, self.cookies_for(tokens)

    async def sign_out(self, cookies: Mapping[str, str]) -> List[CookieMutation]:
        """Revokes the session server-side when possible. The cookies are cleared regardless."""
        access_token = cookies.get(self.access_cookie)
        if access_token:
            try:
                response = await self.client.post(
                    f"{self.auth_url}/logout",
                    headers={**self.headers, "Authorization": f"Bearer {access_token}"},
                )
                if response.status_code >= 400:
                    print(f"AUTH: Logout call answered {response.status_code}, clearing cookies anyway.")
            except httpx.HTTPError as e:
                print(f"AUTH: Logout call failed ({e}), clearing cookies anyway.")
        return self.clear_cookies()


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"{response.status_code} {response.text[:200]}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return str(response.status_code)


def _is_credentials_error(detail: str) -> bool:
    lowered = detail.lower()
    return "invalid login credentials" in lowered or "invalid_grant" in lowered


def build_session_store() -> SessionStore:
    return SessionStore(
        auth_url=settings.AUTH_URL,
        api_key=settings.SUPABASE_ANON_KEY,
        timeout=settings.STORE_TIMEOUT_SECONDS,
        access_cookie=settings.ACCESS_COOKIE_NAME,
        refresh_cookie=settings.REFRESH_COOKIE_NAME,
        cookie_max_age=settings.AUTH_COOKIE_MAX_AGE,
        refresh_margin_seconds=settings.SESSION_REFRESH_MARGIN_SECONDS,
    )


def session_store_for(app) -> SessionStore:
    """
    Builds the per-request store. `app.state.session_store_factory` replaces the
    default factory (used by the tests to plug in a mock transport).
    """
    factory = getattr(app.state, "session_store_factory", None) or build_session_store
    return factory()


async def get_session_store(request: Request) -> typing.AsyncIterator[SessionStore]:
    """FastAPI dependency for the login and logout routes."""
    store = session_store_for(request.app)
    try:
        yield store
    finally:
        await store.aclose()
