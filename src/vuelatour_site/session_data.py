# src/vuelatour_site/session_data.py

from pydantic import BaseModel
from typing import Optional


class SessionUser(BaseModel):
    """
    The identity the auth backend reports for a valid access token.
    Only the fields the admin pages display are kept.
    """
    id: str
    email: Optional[str] = None
    role: Optional[str] = None


class SessionTokens(BaseModel):
    """Token pair returned by sign-in and refresh. Both halves travel in cookies."""
    access_token: str
    refresh_token: str
    expires_at: Optional[int] = None  # Unix timestamp


class CookieMutation(BaseModel):
    """
    A cookie write the outgoing response must carry.
    `value=None` deletes the cookie.
    """
    name: str
    value: Optional[str] = None
    max_age: Optional[int] = None

    @property
    def is_delete(self) -> bool:
        return self.value is None
