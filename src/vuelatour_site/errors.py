# src/vuelatour_site/errors.py

from typing import Optional


class ContentNotFound(Exception):
    """Unsupported locale or a detail slug with no active row. Rendered as a 404."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(detail)
        self.detail = detail


class StoreUnavailable(Exception):
    """
    The hosted backend could not be reached or answered with an error.
    Never leaves the store classes: callers get the nearest safe default instead.
    """

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class AuthFailure(Exception):
    """Sign-in rejected. `code` selects the translated message shown on the login form."""

    def __init__(self, code: str, detail: Optional[str] = None):
        super().__init__(detail or code)
        self.code = code
        self.detail = detail


class LoginValidationError(Exception):
    """Malformed login form input, caught before the auth backend is called."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code
