# src/vuelatour_site/app_state.py

from typing import Dict, List, Mapping, Optional, Protocol, Tuple

from starlette.responses import Response as StarletteResponse

from .content_store import ContentStore
from .records import SiteSettingRecord

SETTINGS_TABLE = "site_settings"
CURRENCY_KEY = "site_currency"
SUPPORTED_CURRENCIES = ("USD", "MXN")
DEFAULT_CURRENCY = "USD"

THEME_KEY = "theme"
THEMES = ("light", "dark")

PREFERENCE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


class StoragePort(Protocol):
    """Where visitor preferences are kept between requests."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class MemoryStorage:
    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class CookieStorage:
    """Reads preferences from the request cookies; writes are queued until `apply` sees the response."""

    def __init__(self, cookies: Mapping[str, str]):
        self.cookies = dict(cookies)
        self.pending: List[Tuple[str, str]] = []

    def get(self, key: str) -> Optional[str]:
        return self.cookies.get(key)

    def set(self, key: str, value: str) -> None:
        self.cookies[key] = value
        self.pending.append((key, value))

    def apply(self, response: StarletteResponse) -> None:
        for key, value in self.pending:
            response.set_cookie(key, value, max_age=PREFERENCE_COOKIE_MAX_AGE, path="/", samesite="lax")
        self.pending.clear()


def format_price(amount: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Whole units with thousands separators: `$1,500`. Both currencies use the `$` sign."""
    return f"${amount:,.0f}"


class AppState:
    """
    Per-request UI state handed explicitly to the templates: the display
    currency chosen by the site admins and the visitor's theme preference.
    """

    def __init__(self, storage: StoragePort, currency: str = DEFAULT_CURRENCY):
        self.storage = storage
        self.currency = currency if currency in SUPPORTED_CURRENCIES else DEFAULT_CURRENCY

    @property
    def theme(self) -> Optional[str]:
        value = self.storage.get(THEME_KEY)
        return value if value in THEMES else None

    @property
    def dark_mode(self) -> bool:
        return self.theme == "dark"

    def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme '{theme}'")
        self.storage.set(THEME_KEY, theme)

    def toggle_theme(self) -> str:
        new_theme = "light" if self.dark_mode else "dark"
        self.set_theme(new_theme)
        return new_theme

    def format_price(self, amount: float) -> str:
        return format_price(amount, self.currency)

    def price_label(self, amount: Optional[float]) -> str:
        if not amount:
            return "-"
        return f"{self.format_price(amount)} {self.currency}"


async def load_currency(store: ContentStore) -> str:
    """The admin-selected currency, or USD when unset, invalid or unreachable."""
    setting = await store.get_one(SETTINGS_TABLE, SiteSettingRecord, filters={"key": CURRENCY_KEY})
    if setting is not None and setting.value in SUPPORTED_CURRENCIES:
        return setting.value
    return DEFAULT_CURRENCY
