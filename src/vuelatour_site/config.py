# src/vuelatour_site/config.py

from pydantic import field_validator, AnyHttpUrl, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional, Union, Any
from pathlib import Path
from dotenv import load_dotenv

# .env is at the project root, two levels up from src/vuelatour_site/
CONFIG_FILE_DIR = Path(__file__).resolve().parent
PROJECT_ROOT_DIR = CONFIG_FILE_DIR.parent.parent
ENV_FILE_PATH = PROJECT_ROOT_DIR / ".env"

if ENV_FILE_PATH.exists():
    load_dotenv(dotenv_path=ENV_FILE_PATH, override=True)
    print(f"SITE: Successfully loaded .env file from: {ENV_FILE_PATH}")
else:
    print(
        f"SITE: Warning: .env file not found at {ENV_FILE_PATH}. Relying on environment variables."
    )


class Settings(BaseSettings):
    # === Hosted backend (database REST + auth) ===
    SUPABASE_URL: AnyHttpUrl
    SUPABASE_ANON_KEY: str

    # === Public site ===
    SITE_URL: str = "https://www.vuelatour.com"
    SITE_NAME: str = "Vuelatour"
    DEFAULT_OG_IMAGE: str = "/images/og/og-image.jpg"
    COMPANY_FOUNDED_YEAR: int = 1996
    TRIPADVISOR_LOCATION_ID: Optional[str] = "12135503"  # Empty disables the rating widget
    # Comma-separated in the env, list after validation
    STATIC_ROUTES: Union[str, List[str]] = [
        "",
        "/charter-flights",
        "/air-tours",
        "/contact",
        "/privacy",
        "/terms",
        "/cookies",
    ]

    # === Admin routing ===
    ADMIN_PREFIX: str = "/admin"
    ADMIN_LOGIN_PATH: str = "/admin/login"
    ADMIN_DASHBOARD_PATH: str = "/admin/dashboard"

    # === Session cookies ===
    AUTH_COOKIE_PREFIX: str = "sb"
    AUTH_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 400  # 400 days
    AUTH_COOKIE_SECURE: bool = True
    SESSION_REFRESH_MARGIN_SECONDS: int = 60

    # === Backend client ===
    STORE_TIMEOUT_SECONDS: float = 10.0

    # === Derived endpoints ===
    @property
    def BACKEND_URL(self) -> str:
        return str(self.SUPABASE_URL).rstrip("/")

    @property
    def REST_URL(self) -> str:
        return f"{self.BACKEND_URL}/rest/v1"

    @property
    def AUTH_URL(self) -> str:
        return f"{self.BACKEND_URL}/auth/v1"

    @property
    def ACCESS_COOKIE_NAME(self) -> str:
        return f"{self.AUTH_COOKIE_PREFIX}-access-token"

    @property
    def REFRESH_COOKIE_NAME(self) -> str:
        return f"{self.AUTH_COOKIE_PREFIX}-refresh-token"

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False
    )

    @field_validator("SITE_URL", "ADMIN_PREFIX", "ADMIN_LOGIN_PATH", "ADMIN_DASHBOARD_PATH")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if len(v) > 1 else v

    @field_validator("STATIC_ROUTES", mode='before')
    @classmethod
    def parse_comma_separated_routes(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            # The root route is the empty string, so blanks between commas are kept
            return [route.strip().rstrip("/") for route in v.split(',')]
        if isinstance(v, list):
            return v
        raise TypeError('STATIC_ROUTES: Expected a comma-separated string or a list.')

    @model_validator(mode='after')
    def check_final_routes_type(self) -> 'Settings':
        if not isinstance(self.STATIC_ROUTES, list):
            raise ValueError(f"STATIC_ROUTES ended up as {type(self.STATIC_ROUTES)}, expected list.")
        for route in self.STATIC_ROUTES:
            if route and not route.startswith("/"):
                raise ValueError(f"STATIC_ROUTES entry '{route}' must be empty or start with '/'.")
        return self


try:
    settings = Settings()
    print(f"SITE: Backend URL: {settings.BACKEND_URL}")
    print(f"SITE: Public site URL: {settings.SITE_URL}")
    print(f"SITE: Static routes: {settings.STATIC_ROUTES}")

except Exception as e:
    print(f"SITE: Error instantiating Settings: {e}")
    import traceback
    traceback.print_exc()
    raise
