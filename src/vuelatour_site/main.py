# src/vuelatour_site/main.py

import re
from typing import Optional

from fastapi import FastAPI, Depends, Request, Form, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from .app_state import AppState, CookieStorage, load_currency
from .auth_utils import SessionStore, get_session_store
from .config import settings, CONFIG_FILE_DIR
from .content_store import ContentStore, get_content_store
from .errors import AuthFailure, ContentNotFound, LoginValidationError
from . import locales as L
from . import resolver
from .session_data import SessionUser
from .session_guard import SessionGuardMiddleware, apply_cookies
from .sitemap import fetch_sitemap, render_sitemap_xml
from .widgets import TripAdvisorRatingWidget, WidgetRegistry

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# --- FastAPI App Setup ---
app = FastAPI(
    title="Vuelatour Site",
    description="Bilingual public site and admin entry points for the Vuelatour charter and air tour company.",
    version="0.1.0"
)

app.add_middleware(SessionGuardMiddleware)

# --- Static Files and Templates ---
app.mount(
    "/static",
    StaticFiles(directory=CONFIG_FILE_DIR / "static"),
    name="static"
)
templates = Jinja2Templates(directory=CONFIG_FILE_DIR / "templates")

widgets = WidgetRegistry()
if settings.TRIPADVISOR_LOCATION_ID:
    widgets.register(TripAdvisorRatingWidget(settings.TRIPADVISOR_LOCATION_ID))


# --- Per-request state ---
async def get_app_state(request: Request, store: ContentStore = Depends(get_content_store)) -> AppState:
    currency = await load_currency(store)
    return AppState(CookieStorage(request.cookies), currency=currency)


def current_user(request: Request) -> Optional[SessionUser]:
    return getattr(request.state, "user", None)


def render(request: Request, template: str, context: dict, status_code: int = 200) -> HTMLResponse:
    context.setdefault("ui", L.UI)
    context.setdefault("lang", context.get("locale", L.DEFAULT_LOCALE))
    context.setdefault("meta", getattr(context.get("page"), "metadata", None))
    context.setdefault("widgets", widgets)
    context.setdefault("site_name", settings.SITE_NAME)
    context.setdefault("locales", L.SUPPORTED_LOCALES)
    return templates.TemplateResponse(request, template, context, status_code=status_code)


def parse_login_form(email: str, password: str) -> str:
    email = (email or "").strip()
    if not EMAIL_PATTERN.match(email):
        raise LoginValidationError("email_required")
    if not password:
        raise LoginValidationError("password_required")
    return email


def safe_next_path(candidate: Optional[str]) -> str:
    """Only same-site absolute paths are followed after a preference change."""
    if candidate and candidate.startswith("/") and not candidate.startswith("//") and "\\" not in candidate:
        return candidate
    return "/"


# --- Error pages ---
@app.exception_handler(ContentNotFound)
async def content_not_found_handler(request: Request, exc: ContentNotFound):
    segments = request.url.path.strip("/").split("/")
    locale = segments[0] if segments and segments[0] in L.SUPPORTED_LOCALES else L.DEFAULT_LOCALE
    print(f"SITE: 404 for {request.url.path}: {exc.detail}")
    return render(
        request,
        "not_found.html",
        {"locale": locale, "detail": exc.detail, "app_state": AppState(CookieStorage(request.cookies))},
        status_code=status.HTTP_404_NOT_FOUND,
    )


# --- Machine-readable routes ---
@app.get("/sitemap.xml", include_in_schema=False)
async def sitemap(store: ContentStore = Depends(get_content_store)):
    entries = await fetch_sitemap(store)
    return Response(content=render_sitemap_xml(entries), media_type="application/xml")


@app.get("/robots.txt", include_in_schema=False)
async def robots():
    body = (
        "User-agent: *\n"
        "Allow: /\n"
        f"Disallow: {settings.ADMIN_PREFIX}\n"
        f"Sitemap: {settings.SITE_URL}/sitemap.xml\n"
    )
    return PlainTextResponse(body)


@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/preferences/theme", include_in_schema=False)
async def toggle_theme(request: Request, next_path: Optional[str] = Form(None, alias="next")):
    storage = CookieStorage(request.cookies)
    AppState(storage).toggle_theme()
    response = RedirectResponse(url=safe_next_path(next_path), status_code=status.HTTP_303_SEE_OTHER)
    storage.apply(response)
    return response


# --- Admin ---
@app.get(settings.ADMIN_PREFIX, include_in_schema=False)
async def admin_root():
    return RedirectResponse(url=settings.ADMIN_DASHBOARD_PATH, status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@app.get(settings.ADMIN_LOGIN_PATH, response_class=HTMLResponse)
async def login_page(request: Request):
    return render(request, "admin/login.html", {"error": None, "email": ""})


@app.post(settings.ADMIN_LOGIN_PATH, response_class=HTMLResponse)
async def login(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        sessions: SessionStore = Depends(get_session_store),
):
    try:
        email = parse_login_form(email, password)
    except LoginValidationError as e:
        return render(
            request,
            "admin/login.html",
            {"error": L.LOGIN_MESSAGES[e.code], "email": email},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    try:
        user, cookie_writes = await sessions.sign_in(email, password)
    except AuthFailure as e:
        return render(
            request,
            "admin/login.html",
            {"error": L.LOGIN_MESSAGES.get(e.code, L.LOGIN_MESSAGES["auth_backend_error"]), "email": email},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    response = RedirectResponse(url=settings.ADMIN_DASHBOARD_PATH, status_code=status.HTTP_303_SEE_OTHER)
    apply_cookies(response, cookie_writes)
    return response


@app.post(f"{settings.ADMIN_PREFIX}/logout")
async def logout(request: Request, sessions: SessionStore = Depends(get_session_store)):
    cookie_writes = await sessions.sign_out(request.cookies)
    user = current_user(request)
    print(f"SITE: User '{user.email if user else 'anonymous'}' signed out.")
    response = RedirectResponse(url=settings.ADMIN_LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    apply_cookies(response, cookie_writes)
    return response


@app.get(settings.ADMIN_DASHBOARD_PATH, response_class=HTMLResponse)
async def dashboard(request: Request):
    user = current_user(request)
    if user is None:
        # The guard normally handles this; kept for routes mounted without it
        return RedirectResponse(url=settings.ADMIN_LOGIN_PATH, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return render(request, "admin/dashboard.html", {"user": user})


# --- Public pages ---
@app.get("/", include_in_schema=False)
async def root():
    return RedirectResponse(url=f"/{L.DEFAULT_LOCALE}", status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@app.get("/{locale}", response_class=HTMLResponse)
async def home(
        request: Request,
        locale: str,
        store: ContentStore = Depends(get_content_store),
        app_state: AppState = Depends(get_app_state),
):
    page = await resolver.load_home_page(locale, store)
    return render(request, "home.html", {"page": page, "locale": page.locale, "app_state": app_state})


@app.get("/{locale}/charter-flights", response_class=HTMLResponse)
async def charter_flights(
        request: Request,
        locale: str,
        store: ContentStore = Depends(get_content_store),
        app_state: AppState = Depends(get_app_state),
):
    page = await resolver.load_destinations_page(locale, store)
    return render(request, "listing.html", {"page": page, "locale": page.locale, "app_state": app_state})


@app.get("/{locale}/charter-flights/{slug}", response_class=HTMLResponse)
async def destination_detail(
        request: Request,
        locale: str,
        slug: str,
        store: ContentStore = Depends(get_content_store),
        app_state: AppState = Depends(get_app_state),
):
    page = await resolver.load_destination_detail(locale, slug, store)
    return render(request, "detail.html", {"page": page, "locale": page.locale, "app_state": app_state})


@app.get("/{locale}/air-tours", response_class=HTMLResponse)
async def air_tours(
        request: Request,
        locale: str,
        store: ContentStore = Depends(get_content_store),
        app_state: AppState = Depends(get_app_state),
):
    page = await resolver.load_tours_page(locale, store)
    return render(request, "listing.html", {"page": page, "locale": page.locale, "app_state": app_state})


@app.get("/{locale}/air-tours/{slug}", response_class=HTMLResponse)
async def tour_detail(
        request: Request,
        locale: str,
        slug: str,
        store: ContentStore = Depends(get_content_store),
        app_state: AppState = Depends(get_app_state),
):
    page = await resolver.load_tour_detail(locale, slug, store)
    return render(request, "detail.html", {"page": page, "locale": page.locale, "app_state": app_state})


@app.get("/{locale}/contact", response_class=HTMLResponse)
async def contact(
        request: Request,
        locale: str,
        store: ContentStore = Depends(get_content_store),
        app_state: AppState = Depends(get_app_state),
):
    page = await resolver.load_contact_page(locale, store)
    return render(request, "contact.html", {"page": page, "locale": page.locale, "app_state": app_state})


@app.get("/{locale}/{slug}", response_class=HTMLResponse)
async def legal_page(
        request: Request,
        locale: str,
        slug: str,
        store: ContentStore = Depends(get_content_store),
        app_state: AppState = Depends(get_app_state),
):
    # terms, privacy and cookies; any other slug is a 404
    page = await resolver.load_legal_page(locale, slug, store)
    return render(request, "legal.html", {"page": page, "locale": page.locale, "app_state": app_state})


# --- Startup Event ---
@app.on_event("startup")
async def startup_event():
    print("--- Vuelatour Site (FastAPI) Starting Up ---")
    print(f"Backend URL: {settings.BACKEND_URL}")
    print(f"Public site URL: {settings.SITE_URL}")
    print(f"Supported locales: {', '.join(L.SUPPORTED_LOCALES)} (default: {L.DEFAULT_LOCALE})")
    print(f"Admin area: {settings.ADMIN_PREFIX} (login: {settings.ADMIN_LOGIN_PATH})")
    print(f"Backend API key is set: {'Yes' if settings.SUPABASE_ANON_KEY else 'NO (CRITICAL ERROR!)'}")
    print(f"Widgets registered: {widgets.get('tripadvisor_rating') is not None}")
    print("-------------------------------------------")
