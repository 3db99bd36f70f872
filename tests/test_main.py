import pytest
from fastapi.testclient import TestClient

from conftest import FakeAuthBackend, failing_content_store, make_content_store
from vuelatour_site.config import settings
from vuelatour_site.content_store import get_content_store
from vuelatour_site.main import app, parse_login_form, safe_next_path
from vuelatour_site.errors import LoginValidationError


@pytest.fixture
def client(tables, auth_backend: FakeAuthBackend):
    async def override_content_store():
        store = make_content_store(tables)
        try:
            yield store
        finally:
            await store.aclose()

    app.dependency_overrides[get_content_store] = override_content_store
    app.state.session_store_factory = auth_backend.store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        app.state.session_store_factory = None


# --- Helpers ---

def test_parse_login_form():
    assert parse_login_form("  staff@vuelatour.com ", "x") == "staff@vuelatour.com"
    with pytest.raises(LoginValidationError) as exc_info:
        parse_login_form("not-an-email", "x")
    assert exc_info.value.code == "email_required"
    with pytest.raises(LoginValidationError) as exc_info:
        parse_login_form("staff@vuelatour.com", "")
    assert exc_info.value.code == "password_required"


@pytest.mark.parametrize(
    "candidate, expected",
    [
        ("/en/contact", "/en/contact"),
        (None, "/"),
        ("https://evil.example", "/"),
        ("//evil.example", "/"),
        ("/\\evil.example", "/"),
    ],
)
def test_safe_next_path(candidate, expected):
    assert safe_next_path(candidate) == expected


# --- Public pages ---

def test_root_redirects_to_default_locale(client):
    response = client.get("/", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/es"


def test_home_page_renders_metadata(client):
    response = client.get("/en")
    assert response.status_code == 200
    assert '<html lang="en"' in response.text
    assert '<link rel="canonical" href="https://www.vuelatour.com/en">' in response.text
    assert 'hreflang="x-default" href="https://www.vuelatour.com/en"' in response.text
    assert "https://cdn.example.com/hero-b.jpg" in response.text


@pytest.mark.parametrize(
    "path, text",
    [
        ("/es/charter-flights", "Holbox"),
        ("/en/air-tours", "Tulum from above"),
        ("/en/charter-flights/cozumel", "Cozumel"),
        ("/es/air-tours/tulum", "Tulum desde el aire"),
        ("/en/contact", "info@vuelatour.com"),
        ("/en/terms", "Be nice."),
        ("/es/terms", "Contenido próximamente."),
    ],
)
def test_public_pages(client, path, text):
    response = client.get(path)
    assert response.status_code == 200
    assert text in response.text


@pytest.mark.parametrize("path", ["/fr", "/de/terms", "/en/refunds", "/en/charter-flights/retired", "/es/air-tours/nope"])
def test_unknown_pages_render_not_found(client, path):
    response = client.get(path)
    assert response.status_code == 404
    assert "not found" in response.text.lower() or "no encontrad" in response.text.lower()


def test_pages_render_when_backend_is_down(client):
    async def broken_store():
        yield failing_content_store()

    app.dependency_overrides[get_content_store] = broken_store
    response = client.get("/es/privacy")
    assert response.status_code == 200
    assert "Aviso de Privacidad" in response.text


def test_dark_theme_cookie_marks_html(client):
    client.cookies.set("theme", "dark")
    response = client.get("/es")
    assert 'class="dark"' in response.text


def test_theme_toggle_sets_cookie_and_redirects_back(client):
    response = client.post("/preferences/theme", data={"next": "/en/contact"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/en/contact"
    assert response.headers["set-cookie"].startswith("theme=dark")


def test_theme_toggle_ignores_offsite_next(client):
    response = client.post("/preferences/theme", data={"next": "https://evil.example"}, follow_redirects=False)
    assert response.headers["location"] == "/"


# --- Machine-readable routes ---

def test_sitemap_xml(client):
    response = client.get("/sitemap.xml")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/xml")
    assert response.text.count("<url>") == 26
    assert "<loc>https://www.vuelatour.com/es/charter-flights/holbox</loc>" in response.text


def test_robots_txt(client):
    response = client.get("/robots.txt")
    assert response.status_code == 200
    assert "Disallow: /admin" in response.text
    assert "Sitemap: https://www.vuelatour.com/sitemap.xml" in response.text


# --- Admin ---

def test_login_page_renders_for_anonymous(client):
    response = client.get("/admin/login")
    assert response.status_code == 200
    assert "Iniciar Sesión" in response.text
    assert "noindex" in response.text


def test_login_validation_error(client, auth_backend):
    response = client.post("/admin/login", data={"email": "nope", "password": "x"})
    assert response.status_code == 422
    assert "Ingresa un correo electrónico válido" in response.text
    assert not any(call.endswith("/token") for call in auth_backend.calls)


def test_login_wrong_password(client):
    response = client.post("/admin/login", data={"email": "staff@vuelatour.com", "password": "wrong"})
    assert response.status_code == 401
    assert "Credenciales incorrectas" in response.text
    assert 'value="staff@vuelatour.com"' in response.text


def test_login_success_sets_session_cookies(client):
    response = client.post(
        "/admin/login",
        data={"email": "staff@vuelatour.com", "password": "correct-horse"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == settings.ADMIN_DASHBOARD_PATH
    set_cookies = response.headers.get_list("set-cookie")
    assert any(c.startswith(f"{settings.ACCESS_COOKIE_NAME}=") and "HttpOnly" in c for c in set_cookies)
    assert any(c.startswith(f"{settings.REFRESH_COOKIE_NAME}=") for c in set_cookies)

    dashboard = client.get("/admin/dashboard")
    assert dashboard.status_code == 200
    assert "staff@vuelatour.com" in dashboard.text


def test_admin_root_goes_to_login_when_anonymous(client):
    response = client.get("/admin", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/admin/login"


def test_logout_clears_session(client, auth_backend):
    tokens = auth_backend.issue("staff")
    client.cookies.set(settings.ACCESS_COOKIE_NAME, tokens["access_token"])
    client.cookies.set(settings.REFRESH_COOKIE_NAME, tokens["refresh_token"])

    response = client.post("/admin/logout", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/admin/login"
    set_cookies = response.headers.get_list("set-cookie")
    assert any(c.startswith(f'{settings.ACCESS_COOKIE_NAME}=""') for c in set_cookies)
    assert "POST /auth/v1/logout" in auth_backend.calls


def test_signed_in_user_posting_login_form_lands_on_dashboard(client, auth_backend):
    tokens = auth_backend.issue("staff")
    client.cookies.set(settings.ACCESS_COOKIE_NAME, tokens["access_token"])

    response = client.post(
        "/admin/login", data={"email": "staff@vuelatour.com", "password": "correct-horse"}, follow_redirects=False
    )
    assert response.status_code == 303
    assert response.headers["location"] == settings.ADMIN_DASHBOARD_PATH

    followed = client.post("/admin/login", data={"email": "staff@vuelatour.com", "password": "correct-horse"})
    assert followed.status_code == 200
    assert str(followed.url).endswith(settings.ADMIN_DASHBOARD_PATH)
    assert "staff@vuelatour.com" in followed.text


def test_logout_with_dead_session_shows_login_form(client):
    client.cookies.set(settings.ACCESS_COOKIE_NAME, "garbage-token")

    response = client.post("/admin/logout", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == settings.ADMIN_LOGIN_PATH

    followed = client.post("/admin/logout")
    assert followed.status_code == 200
    assert str(followed.url).endswith(settings.ADMIN_LOGIN_PATH)
    assert 'role="alert"' not in followed.text


def test_home_page_survives_tour_request_naming_a_destination(client, tables):
    tables["contact_requests"] = [{"destination": "Cozumel", "service_type": "tour"}]
    response = client.get("/es")
    assert response.status_code == 200
    assert 'class="card" href="/es/charter-flights/cozumel"' in response.text


def test_home_page_emits_structured_data(client):
    response = client.get("/en")
    assert response.text.count('<script type="application/ld+json">') == 3
    assert "https://cdn.example.com/hero-b.jpg" in response.text
    assert '"en-US"' in response.text


def test_legal_page_renders_markdown(client, tables):
    tables["legal_pages"][0]["content_en"] = "## Cancellations\n\nCall us 24 hours ahead."
    response = client.get("/en/terms")
    assert response.status_code == 200
    assert "<h2>Cancellations</h2>" in response.text
    assert "## Cancellations" not in response.text


def test_tour_detail_lists_highlights(client):
    response = client.get("/en/air-tours/tulum")
    assert response.status_code == 200
    assert 'class="highlights"' in response.text
    assert "<li>Paradise Beach</li>" in response.text
