# src/vuelatour_site/locales.py

from typing import Dict

from .errors import ContentNotFound

SUPPORTED_LOCALES = ("es", "en")
DEFAULT_LOCALE = "es"
X_DEFAULT_LOCALE = "en"

OG_LOCALES = {"es": "es_MX", "en": "en_US"}

Localized = Dict[str, str]


def validate_locale(raw: str) -> str:
    """Returns the locale when supported, otherwise raises ContentNotFound (404)."""
    if raw not in SUPPORTED_LOCALES:
        raise ContentNotFound(f"Unsupported locale '{raw}'")
    return raw


def og_locale(locale: str) -> str:
    return OG_LOCALES[locale]


# --- Static fallbacks ---
# Every entry carries a non-empty string for every supported locale.

FALLBACK_TITLES: Dict[str, Localized] = {
    "terms": {"es": "Términos y Condiciones", "en": "Terms and Conditions"},
    "privacy": {"es": "Aviso de Privacidad", "en": "Privacy Policy"},
    "cookies": {"es": "Política de Cookies", "en": "Cookie Policy"},
}

LEGAL_DESCRIPTIONS: Dict[str, Localized] = {
    "terms": {
        "es": "Términos y condiciones de uso de los servicios de vuelos privados y tours aéreos de Vuelatour en Cancún.",
        "en": "Terms and conditions of use for Vuelatour private flights and air tours services in Cancún.",
    },
    "privacy": {
        "es": "Política de privacidad y protección de datos personales de Vuelatour. Conoce cómo protegemos tu información.",
        "en": "Privacy policy and personal data protection of Vuelatour. Learn how we protect your information.",
    },
    "cookies": {
        "es": "Política de cookies de Vuelatour. Conoce qué cookies utilizamos y cómo gestionarlas.",
        "en": "Vuelatour cookie policy. Learn which cookies we use and how to manage them.",
    },
}

HOME_TITLES: Localized = {
    "es": "Vuelatour | Vuelos Privados y Tours Aéreos en Cancún",
    "en": "Vuelatour | Charter Flights & Air Tours in Cancún",
}

HOME_DESCRIPTIONS: Localized = {
    "es": "Vuelos privados y tours aéreos en Cancún. Sobrevuela Tulum, Chichén Itzá, Cozumel. {years} años de experiencia. Reserva hoy.",
    "en": "Private flights and air tours in Cancún. Fly over Tulum, Chichén Itzá, Cozumel. {years} years experience. Book today.",
}

HOME_KEYWORDS: Localized = {
    "es": "vuelos privados cancun, tours aereos riviera maya, vuelos privados mexico, paseos aereos cancun, chichen itza desde el aire",
    "en": "charter flights cancun, air tours riviera maya, private flights mexico, aerial tours cancun, chichen itza from above",
}

HOME_IMAGE_ALT: Localized = {
    "es": "Vuelatour - Vuelos en Cancún",
    "en": "Vuelatour - Flights in Cancún",
}

CHARTER_TITLES: Localized = {
    "es": "Vuelos Privados en Cancún | Charter a Cozumel, Holbox, Mérida | Vuelatour",
    "en": "Private Charter Flights in Cancún | Fly to Cozumel, Holbox, Mérida | Vuelatour",
}

CHARTER_DESCRIPTIONS: Localized = {
    "es": "Vuelos privados desde Cancún a Cozumel, Holbox, Mérida, Tulum y más destinos del Caribe mexicano. Servicio exclusivo, horarios flexibles. Reserva hoy.",
    "en": "Private charter flights from Cancún to Cozumel, Holbox, Mérida, Tulum and more Mexican Caribbean destinations. Exclusive service, flexible schedules. Book today.",
}

CHARTER_KEYWORDS: Localized = {
    "es": "vuelos privados cancun, charter cozumel, vuelo holbox, avion privado merida, vuelos ejecutivos cancun",
    "en": "private flights cancun, charter cozumel, holbox flight, private plane merida, executive flights cancun",
}

CHARTER_IMAGE_ALT: Localized = {
    "es": "Vuelos privados en Cancún - Vuelatour",
    "en": "Private charter flights in Cancún - Vuelatour",
}

TOURS_TITLES: Localized = {
    "es": "Tours Aéreos en Cancún | Sobrevuela Tulum, Chichén Itzá y el Caribe | Vuelatour",
    "en": "Air Tours in Cancún | Fly over Tulum, Chichén Itzá and the Caribbean | Vuelatour",
}

TOURS_DESCRIPTIONS: Localized = {
    "es": "Tours aéreos panorámicos desde Cancún. Sobrevuela Tulum, Chichén Itzá, Isla Mujeres y la Riviera Maya. Una experiencia única. Reserva hoy.",
    "en": "Panoramic air tours from Cancún. Fly over Tulum, Chichén Itzá, Isla Mujeres and the Riviera Maya. A unique experience. Book today.",
}

TOURS_KEYWORDS: Localized = {
    "es": "tours aereos cancun, paseo en avioneta cancun, sobrevuelo tulum, vuelo panoramico riviera maya",
    "en": "air tours cancun, scenic flight cancun, tulum flyover, panoramic flight riviera maya",
}

TOURS_IMAGE_ALT: Localized = {
    "es": "Tours aéreos en Cancún - Vuelatour",
    "en": "Air tours in Cancún - Vuelatour",
}

CONTACT_TITLES: Localized = {
    "es": "Contacto | Cotiza tu Vuelo Privado o Tour Aéreo | Vuelatour",
    "en": "Contact | Get a Quote for Your Private Flight or Air Tour | Vuelatour",
}

CONTACT_DESCRIPTIONS: Localized = {
    "es": "Contáctanos para cotizar tu vuelo privado o tour aéreo en Cancún. Atención personalizada por teléfono, email o WhatsApp.",
    "en": "Contact us to get a quote for your private flight or air tour in Cancún. Personal attention by phone, email or WhatsApp.",
}

DESTINATION_NOT_FOUND: Localized = {"es": "Destino no encontrado", "en": "Destination not found"}
TOUR_NOT_FOUND: Localized = {"es": "Tour no encontrado", "en": "Tour not found"}

COMING_SOON: Localized = {
    "es": "Contenido próximamente.",
    "en": "Content coming soon.",
}

# --- Contact page defaults ---

CONTACT_DEFAULTS = {
    "email": "info@vuelatour.com",
    "phone_display": "+52 998 740 7149",
    "phone_link": "+529987407149",
    "whatsapp_number": "529987407149",
    "address": {
        "es": "Aeropuerto Internacional de Cancún, Terminal FBO, Cancún, Q.R., México",
        "en": "Cancún International Airport, FBO Terminal, Cancún, Q.R., Mexico",
    },
    "hours": {
        "es": "Lunes a Domingo: 6:00 AM - 8:00 PM",
        "en": "Monday to Sunday: 6:00 AM - 8:00 PM",
    },
}

# --- UI strings ---

UI: Dict[str, Localized] = {
    "back_home": {"es": "Volver al inicio", "en": "Back to home"},
    "last_updated": {"es": "Última actualización: ", "en": "Last updated: "},
    "from": {"es": "Desde", "en": "From"},
    "charter_flights": {"es": "Vuelos Privados", "en": "Charter Flights"},
    "air_tours": {"es": "Tours Aéreos", "en": "Air Tours"},
    "contact": {"es": "Contacto", "en": "Contact"},
    "more_destinations": {"es": "Más destinos", "en": "More destinations"},
    "more_tours": {"es": "Más tours", "en": "More tours"},
    "flight_time": {"es": "Tiempo de vuelo", "en": "Flight time"},
    "duration": {"es": "Duración", "en": "Duration"},
    "highlights": {"es": "Lo que verás", "en": "What you'll see"},
    "not_found": {"es": "Página no encontrada", "en": "Page not found"},
    "address": {"es": "Dirección", "en": "Address"},
    "hours": {"es": "Horario", "en": "Hours"},
    "toggle_theme": {"es": "Cambiar tema", "en": "Toggle theme"},
    **FALLBACK_TITLES,
}

# Admin area is Spanish only
LOGIN_MESSAGES: Dict[str, str] = {
    "invalid_credentials": "Credenciales incorrectas",
    "auth_backend_error": "Error al iniciar sesión",
    "email_required": "Ingresa un correo electrónico válido",
    "password_required": "Ingresa tu contraseña",
}

MONTHS_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)
MONTHS_EN = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_long_date(value, locale: str) -> str:
    """`15 de marzo de 2025` / `March 15, 2025`."""
    if locale == "es":
        return f"{value.day} de {MONTHS_ES[value.month - 1]} de {value.year}"
    return f"{MONTHS_EN[value.month - 1]} {value.day}, {value.year}"
