# src/vuelatour_site/metadata.py

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .config import settings
from .locales import CONTACT_DEFAULTS, SUPPORTED_LOCALES, X_DEFAULT_LOCALE, og_locale


class OpenGraphImage(BaseModel):
    url: str
    width: int = 1200
    height: int = 630
    alt: str


class OpenGraph(BaseModel):
    title: str
    description: str
    url: str
    site_name: str
    locale: str
    type: str = "website"
    images: List[OpenGraphImage] = []


class TwitterCard(BaseModel):
    card: str = "summary_large_image"
    title: str
    description: str
    images: List[str] = []


class PageMetadata(BaseModel):
    title: str
    description: str
    canonical: str
    alternates: Dict[str, str]
    open_graph: OpenGraph
    twitter: TwitterCard
    keywords: Optional[str] = None
    robots: str = "index, follow"


def absolute_url(url: str, base_url: Optional[str] = None) -> str:
    if url.startswith("http://") or url.startswith("https://"):
        return url
    base_url = settings.SITE_URL if base_url is None else base_url
    return f"{base_url}{url if url.startswith('/') else '/' + url}"


def page_url(locale: str, path: str = "", base_url: Optional[str] = None) -> str:
    """`path` is the locale-independent part, '' for the home page."""
    base_url = settings.SITE_URL if base_url is None else base_url
    return f"{base_url}/{locale}{path}"


def build_alternates(path: str = "", base_url: Optional[str] = None) -> Dict[str, str]:
    alternates = {locale: page_url(locale, path, base_url) for locale in SUPPORTED_LOCALES}
    alternates["x-default"] = page_url(X_DEFAULT_LOCALE, path, base_url)
    return alternates


def build_metadata(
        locale: str,
        path: str,
        title: str,
        description: str,
        image: Optional[str] = None,
        image_alt: Optional[str] = None,
        keywords: Optional[str] = None,
        robots: str = "index, follow",
) -> PageMetadata:
    """
    Assembles the head metadata of a public page. Pure string composition:
    no lookups happen here.
    """
    canonical = page_url(locale, path)
    image_url = absolute_url(image or settings.DEFAULT_OG_IMAGE)
    return PageMetadata(
        title=title,
        description=description,
        canonical=canonical,
        alternates=build_alternates(path),
        keywords=keywords,
        robots=robots,
        open_graph=OpenGraph(
            title=title,
            description=description,
            url=canonical,
            site_name=settings.SITE_NAME,
            locale=og_locale(locale),
            images=[OpenGraphImage(url=image_url, alt=image_alt or settings.SITE_NAME)],
        ),
        twitter=TwitterCard(title=title, description=description, images=[image_url]),
    )


# --- Structured data (JSON-LD) ---

SCHEMA_CONTEXT = "https://schema.org"
LOGO_PATH = "/images/logo/vuelatour-logo.png"
FALLBACK_HERO_IMAGE = "/images/hero/hero-aerial-cancun.jpg"
FALLBACK_FLEET_IMAGE = "/images/fleet/cessna-206.jpg"
SOCIAL_PROFILES = [
    "https://facebook.com/vuelatour",
    "https://instagram.com/vuelatour",
    "https://tiktok.com/@vuelatour",
]
GEO = {"@type": "GeoCoordinates", "latitude": 21.0367, "longitude": -86.8770}
SCHEMA_LANGUAGES = {"es": "es-MX", "en": "en-US"}


def _by_locale(locale: str, es: str, en: str) -> str:
    return es if locale == "es" else en


def _logo(locale: str, caption: str) -> Dict[str, Any]:
    logo_url = absolute_url(LOGO_PATH)
    return {
        "@type": "ImageObject",
        "@id": f"{settings.SITE_URL}/#logo",
        "url": logo_url,
        "contentUrl": logo_url,
        "caption": caption,
        "width": 150,
        "height": 40,
        "inLanguage": SCHEMA_LANGUAGES[locale],
    }


def local_business_schema(
        locale: str,
        years: str,
        hero_image_url: Optional[str] = None,
        fleet_image_url: Optional[str] = None,
) -> Dict[str, Any]:
    """LocalBusiness markup for the home page; falls back to the bundled photos when no image is stored."""
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "LocalBusiness",
        "@id": settings.SITE_URL,
        "name": settings.SITE_NAME,
        "alternateName": _by_locale(locale, f"{settings.SITE_NAME} Cancún", f"{settings.SITE_NAME} Cancun"),
        "description": _by_locale(
            locale,
            f"Vuelos privados y tours aéreos panorámicos en Cancún y la Riviera Maya. {years} años de experiencia.",
            f"Private charter flights and panoramic air tours in Cancún and the Riviera Maya. {years} years of experience.",
        ),
        "url": settings.SITE_URL,
        "telephone": CONTACT_DEFAULTS["phone_display"],
        "email": CONTACT_DEFAULTS["email"],
        "logo": _logo(locale, _by_locale(
            locale,
            f"{settings.SITE_NAME} - Vuelos privados y tours aéreos en Cancún y Riviera Maya",
            f"{settings.SITE_NAME} - Charter flights and air tours in Cancún and Riviera Maya",
        )),
        "address": {
            "@type": "PostalAddress",
            "streetAddress": "Calle 1 Aeropuerto Cancún",
            "addressLocality": "Cancún",
            "addressRegion": "Quintana Roo",
            "postalCode": "77569",
            "addressCountry": "MX",
        },
        "geo": GEO,
        "image": [
            absolute_url(LOGO_PATH),
            absolute_url(hero_image_url or FALLBACK_HERO_IMAGE),
            absolute_url(fleet_image_url or FALLBACK_FLEET_IMAGE),
        ],
        "priceRange": "$299 - $1,500 USD",
        "openingHoursSpecification": {
            "@type": "OpeningHoursSpecification",
            "dayOfWeek": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
            "opens": "07:00",
            "closes": "19:00",
        },
        "sameAs": SOCIAL_PROFILES,
    }


def _service(name: str, description: str, area: str, min_price: str) -> Dict[str, Any]:
    return {
        "@type": "Service",
        "name": name,
        "description": description,
        "provider": {"@type": "LocalBusiness", "name": settings.SITE_NAME},
        "areaServed": {"@type": "Place", "name": area},
        "offers": {
            "@type": "Offer",
            "priceSpecification": {"@type": "PriceSpecification", "priceCurrency": "USD", "minPrice": min_price},
        },
    }


def service_schema(locale: str) -> Dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@graph": [
            _service(
                _by_locale(locale, "Vuelos Privados", "Private Charter Flights"),
                _by_locale(
                    locale,
                    "Vuelos privados a destinos en México, USA y Centroamérica",
                    "Private flights to destinations in Mexico, USA, and Central America",
                ),
                "Riviera Maya, Mexico",
                "450",
            ),
            _service(
                _by_locale(locale, "Tours Aéreos Panorámicos", "Panoramic Air Tours"),
                _by_locale(
                    locale,
                    "Tours aéreos sobre Cancún, Tulum, Chichén Itzá y más",
                    "Air tours over Cancún, Tulum, Chichén Itzá and more",
                ),
                "Cancún, Quintana Roo",
                "299",
            ),
        ],
    }


def organization_schema(locale: str) -> Dict[str, Any]:
    return {
        "@context": SCHEMA_CONTEXT,
        "@type": "Organization",
        "@id": f"{settings.SITE_URL}/#organization",
        "name": settings.SITE_NAME,
        "url": settings.SITE_URL,
        "logo": _logo(locale, _by_locale(
            locale,
            f"{settings.SITE_NAME} - Empresa de vuelos privados y tours aéreos en Cancún, México",
            f"{settings.SITE_NAME} - Charter flights and air tours company in Cancún, Mexico",
        )),
        "foundingDate": str(settings.COMPANY_FOUNDED_YEAR),
        "areaServed": [
            {"@type": "GeoCircle", "geoMidpoint": GEO, "geoRadius": "500 km"},
            {"@type": "Place", "name": "Cancún"},
            {"@type": "Place", "name": "Riviera Maya"},
            {"@type": "Place", "name": "Quintana Roo"},
        ],
        "contactPoint": {
            "@type": "ContactPoint",
            "telephone": CONTACT_DEFAULTS["phone_display"],
            "contactType": _by_locale(locale, "Reservaciones", "Reservations"),
            "email": CONTACT_DEFAULTS["email"],
            "availableLanguage": ["Spanish", "English"],
            "areaServed": "MX",
        },
        "sameAs": SOCIAL_PROFILES,
        "slogan": _by_locale(
            locale,
            "La forma más rápida y exclusiva de explorar el Caribe mexicano",
            "The fastest and most exclusive way to explore the Mexican Caribbean",
        ),
    }


def home_schemas(
        locale: str,
        years: str,
        hero_image_url: Optional[str] = None,
        fleet_image_url: Optional[str] = None,
) -> List[Dict[str, Any]]:
    return [
        local_business_schema(locale, years, hero_image_url, fleet_image_url),
        service_schema(locale),
        organization_schema(locale),
    ]
