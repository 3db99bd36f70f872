# src/vuelatour_site/resolver.py

"""
Page content resolution.

Each `load_*` coroutine validates the locale, fetches the rows a page needs
from the content store and turns them into a render-ready payload with its
metadata. Missing rows and empty language columns fall back to the static
strings in `locales`; nothing here raises on backend trouble because the
store already degraded those to `None` / `[]`.
"""

import asyncio
import re
from collections import Counter
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import quote

from markdown_it import MarkdownIt
from pydantic import BaseModel

from . import locales as L
from .config import settings
from .content_store import ContentStore
from .errors import ContentNotFound
from .metadata import PageMetadata, build_metadata, home_schemas
from .records import (
    ContactInfoRecord,
    ContactRequestRecord,
    DestinationRecord,
    LegalPageRecord,
    Phone,
    Record,
    SiteContentRecord,
    SiteImageRecord,
    TourRecord,
)

DESTINATIONS_TABLE = "destinations"
TOURS_TABLE = "air_tours"
LEGAL_TABLE = "legal_pages"
CONTENT_TABLE = "site_content"
IMAGES_TABLE = "site_images"
CONTACT_TABLE = "contact_info"
REQUESTS_TABLE = "contact_requests"

CHARTER_PATH = "/charter-flights"
TOURS_PATH = "/air-tours"
CONTACT_PATH = "/contact"

OTHER_ITEMS_LIMIT = 3

Offer = Union[DestinationRecord, TourRecord]


# --- Field resolution ---

def resolve_text(
        record: Optional[Record],
        field: str,
        locale: str,
        fallback: Mapping[str, str],
) -> str:
    """`record.<field>_<locale>` when it has text, otherwise the static fallback for the locale."""
    value = record.localized(field, locale) if record is not None else None
    return value or fallback[locale]


MARKDOWN = MarkdownIt("commonmark", {"html": False})


def render_markdown(text: str) -> str:
    """Stored legal bodies are Markdown; raw HTML in them is escaped, not passed through."""
    return MARKDOWN.render(text)


def resolve_body(record: Optional[Record], field: str, locale: str) -> Optional[str]:
    """Body text or None; templates show the coming-soon placeholder for None."""
    return record.localized(field, locale) if record is not None else None


def select_image(images: Sequence[SiteImageRecord], category: str) -> Optional[SiteImageRecord]:
    """The primary image of a category, else its first image, else None."""
    in_category = [img for img in images if (img.category or "other") == category]
    for img in in_category:
        if img.is_primary:
            return img
    return in_category[0] if in_category else None


def years_of_experience(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{now.year - settings.COMPANY_FOUNDED_YEAR}+"


def slugify(text: str) -> str:
    return re.sub(r"\s+", "-", text.strip().lower())


def content_map(rows: Sequence[SiteContentRecord]) -> Dict[str, Dict[str, Optional[str]]]:
    return {row.key: {locale: row.localized("value", locale) for locale in L.SUPPORTED_LOCALES} for row in rows}


def most_requested(
        requests: Sequence[ContactRequestRecord],
        destinations: Sequence[DestinationRecord],
        tours: Sequence[TourRecord],
) -> Tuple[Optional[Offer], str]:
    """
    Finds the destination or tour named most often in contact requests.
    Returns (item, kind) where kind is 'charter' or 'tour'; item is None when nothing matches.
    """
    counts: Counter = Counter()
    kinds: Dict[str, str] = {}
    for request in requests:
        if not request.destination or not request.destination.strip():
            continue
        slug = slugify(request.destination)
        counts[slug] += 1
        kinds.setdefault(slug, request.service_type or "charter")

    if not counts:
        return None, "charter"

    # Counter.most_common keeps first-seen order on ties
    slug, _ = counts.most_common(1)[0]

    def matches(item: Offer) -> bool:
        return item.slug == slug or slug in item.name_es.lower() or slug in item.name_en.lower()

    # The kind follows the table the match came from, not the requested service_type
    for destination in destinations:
        if matches(destination):
            return destination, "charter"
    for tour in tours:
        if matches(tour):
            return tour, "tour"
    return None, kinds[slug]


# --- Page payloads ---

class HomePage(BaseModel):
    locale: str
    metadata: PageMetadata
    content: Dict[str, Dict[str, Optional[str]]]
    destinations: List[DestinationRecord]
    tours: List[TourRecord]
    hero_image: Optional[SiteImageRecord] = None
    fleet_image: Optional[SiteImageRecord] = None
    featured_destination: Optional[DestinationRecord] = None
    featured_tour: Optional[TourRecord] = None
    has_popular_data: bool = False
    schemas: List[Dict[str, Any]] = []


class LegalPage(BaseModel):
    locale: str
    slug: str
    metadata: PageMetadata
    title: str
    body: Optional[str] = None
    body_html: Optional[str] = None
    coming_soon: str
    updated_at: Optional[str] = None


class ListingPage(BaseModel):
    locale: str
    metadata: PageMetadata
    destinations: List[DestinationRecord] = []
    tours: List[TourRecord] = []


class DetailPage(BaseModel):
    locale: str
    kind: str
    metadata: PageMetadata
    item: Offer
    name: str
    description: Optional[str] = None
    long_description: Optional[str] = None
    coming_soon: str
    others: List[Offer] = []
    highlights: List[str] = []


class ContactPage(BaseModel):
    locale: str
    metadata: PageMetadata
    email: str
    phones: List[Phone]
    address: str
    hours: str
    whatsapp_url: str
    google_maps_embed: Optional[str] = None


# --- Loaders ---

async def load_home_page(locale: str, store: ContentStore) -> HomePage:
    locale = L.validate_locale(locale)

    destinations, tours, content_rows, images = await asyncio.gather(
        store.list(DESTINATIONS_TABLE, DestinationRecord, filters={"is_active": True}, order="display_order"),
        store.list(TOURS_TABLE, TourRecord, filters={"is_active": True}, order="display_order"),
        store.list(CONTENT_TABLE, SiteContentRecord),
        store.list(IMAGES_TABLE, SiteImageRecord),
    )

    requests = await store.list(
        REQUESTS_TABLE, ContactRequestRecord, not_empty=("destination",)
    )
    popular, _ = most_requested(requests, destinations, tours)

    hero_image = select_image(images, "hero")
    fleet_image = select_image(images, "fleet")

    if hero_image is not None:
        image_alt = hero_image.localized("alt", locale) or settings.SITE_NAME
    else:
        image_alt = L.HOME_IMAGE_ALT[locale]

    years = years_of_experience()
    metadata = build_metadata(
        locale,
        "",
        title=L.HOME_TITLES[locale],
        description=L.HOME_DESCRIPTIONS[locale].format(years=years),
        image=hero_image.url if hero_image else None,
        image_alt=image_alt,
        keywords=L.HOME_KEYWORDS[locale],
    )

    featured_tour = popular if isinstance(popular, TourRecord) else (tours[0] if tours else None)
    featured_destination = (
        popular if isinstance(popular, DestinationRecord) else (destinations[0] if destinations else None)
    )

    return HomePage(
        locale=locale,
        metadata=metadata,
        content=content_map(content_rows),
        destinations=destinations,
        tours=tours,
        hero_image=hero_image,
        fleet_image=fleet_image,
        featured_destination=featured_destination,
        featured_tour=featured_tour,
        has_popular_data=popular is not None,
        schemas=home_schemas(
            locale,
            years,
            hero_image_url=hero_image.url if hero_image else None,
            fleet_image_url=fleet_image.url if fleet_image else None,
        ),
    )


async def load_legal_page(locale: str, slug: str, store: ContentStore) -> LegalPage:
    locale = L.validate_locale(locale)
    if slug not in L.FALLBACK_TITLES:
        raise ContentNotFound(f"No legal page '{slug}'")

    page = await store.get_one(LEGAL_TABLE, LegalPageRecord, filters={"slug": slug})
    title = resolve_text(page, "title", locale, L.FALLBACK_TITLES[slug])
    description = L.LEGAL_DESCRIPTIONS[slug][locale]
    body = resolve_body(page, "content", locale)
    updated_at = (
        L.format_long_date(page.updated_at, locale) if page is not None and page.updated_at else None
    )

    return LegalPage(
        locale=locale,
        slug=slug,
        metadata=build_metadata(locale, f"/{slug}", title=f"{title} | {settings.SITE_NAME}", description=description),
        title=title,
        body=body,
        body_html=render_markdown(body) if body else None,
        coming_soon=L.COMING_SOON[locale],
        updated_at=updated_at,
    )


async def load_destinations_page(locale: str, store: ContentStore) -> ListingPage:
    locale = L.validate_locale(locale)
    destinations = await store.list(
        DESTINATIONS_TABLE, DestinationRecord, filters={"is_active": True}, order="display_order"
    )
    return ListingPage(
        locale=locale,
        metadata=build_metadata(
            locale,
            CHARTER_PATH,
            title=L.CHARTER_TITLES[locale],
            description=L.CHARTER_DESCRIPTIONS[locale],
            image_alt=L.CHARTER_IMAGE_ALT[locale],
            keywords=L.CHARTER_KEYWORDS[locale],
        ),
        destinations=destinations,
    )


async def load_tours_page(locale: str, store: ContentStore) -> ListingPage:
    locale = L.validate_locale(locale)
    tours = await store.list(TOURS_TABLE, TourRecord, filters={"is_active": True}, order="display_order")
    return ListingPage(
        locale=locale,
        metadata=build_metadata(
            locale,
            TOURS_PATH,
            title=L.TOURS_TITLES[locale],
            description=L.TOURS_DESCRIPTIONS[locale],
            image_alt=L.TOURS_IMAGE_ALT[locale],
            keywords=L.TOURS_KEYWORDS[locale],
        ),
        tours=tours,
    )


def _destination_metadata(locale: str, destination: DestinationRecord) -> PageMetadata:
    name = destination.localized("name", locale) or destination.slug
    description = destination.localized("description", locale)
    flight_time = destination.flight_time or "20-45 min"
    if locale == "es":
        title = destination.meta_title_es or f"Vuelo Privado a {name} desde Cancún | {settings.SITE_NAME}"
        meta_description = destination.meta_description_es or description or (
            f"Vuelo privado desde Cancún a {name}. Tiempo de vuelo: {flight_time}. "
            f"Servicio exclusivo y horarios flexibles. Reserva hoy."
        )
        alt = f"Vuelo privado a {name} - {settings.SITE_NAME}"
        keywords = f"vuelo privado {name.lower()}, charter {name.lower()}, avion privado cancun {name.lower()}"
    else:
        title = destination.meta_title_en or f"Private Flight to {name} from Cancún | {settings.SITE_NAME}"
        meta_description = destination.meta_description_en or description or (
            f"Private flight from Cancún to {name}. Flight time: {flight_time}. "
            f"Exclusive service and flexible schedules. Book today."
        )
        alt = f"Private flight to {name} - {settings.SITE_NAME}"
        keywords = f"private flight {name.lower()}, charter {name.lower()}, private plane cancun {name.lower()}"
    return build_metadata(
        locale,
        f"{CHARTER_PATH}/{destination.slug}",
        title=title,
        description=meta_description,
        image=destination.image_url,
        image_alt=alt,
        keywords=keywords,
    )


def _tour_metadata(locale: str, tour: TourRecord) -> PageMetadata:
    name = tour.localized("name", locale) or tour.slug
    description = tour.localized("description", locale)
    duration = tour.duration or "30-60 min"
    if locale == "es":
        title = tour.meta_title_es or f"{name} - Tour Aéreo en Cancún | {settings.SITE_NAME}"
        meta_description = tour.meta_description_es or description or (
            f"Tour aéreo panorámico: {name}. Duración: {duration}. "
            f"Vive una experiencia única sobrevolando el Caribe mexicano. Reserva hoy."
        )
        alt = f"Tour aéreo {name} - {settings.SITE_NAME}"
        keywords = (
            f"tour aereo {name.lower()}, paseo aereo cancun, vuelo panoramico {name.lower()}, experiencia aerea cancun"
        )
    else:
        title = tour.meta_title_en or f"{name} - Air Tour in Cancún | {settings.SITE_NAME}"
        meta_description = tour.meta_description_en or description or (
            f"Panoramic air tour: {name}. Duration: {duration}. "
            f"Live a unique experience flying over the Mexican Caribbean. Book today."
        )
        alt = f"Air tour {name} - {settings.SITE_NAME}"
        keywords = (
            f"air tour {name.lower()}, aerial tour cancun, panoramic flight {name.lower()}, aerial experience cancun"
        )
    return build_metadata(
        locale,
        f"{TOURS_PATH}/{tour.slug}",
        title=title,
        description=meta_description,
        image=tour.image_url,
        image_alt=alt,
        keywords=keywords,
    )


async def load_destination_detail(locale: str, slug: str, store: ContentStore) -> DetailPage:
    locale = L.validate_locale(locale)
    destination, others = await asyncio.gather(
        store.get_one(DESTINATIONS_TABLE, DestinationRecord, filters={"slug": slug, "is_active": True}),
        store.list(
            DESTINATIONS_TABLE,
            DestinationRecord,
            filters={"is_active": True},
            exclude={"slug": slug},
            order="display_order",
            limit=OTHER_ITEMS_LIMIT,
        ),
    )
    if destination is None:
        raise ContentNotFound(L.DESTINATION_NOT_FOUND[locale])

    return DetailPage(
        locale=locale,
        kind="charter",
        metadata=_destination_metadata(locale, destination),
        item=destination,
        name=destination.localized("name", locale) or destination.slug,
        description=resolve_body(destination, "description", locale),
        long_description=resolve_body(destination, "long_description", locale),
        coming_soon=L.COMING_SOON[locale],
        others=others,
    )


async def load_tour_detail(locale: str, slug: str, store: ContentStore) -> DetailPage:
    locale = L.validate_locale(locale)
    tour, others = await asyncio.gather(
        store.get_one(TOURS_TABLE, TourRecord, filters={"slug": slug, "is_active": True}),
        store.list(
            TOURS_TABLE,
            TourRecord,
            filters={"is_active": True},
            exclude={"slug": slug},
            order="display_order",
            limit=OTHER_ITEMS_LIMIT,
        ),
    )
    if tour is None:
        raise ContentNotFound(L.TOUR_NOT_FOUND[locale])

    return DetailPage(
        locale=locale,
        kind="tour",
        metadata=_tour_metadata(locale, tour),
        item=tour,
        name=tour.localized("name", locale) or tour.slug,
        description=resolve_body(tour, "description", locale),
        long_description=resolve_body(tour, "long_description", locale),
        coming_soon=L.COMING_SOON[locale],
        others=others,
        highlights=[h for h in (getattr(tour, f"highlights_{locale}") or []) if h and h.strip()],
    )


def whatsapp_link(number: str, message: Optional[str]) -> str:
    if message:
        return f"https://wa.me/{number}?text={quote(message, safe='')}"
    return f"https://wa.me/{number}"


async def load_contact_page(locale: str, store: ContentStore) -> ContactPage:
    locale = L.validate_locale(locale)
    info = await store.get_one(CONTACT_TABLE, ContactInfoRecord, filters={})
    defaults = L.CONTACT_DEFAULTS

    if info is not None and info.phones:
        phones = list(info.phones)
    else:
        phones = [Phone(
            display=(info.phone if info is not None and info.phone else defaults["phone_display"]),
            link=(info.phone_link if info is not None and info.phone_link else defaults["phone_link"]),
        )]

    number = (info.whatsapp_number if info is not None and info.whatsapp_number else defaults["whatsapp_number"])
    message = info.localized("whatsapp_message", locale) if info is not None else None

    return ContactPage(
        locale=locale,
        metadata=build_metadata(
            locale,
            CONTACT_PATH,
            title=L.CONTACT_TITLES[locale],
            description=L.CONTACT_DESCRIPTIONS[locale],
        ),
        email=(info.email if info is not None and info.email else defaults["email"]),
        phones=phones,
        address=resolve_text(info, "address", locale, defaults["address"]),
        hours=resolve_text(info, "hours", locale, defaults["hours"]),
        whatsapp_url=whatsapp_link(number, message),
        google_maps_embed=info.google_maps_embed if info is not None else None,
    )
