# src/vuelatour_site/sitemap.py

import asyncio
import enum
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from pydantic import BaseModel

from .config import settings
from .content_store import ContentStore
from .locales import SUPPORTED_LOCALES
from .records import DestinationRecord, TourRecord
from .resolver import CHARTER_PATH, DESTINATIONS_TABLE, TOURS_PATH, TOURS_TABLE

ROOT_PRIORITY = 1.0
DETAIL_PRIORITY = 0.9
STATIC_PRIORITY = 0.8


class ChangeFrequency(str, enum.Enum):
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class SitemapEntry(BaseModel):
    url: str
    last_modified: datetime
    change_frequency: ChangeFrequency
    priority: float


def build_sitemap(
        destinations: Sequence[DestinationRecord],
        tours: Sequence[TourRecord],
        now: Optional[datetime] = None,
        locales: Sequence[str] = SUPPORTED_LOCALES,
        static_routes: Optional[Sequence[str]] = None,
        base_url: Optional[str] = None,
) -> List[SitemapEntry]:
    """
    One entry per locale for every static route, then one per locale for every
    destination and tour. Rows without `updated_at` are stamped with `now`.
    """
    now = now or datetime.now(timezone.utc)
    static_routes = settings.STATIC_ROUTES if static_routes is None else static_routes
    base_url = settings.SITE_URL if base_url is None else base_url

    entries: List[SitemapEntry] = []
    for route in static_routes:
        for locale in locales:
            entries.append(SitemapEntry(
                url=f"{base_url}/{locale}{route}",
                last_modified=now,
                change_frequency=ChangeFrequency.MONTHLY,
                priority=ROOT_PRIORITY if route == "" else STATIC_PRIORITY,
            ))

    for prefix, rows in ((CHARTER_PATH, destinations), (TOURS_PATH, tours)):
        for row in rows:
            for locale in locales:
                entries.append(SitemapEntry(
                    url=f"{base_url}/{locale}{prefix}/{row.slug}",
                    last_modified=row.updated_at or now,
                    change_frequency=ChangeFrequency.WEEKLY,
                    priority=DETAIL_PRIORITY,
                ))
    return entries


async def fetch_sitemap(store: ContentStore, now: Optional[datetime] = None) -> List[SitemapEntry]:
    destinations, tours = await asyncio.gather(
        store.list(DESTINATIONS_TABLE, DestinationRecord, filters={"is_active": True}),
        store.list(TOURS_TABLE, TourRecord, filters={"is_active": True}),
    )
    entries = build_sitemap(destinations, tours, now=now)
    print(f"SITEMAP: {len(entries)} entries ({len(destinations)} destinations, {len(tours)} tours).")
    return entries


def render_sitemap_xml(entries: Sequence[SitemapEntry]) -> str:
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
    ]
    for entry in entries:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(entry.url)}</loc>")
        lines.append(f"    <lastmod>{entry.last_modified.isoformat()}</lastmod>")
        lines.append(f"    <changefreq>{entry.change_frequency.value}</changefreq>")
        lines.append(f"    <priority>{entry.priority:.1f}</priority>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"
