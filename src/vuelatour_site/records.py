# src/vuelatour_site/records.py

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class Record(BaseModel):
    """
    Base for rows returned by the content store.
    Unknown columns are ignored so new columns in the backend do not break the site.
    """
    model_config = ConfigDict(extra="ignore")

    def localized(self, field: str, locale: str) -> Optional[str]:
        """Returns `<field>_<locale>`, or None when the column is missing, null or blank."""
        value = getattr(self, f"{field}_{locale}", None)
        if isinstance(value, str) and value.strip():
            return value
        return None


class DestinationRecord(Record):
    id: Optional[str] = None
    slug: str
    name_es: str
    name_en: str
    description_es: Optional[str] = None
    description_en: Optional[str] = None
    long_description_es: Optional[str] = None
    long_description_en: Optional[str] = None
    meta_title_es: Optional[str] = None
    meta_title_en: Optional[str] = None
    meta_description_es: Optional[str] = None
    meta_description_en: Optional[str] = None
    flight_time: Optional[str] = None
    price_from: Optional[float] = None
    image_url: Optional[str] = None
    max_passengers: Optional[int] = None
    is_active: bool = True
    display_order: int = 0
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class TourRecord(Record):
    id: Optional[str] = None
    slug: str
    name_es: str
    name_en: str
    description_es: Optional[str] = None
    description_en: Optional[str] = None
    long_description_es: Optional[str] = None
    long_description_en: Optional[str] = None
    meta_title_es: Optional[str] = None
    meta_title_en: Optional[str] = None
    meta_description_es: Optional[str] = None
    meta_description_en: Optional[str] = None
    highlights_es: Optional[List[str]] = None
    highlights_en: Optional[List[str]] = None
    duration: Optional[str] = None
    price_from: Optional[float] = None
    image_url: Optional[str] = None
    is_active: bool = True
    display_order: int = 0
    updated_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class LegalPageRecord(Record):
    slug: str
    title_es: Optional[str] = None
    title_en: Optional[str] = None
    content_es: Optional[str] = None
    content_en: Optional[str] = None
    updated_at: Optional[datetime] = None


class SiteContentRecord(Record):
    key: str
    value_es: Optional[str] = None
    value_en: Optional[str] = None


class SiteImageRecord(Record):
    url: str
    category: Optional[str] = None
    is_primary: bool = False
    alt_es: Optional[str] = None
    alt_en: Optional[str] = None

    @field_validator("is_primary", mode="before")
    @classmethod
    def null_is_not_primary(cls, v: Any) -> Any:
        return False if v is None else v


class Phone(BaseModel):
    display: str
    link: str


class ContactInfoRecord(Record):
    email: Optional[str] = None
    phones: List[Phone] = []
    phone: Optional[str] = None
    phone_link: Optional[str] = None
    address_es: Optional[str] = None
    address_en: Optional[str] = None
    hours_es: Optional[str] = None
    hours_en: Optional[str] = None
    whatsapp_number: Optional[str] = None
    whatsapp_message_es: Optional[str] = None
    whatsapp_message_en: Optional[str] = None
    google_maps_embed: Optional[str] = None

    @field_validator("phones", mode="before")
    @classmethod
    def null_phones(cls, v: Any) -> Any:
        # The column is JSON and may hold anything; only a list is usable
        return v if isinstance(v, list) else []


class SiteSettingRecord(Record):
    key: str
    value: Any = None


class ContactRequestRecord(Record):
    destination: Optional[str] = None
    service_type: Optional[str] = None
