from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


PriceCategory = Literal["Standart", "Bütçe", "Üst Segment"]
Currency = Literal["USD", "EUR", "TRY"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordModel(BaseModel):
    """
    Shape of an editable record. Every field has a default so an empty form
    can be built from the model; unknown keys (id, created_at, joins) are
    dropped when a row is written.
    """
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def null_text_to_default(cls, data):
        # Backend rows carry NULL for text columns that were never filled
        if not isinstance(data, dict):
            return data
        out = dict(data)
        for name, info in cls.model_fields.items():
            if out.get(name, "") is None and isinstance(info.default, str):
                out[name] = info.default
        return out


def _blank_number(v):
    # Number inputs arrive as "" when cleared
    if v is None or (isinstance(v, str) and not v.strip()):
        return 0
    return v


# --- tours ---------------------------------------------------------------

class TourHighlightItem(RecordModel):
    content: str = ""
    display_order: int = 1


class TourInclusionItem(RecordModel):
    content: str = ""
    display_order: int = 1


class TourTipItem(RecordModel):
    content: str = ""
    icon_name: str = "info"


class TourDailyProgramItem(RecordModel):
    day_range: str = ""
    title: str = ""
    content: str = ""
    display_order: int = 1


class TourDatePriceItem(RecordModel):
    travel_period: str = ""
    price_category: PriceCategory = "Standart"
    airline: str = ""
    price: float = 0
    currency: Currency = "USD"
    price_usd: float = 0
    price_eur: float = 0
    price_try: float = 0
    display_order: int = 1

    blank_numbers = field_validator("price", "price_usd", "price_eur", "price_try", mode="before")(_blank_number)


class TourImageItem(RecordModel):
    storage_path: str = ""
    alt_text: str = ""
    image_type: Literal["hero", "gallery", "map"] = "gallery"
    display_order: int = 1


class TourWeatherItem(RecordModel):
    month: str = ""
    temperature: float = 0
    rainfall: float = 0
    is_best_period: bool = False

    blank_numbers = field_validator("temperature", "rainfall", mode="before")(_blank_number)


class TourRecord(RecordModel):
    title: str = ""
    slug: str = ""
    region: str = ""
    duration: str = ""
    base_price: float = 0
    base_price_currency: Currency = "USD"
    short_description: str = ""
    long_description: str = ""
    hero_image_path: str = ""
    tour_type_id: str | None = None
    popular_tour: bool = False
    opportunity_tour: bool = False
    destination_status: bool = True

    highlights: list[TourHighlightItem] = Field(default_factory=list)
    inclusions: list[TourInclusionItem] = Field(default_factory=list)
    tips: list[TourTipItem] = Field(default_factory=list)
    daily_programs: list[TourDailyProgramItem] = Field(default_factory=list)
    dates_prices: list[TourDatePriceItem] = Field(default_factory=list)
    images: list[TourImageItem] = Field(default_factory=list)
    weather: list[TourWeatherItem] = Field(default_factory=list)

    blank_numbers = field_validator("base_price", mode="before")(_blank_number)


class TourTypeRecord(RecordModel):
    type: str = ""
    type_icon_svg: str = ""
    header_title: str = ""
    hero_title: str = ""
    hero_subtitle: str = ""
    hero_description: str = ""
    hero_image_path: str = ""
    left_title: str = ""
    left_description: str = ""
    right_image_1: str = ""
    right_image_2: str = ""
    section_title: str = ""
    section_subtitle: str = ""

    @field_validator("type")
    @classmethod
    def lower_type(cls, v: str) -> str:
        return v.strip().lower()


class RegionImageRecord(RecordModel):
    region: str = ""
    image_path: str = ""


# --- blog ----------------------------------------------------------------

class ContentImage(RecordModel):
    path: str = ""
    alt: str = ""


class BlogTag(RecordModel):
    name: str = ""
    slug: str = ""


class ContentSection(RecordModel):
    type: Literal["paragraph", "heading"] = "paragraph"
    content: str = ""


class BlogPostRecord(RecordModel):
    title: str = ""
    slug: str = ""
    excerpt: str = ""
    category_name: str = ""
    category_slug: str = ""
    hero_image: str = ""
    content_images: list[ContentImage] = Field(default_factory=list)
    published_at: str = Field(default_factory=_now_iso)
    read_time: int = 5
    author_name: str = ""
    author_title: str = ""
    author_image: str = ""
    tags: list[BlogTag] = Field(default_factory=list)
    content_sections: list[ContentSection] = Field(default_factory=list)
    is_published: bool = False
    is_featured: bool = False


# --- singleton settings --------------------------------------------------

class HeroSettingsRecord(RecordModel):
    title: str = "Hoş Geldiniz"
    subtitle: str = "Sizin için en iyi turları sunuyoruz"
    image_path: str | None = None


class LogoSettingsRecord(RecordModel):
    logo_path: str | None = None


class MapSettingsRecord(RecordModel):
    map_image_path: str | None = None
    title: str = "Türkiye Haritası"
    subtitle: str = "Keşfedilecek Rotalar"


class FeaturedSectionRecord(RecordModel):
    title: str = ""
    subtitle: str = ""
    description: str = ""
    is_active: bool = True
    display_order: int = 1


class OpportunitySettingsRecord(RecordModel):
    hero_title: str = ""
    hero_subtitle: str = ""
    hero_description: str = ""
    hero_image_path: str = ""
    left_title: str = ""
    left_description: str = ""
    right_image_1: str = ""
    right_image_2: str = ""
    section_title: str = ""
    section_subtitle: str = ""
    section_description: str = ""


# --- home page widgets ---------------------------------------------------

class MapLocationRecord(RecordModel):
    map_id: str | None = None
    name: str = ""
    description: str = ""
    x_position: float = Field(default=50, ge=0, le=100)
    y_position: float = Field(default=50, ge=0, le=100)
    is_active: bool = True


class ServiceRecord(RecordModel):
    name: str = ""
    short_description: str = ""
    long_description: str = ""
    icon_svg: str = ""
    image_path: str = ""
    display_order: int = 1
    is_active: bool = True


class PartnerRecord(RecordModel):
    name: str = ""
    logo_path: str = ""
    website_url: str = ""
    display_order: int = 1
    is_active: bool = True


class StatRecord(RecordModel):
    title: str = "RAKAMLARLA BİZ"
    subtitle_first: str = "Seyahatin"
    subtitle_second: str = "Geleceğini Şekillendiriyoruz"
    stat_value: float = 0
    stat_label: str = ""
    stat_description: str = ""
    stat_icon_svg: str = ""
    display_order: int = 1
    is_active: bool = True

    blank_numbers = field_validator("stat_value", mode="before")(_blank_number)


# --- users ---------------------------------------------------------------

class AgencyRecord(RecordModel):
    acenta_ismi: str = ""
    isim: str = ""
    soyisim: str = ""
    email: str = ""
    telefon: str = ""
    mobil_telefon: str = ""
    ulke: str = ""
    sehir: str = ""
    adres: str = ""
    cinsiyet: str = ""


class ProfileRecord(RecordModel):
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    role: str = "user"
    is_active: bool = True
