from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Type

from pydantic import ValidationError

from app.schemas import content as m
from app.services.errors import ValidationFailed
from app.services.svg import sanitize_svg


ORDER_KEY = "display_order"

# Fixed id of the single row kept in each site-settings table
SINGLETON_ID = "00000000-0000-0000-0000-000000000001"

REQUIRED_FIELDS_MESSAGE = "Lütfen tüm zorunlu alanları doldurun"


@dataclass(frozen=True)
class ArrayField:
    """
    A repeatable group inside a form (highlights, program days, tags...).

    child_table=None means the list is stored inline on the record as JSON.
    """
    name: str
    template: Mapping[str, Any]
    child_table: str | None = None
    ordered: bool = True
    fixed: bool = False


@dataclass(frozen=True)
class UploadTarget:
    """
    Where an uploaded file lands in the draft.

    Scalar targets set `field` to the stored path. Append targets add a new
    item to the `field` array with the path under `item_path_key`.
    """
    name: str
    field: str
    policy: str
    append: bool = False
    item_path_key: str = "path"
    item_alt_key: str = "alt"
    item_extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FlagCap:
    limit: int
    message: str


@dataclass(frozen=True)
class EntityShape:
    key: str
    table: str
    label: str
    label_plural: str
    model: Type[m.RecordModel]
    required: tuple[str, ...] = ()
    order: str | None = None
    select: str = "*"
    arrays: tuple[ArrayField, ...] = ()
    uploads: tuple[UploadTarget, ...] = ()
    asset_fields: tuple[str, ...] = ()
    asset_items: tuple[tuple[str, str], ...] = ()
    svg_fields: tuple[str, ...] = ()
    flags: tuple[str, ...] = ()
    flag_caps: Mapping[str, FlagCap] = field(default_factory=dict)
    tabs: tuple[str, ...] = ("general",)
    search_fields: tuple[str, ...] = ()
    singleton: bool = False

    def defaults(self) -> dict[str, Any]:
        return self.model().model_dump()

    def array(self, name: str) -> ArrayField:
        for a in self.arrays:
            if a.name == name:
                return a
        raise KeyError(f"{self.key} has no array field {name}")

    def upload(self, name: str) -> UploadTarget:
        for u in self.uploads:
            if u.name == name:
                return u
        raise KeyError(f"{self.key} has no upload target {name}")

    @property
    def child_arrays(self) -> tuple[ArrayField, ...]:
        return tuple(a for a in self.arrays if a.child_table)

    def missing_required(self, draft: Mapping[str, Any], *, partial: bool = False) -> list[str]:
        keys = [k for k in self.required if not partial or k in draft]
        return [k for k in keys if is_blank(draft.get(k))]

    def check_required(self, draft: Mapping[str, Any], *, partial: bool = False) -> None:
        missing = self.missing_required(draft, partial=partial)
        if missing:
            raise ValidationFailed(
                REQUIRED_FIELDS_MESSAGE,
                details=[{"field": k, "reason": "required"} for k in missing],
            )

    def coerce(self, draft: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
        """
        Validate a draft against the record model and return plain values.

        With partial=True only the keys present in the draft are returned,
        so an update never resets untouched columns to their defaults.
        """
        try:
            data = self.model.model_validate(dict(draft)).model_dump()
        except ValidationError as e:
            raise ValidationFailed(
                "Formda geçersiz değerler var",
                details=[
                    {"field": ".".join(str(p) for p in err["loc"]), "reason": err["msg"]}
                    for err in e.errors()
                ],
            )

        for name in self.svg_fields:
            if name in data:
                data[name] = sanitize_svg(data[name])

        if partial:
            data = {k: v for k, v in data.items() if k in draft}
        return data

    def to_row(self, draft: Mapping[str, Any], *, partial: bool = False) -> dict[str, Any]:
        """Coerced values minus the arrays that live in child tables."""
        data = self.coerce(draft, partial=partial)
        for a in self.child_arrays:
            data.pop(a.name, None)
        return data

    def asset_paths(self, record: Mapping[str, Any]) -> list[str]:
        paths = [record.get(f) for f in self.asset_fields]
        for array_name, key in self.asset_items:
            for item in record.get(array_name) or []:
                paths.append((item or {}).get(key))
        return [p for p in paths if p]


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


# --- shapes ----------------------------------------------------------------

POPULAR_TOUR_LIMIT = 6
ACTIVE_STATS_LIMIT = 3

MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")

TOURS = EntityShape(
    key="tours",
    table="tours",
    label="Tur",
    label_plural="Turlar",
    model=m.TourRecord,
    required=("title", "region", "duration", "tour_type_id"),
    order="created_at.desc",
    select="*,tour_type:tour_type_settings(id,type,header_title)",
    arrays=(
        ArrayField("highlights", {"content": ""}, child_table="tour_highlights"),
        ArrayField("inclusions", {"content": ""}, child_table="tour_inclusions"),
        ArrayField("tips", {"content": "", "icon_name": "info"}, child_table="tour_tips", ordered=False),
        ArrayField(
            "daily_programs",
            {"day_range": "", "title": "", "content": ""},
            child_table="tour_daily_programs",
        ),
        ArrayField(
            "dates_prices",
            {"travel_period": "", "price_category": "Standart", "airline": "", "price": 0, "currency": "USD"},
            child_table="tour_dates_prices",
        ),
        ArrayField(
            "images",
            {"storage_path": "", "alt_text": "", "image_type": "gallery"},
            child_table="tour_images",
        ),
        ArrayField(
            "weather",
            {"month": "", "temperature": 0, "rainfall": 0, "is_best_period": False},
            child_table="tour_weather_data",
            ordered=False,
            fixed=True,
        ),
    ),
    uploads=(
        UploadTarget("hero", field="hero_image_path", policy="tour-hero"),
        UploadTarget(
            "gallery",
            field="images",
            policy="tour-gallery",
            append=True,
            item_path_key="storage_path",
            item_alt_key="alt_text",
            item_extra={"image_type": "gallery"},
        ),
        UploadTarget(
            "map",
            field="images",
            policy="tour-map",
            append=True,
            item_path_key="storage_path",
            item_alt_key="alt_text",
            item_extra={"image_type": "map"},
        ),
    ),
    asset_fields=("hero_image_path",),
    flags=("popular_tour", "opportunity_tour", "destination_status"),
    flag_caps={
        "popular_tour": FlagCap(POPULAR_TOUR_LIMIT, "En fazla 6 adet popüler tur seçebilirsiniz!"),
    },
    tabs=("general", "images", "highlights", "program", "prices", "weather", "tips"),
    search_fields=("title", "region", "duration"),
)

BLOG_POSTS = EntityShape(
    key="blog_posts",
    table="blog_posts",
    label="Blog yazısı",
    label_plural="Blog yazıları",
    model=m.BlogPostRecord,
    required=("title", "excerpt", "category_name", "author_name", "author_title"),
    order="published_at.desc",
    arrays=(
        ArrayField("content_sections", {"type": "paragraph", "content": ""}, ordered=False),
        ArrayField("content_images", {"path": "", "alt": ""}, ordered=False),
        ArrayField("tags", {"name": "", "slug": ""}, ordered=False),
    ),
    uploads=(
        UploadTarget("hero", field="hero_image", policy="blog-hero"),
        UploadTarget("author", field="author_image", policy="blog-author"),
        UploadTarget("content", field="content_images", policy="blog-content", append=True),
    ),
    asset_fields=("hero_image", "author_image"),
    asset_items=(("content_images", "path"),),
    flags=("is_published", "is_featured"),
    tabs=("general", "content", "media", "tags", "author"),
    search_fields=("title", "category_name", "author_name"),
)

TOUR_TYPES = EntityShape(
    key="tour_types",
    table="tour_type_settings",
    label="Tur tipi",
    label_plural="Tur tipleri",
    model=m.TourTypeRecord,
    required=(
        "type", "header_title", "hero_title", "hero_subtitle",
        "left_title", "left_description", "section_title", "section_subtitle",
    ),
    order="created_at.asc",
    uploads=(
        UploadTarget("hero", field="hero_image_path", policy="tour-types"),
        UploadTarget("right_1", field="right_image_1", policy="tour-types"),
        UploadTarget("right_2", field="right_image_2", policy="tour-types"),
    ),
    asset_fields=("hero_image_path", "right_image_1", "right_image_2"),
    svg_fields=("type_icon_svg",),
    tabs=("general", "hero", "sections"),
    search_fields=("type", "header_title"),
)

SERVICES = EntityShape(
    key="services",
    table="services",
    label="Hizmet",
    label_plural="Hizmetler",
    model=m.ServiceRecord,
    required=("name",),
    order="display_order.asc",
    uploads=(UploadTarget("image", field="image_path", policy="services"),),
    asset_fields=("image_path",),
    svg_fields=("icon_svg",),
    flags=("is_active",),
)

PARTNERS = EntityShape(
    key="partners",
    table="partners",
    label="Partner",
    label_plural="Partnerler",
    model=m.PartnerRecord,
    required=("name",),
    order="display_order.asc",
    uploads=(UploadTarget("logo", field="logo_path", policy="partners"),),
    asset_fields=("logo_path",),
    flags=("is_active",),
)

STATS = EntityShape(
    key="stats",
    table="stats",
    label="İstatistik",
    label_plural="İstatistikler",
    model=m.StatRecord,
    required=("title",),
    order="display_order.asc",
    svg_fields=("stat_icon_svg",),
    flags=("is_active",),
    flag_caps={"is_active": FlagCap(ACTIVE_STATS_LIMIT, "En fazla 3 istatistik eklenebilir!")},
)

MAP_LOCATIONS = EntityShape(
    key="map_locations",
    table="map_locations",
    label="Konum",
    label_plural="Konumlar",
    model=m.MapLocationRecord,
    required=("name",),
    order="created_at.asc",
    flags=("is_active",),
    search_fields=("name",),
)

REGION_IMAGES = EntityShape(
    key="region_images",
    table="region_images",
    label="Bölge görseli",
    label_plural="Bölge görselleri",
    model=m.RegionImageRecord,
    required=("region", "image_path"),
    order="region.asc",
    uploads=(UploadTarget("image", field="image_path", policy="region"),),
    asset_fields=("image_path",),
)

AGENCIES = EntityShape(
    key="agencies",
    table="acentalar",
    label="Acenta",
    label_plural="Acentalar",
    model=m.AgencyRecord,
    required=("acenta_ismi", "email", "isim", "soyisim"),
    order="created_at.desc",
    search_fields=("acenta_ismi", "email", "isim", "soyisim", "sehir"),
)

PROFILES = EntityShape(
    key="profiles",
    table="profiles",
    label="Kullanıcı",
    label_plural="Kullanıcılar",
    model=m.ProfileRecord,
    required=("email",),
    order="created_at.desc",
    flags=("is_active",),
    search_fields=("email", "first_name", "last_name"),
)

HERO = EntityShape(
    key="hero",
    table="hero_settings",
    label="Hero ayarları",
    label_plural="Hero ayarları",
    model=m.HeroSettingsRecord,
    required=("title", "subtitle"),
    uploads=(UploadTarget("image", field="image_path", policy="hero"),),
    asset_fields=("image_path",),
    singleton=True,
)

LOGO = EntityShape(
    key="logo",
    table="logo_settings",
    label="Logo",
    label_plural="Logo",
    model=m.LogoSettingsRecord,
    uploads=(UploadTarget("image", field="logo_path", policy="logo"),),
    asset_fields=("logo_path",),
    singleton=True,
)

MAP = EntityShape(
    key="map",
    table="map_settings",
    label="Harita ayarları",
    label_plural="Harita ayarları",
    model=m.MapSettingsRecord,
    required=("title",),
    uploads=(UploadTarget("image", field="map_image_path", policy="map"),),
    asset_fields=("map_image_path",),
    singleton=True,
)

FEATURED_SECTION = EntityShape(
    key="featured_section",
    table="featured_section_settings",
    label="Öne çıkan bölüm",
    label_plural="Öne çıkan bölüm",
    model=m.FeaturedSectionRecord,
    required=("title",),
    singleton=True,
)

OPPORTUNITY_SETTINGS = EntityShape(
    key="opportunity_settings",
    table="opportunity_settings",
    label="Fırsat sayfası ayarları",
    label_plural="Fırsat sayfası ayarları",
    model=m.OpportunitySettingsRecord,
    required=(
        "hero_title", "hero_subtitle", "hero_description", "hero_image_path",
        "left_title", "left_description", "right_image_1", "right_image_2",
        "section_title", "section_subtitle", "section_description",
    ),
    uploads=(
        UploadTarget("hero", field="hero_image_path", policy="opportunity"),
        UploadTarget("right_1", field="right_image_1", policy="opportunity"),
        UploadTarget("right_2", field="right_image_2", policy="opportunity"),
    ),
    asset_fields=("hero_image_path", "right_image_1", "right_image_2"),
    tabs=("hero", "left", "right", "section"),
    singleton=True,
)


_ENTITY_REGISTRY: dict[str, EntityShape] = {
    s.key: s
    for s in (
        TOURS, BLOG_POSTS, TOUR_TYPES, SERVICES, PARTNERS, STATS, MAP_LOCATIONS,
        REGION_IMAGES, AGENCIES, PROFILES,
        HERO, LOGO, MAP, FEATURED_SECTION, OPPORTUNITY_SETTINGS,
    )
}


def get_entity(key: str) -> EntityShape:
    if key not in _ENTITY_REGISTRY:
        raise KeyError(f"Unknown entity: {key}")
    return _ENTITY_REGISTRY[key]


def all_entities() -> list[EntityShape]:
    return list(_ENTITY_REGISTRY.values())
