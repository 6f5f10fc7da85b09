from __future__ import annotations

import logging
from dataclasses import dataclass

from app.core.config import settings
from app.services.backend import BackendClient, BackendError
from app.services.errors import FileTooLarge, UploadRejected
from app.services.slugs import slugify, timestamp_ms


log = logging.getLogger(__name__)

MB = 1024 * 1024
GENERIC_MAX_BYTES = 5 * MB
LOGO_MAX_BYTES = 2 * MB
OPPORTUNITY_MAX_BYTES = 10 * MB

BLOG_POST_BUCKET = "blog-post-images"
BLOG_CONTENT_BUCKET = "blog-content-images"
BLOG_AUTHOR_BUCKET = "blog-author-images"
BLOG_BUCKETS = frozenset({BLOG_POST_BUCKET, BLOG_CONTENT_BUCKET, BLOG_AUTHOR_BUCKET})


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class UploadPolicy:
    """
    Where an uploaded image goes and what it may be.

    bucket=None means the site bucket. Blog buckets keep the bucket name in
    the stored path ("blog-post-images/<key>") so the path alone resolves.
    """
    category: str
    bucket: str | None = None
    max_bytes: int = GENERIC_MAX_BYTES
    overwrite: bool = False
    allowed_extensions: frozenset[str] | None = None

    @property
    def bucket_in_path(self) -> bool:
        return self.bucket in BLOG_BUCKETS


_OPPORTUNITY_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})

POLICIES: dict[str, UploadPolicy] = {
    "hero": UploadPolicy(category="hero"),
    "logo": UploadPolicy(category="logo", max_bytes=LOGO_MAX_BYTES, overwrite=True),
    "map": UploadPolicy(category="map", overwrite=True),
    "services": UploadPolicy(category="services"),
    "partners": UploadPolicy(category="partners"),
    "stats": UploadPolicy(category="stats"),
    "opportunity": UploadPolicy(
        category="opportunity",
        max_bytes=OPPORTUNITY_MAX_BYTES,
        overwrite=True,
        allowed_extensions=_OPPORTUNITY_EXTENSIONS,
    ),
    "tour-hero": UploadPolicy(category="tour-images/hero"),
    "tour-gallery": UploadPolicy(category="tour-images/gallery"),
    "tour-map": UploadPolicy(category="tour-images/map"),
    "region": UploadPolicy(category="region-images", overwrite=True),
    "tour-types": UploadPolicy(category="tour-types"),
    "blog-hero": UploadPolicy(category="", bucket=BLOG_POST_BUCKET),
    "blog-content": UploadPolicy(category="", bucket=BLOG_CONTENT_BUCKET),
    "blog-author": UploadPolicy(category="", bucket=BLOG_AUTHOR_BUCKET),
}


def get_policy(key: str) -> UploadPolicy:
    if key not in POLICIES:
        raise KeyError(f"Unknown upload policy: {key}")
    return POLICIES[key]


def _split_name(filename: str) -> tuple[str, str]:
    name = (filename or "").rsplit("/", 1)[-1]
    if "." in name.strip("."):
        base, ext = name.rsplit(".", 1)
        return base, ext.lower()
    return name, ""


def build_storage_path(category: str, original_file_name: str, *, now_ms: int | None = None) -> str:
    """
    "hero", "Kapadokya Günbatımı.JPG" -> "hero/kapadokya-gunbatimi-1718000000000.jpg"
    """
    base, ext = _split_name(original_file_name)
    stem = slugify(base) or "file"
    stamp = now_ms if now_ms is not None else timestamp_ms()
    name = f"{stem}-{stamp}" + (f".{ext}" if ext else "")
    folder = (category or "").strip("/")
    return f"{folder}/{name}" if folder else name


def is_absolute_url(value: str) -> bool:
    return value.startswith("http://") or value.startswith("https://")


def split_stored_path(stored_path: str, *, default_bucket: str | None = None) -> tuple[str, str]:
    head, _, rest = stored_path.partition("/")
    if head in BLOG_BUCKETS and rest:
        return head, rest
    return default_bucket or settings.site_bucket, stored_path


def resolve_public_url(client: BackendClient, stored_path: str | None, *, bucket: str | None = None) -> str:
    if not stored_path:
        return ""
    if is_absolute_url(stored_path):
        return stored_path
    b, key = split_stored_path(stored_path, default_bucket=bucket)
    return client.public_url(b, key)


def check_upload(policy: UploadPolicy, file: UploadedFile) -> None:
    """Raises before any network call when the file may not be uploaded."""
    if file is None or not file.data:
        raise UploadRejected("Lütfen bir görsel seçin")

    if not (file.content_type or "").lower().startswith("image/"):
        raise UploadRejected("Lütfen geçerli bir görsel dosyası seçin")

    if file.size > policy.max_bytes:
        limit_mb = policy.max_bytes // MB
        raise FileTooLarge(
            f"Görsel boyutu {limit_mb}MB'dan küçük olmalıdır",
            details=[{"size": file.size, "max_bytes": policy.max_bytes}],
        )

    if policy.allowed_extensions is not None:
        _, ext = _split_name(file.filename)
        if ext not in policy.allowed_extensions:
            allowed = ", ".join(sorted(policy.allowed_extensions))
            raise UploadRejected(f"Geçersiz dosya türü. Sadece {allowed} kabul edilir.")


async def upload_asset(
    client: BackendClient,
    policy: UploadPolicy,
    file: UploadedFile,
    *,
    now_ms: int | None = None,
) -> str:
    """
    Validate, upload, and return the value to store in the record.
    """
    check_upload(policy, file)

    bucket = policy.bucket or settings.site_bucket
    key = build_storage_path(policy.category, file.filename, now_ms=now_ms)
    await client.upload_file(
        bucket,
        key,
        file.data,
        content_type=file.content_type,
        overwrite=policy.overwrite,
    )
    log.info("asset uploaded bucket=%s key=%s size=%d", bucket, key, file.size)
    return f"{bucket}/{key}" if policy.bucket_in_path else key


async def remove_asset(client: BackendClient, stored_path: str | None, *, bucket: str | None = None) -> bool:
    """
    Best-effort file removal. A storage failure is logged and reported as
    False; it never stops the caller's record operation.
    """
    if not stored_path or is_absolute_url(stored_path):
        return False
    b, key = split_stored_path(stored_path, default_bucket=bucket)
    try:
        await client.delete_file(b, key)
    except BackendError:
        log.warning("asset delete failed bucket=%s key=%s (record operation continues)", b, key, exc_info=True)
        return False
    return True
