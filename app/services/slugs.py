from __future__ import annotations

import re
import time

# Applied before lowercasing so "İ" does not become "i" + combining dot
_UPPER_FOLD = str.maketrans({"İ": "i", "I": "i"})
_TURKISH_FOLD = str.maketrans({
    "ğ": "g",
    "ü": "u",
    "ş": "s",
    "ı": "i",
    "ö": "o",
    "ç": "c",
})
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def fold_turkish(value: str) -> str:
    return (value or "").translate(_UPPER_FOLD).lower().translate(_TURKISH_FOLD)


def slugify(value: str) -> str:
    """
    "İstanbul Turu" -> "istanbul-turu", "Kapadokya Balon Turu" -> "kapadokya-balon-turu".

    Idempotent: slugify(slugify(x)) == slugify(x).
    """
    return _NON_ALNUM.sub("-", fold_turkish(value)).strip("-")


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def with_timestamp(slug: str, *, now_ms: int | None = None) -> str:
    stamp = now_ms if now_ms is not None else timestamp_ms()
    return f"{slug}-{stamp}" if slug else str(stamp)
