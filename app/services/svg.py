from __future__ import annotations

import re
from xml.etree.ElementTree import Element, ParseError, fromstring, register_namespace, tostring

from app.services.errors import ValidationFailed


SVG_NS = "http://www.w3.org/2000/svg"
register_namespace("", SVG_NS)

ALLOWED_TAGS = frozenset({
    "svg", "g", "path", "circle", "ellipse", "line", "polyline", "polygon", "rect",
    "title", "desc", "defs", "lineargradient", "radialgradient", "stop", "clippath",
})

ALLOWED_ATTRIBUTES = frozenset({
    "viewbox", "width", "height", "fill", "fill-rule", "fill-opacity",
    "stroke", "stroke-width", "stroke-linecap", "stroke-linejoin", "stroke-opacity",
    "stroke-miterlimit", "stroke-dasharray", "clip-rule", "clip-path",
    "d", "cx", "cy", "r", "rx", "ry", "x", "y", "x1", "y1", "x2", "y2", "points",
    "transform", "opacity", "offset", "stop-color", "stop-opacity",
    "gradientunits", "gradienttransform", "id", "class",
    "aria-hidden", "role", "focusable", "preserveaspectratio",
})

# url(...) is only allowed to point at a fragment inside the same document
_URL_REF = re.compile(r"url\(\s*(?!#)", re.IGNORECASE)


def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1].lower()


def _clean(el: Element) -> None:
    for child in list(el):
        if _local(child.tag) not in ALLOWED_TAGS:
            el.remove(child)
            continue
        _clean(child)

    for attr in list(el.attrib):
        value = el.attrib[attr]
        if (
            attr.startswith("{")
            or _local(attr) not in ALLOWED_ATTRIBUTES
            or "javascript:" in value.lower()
            or _URL_REF.search(value)
        ):
            del el.attrib[attr]


def sanitize_svg(markup: str | None) -> str:
    """
    Keep only allowlisted SVG elements and attributes.

    Scripts, event handlers, foreign objects, external references and
    namespaced attributes (xlink:href) are dropped. Anything that is not a
    single well-formed <svg> element is rejected.
    """
    text = (markup or "").strip()
    if not text:
        return ""

    if "<!doctype" in text.lower() or "<!entity" in text.lower():
        raise ValidationFailed("Geçersiz SVG ikonu")

    try:
        root = fromstring(text)
    except ParseError:
        raise ValidationFailed("Geçersiz SVG ikonu")

    if _local(root.tag) != "svg":
        raise ValidationFailed("Geçersiz SVG ikonu")

    _clean(root)
    return tostring(root, encoding="unicode")
