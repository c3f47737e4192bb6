import hashlib
import re
from typing import Optional

_SLUG_OK = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    return _NON_SLUG.sub("-", text.lower()).strip("-")


def item_id_for(name: str, slug: Optional[str] = None) -> str:
    """
    Stable cart id for a catalog entry.

    A clean slug supplied by the catalog is used as is. Otherwise the name is
    slugified and suffixed with a digest of the exact name, so "Candle!" and
    "Candle" end up as different ids.
    """
    if slug and _SLUG_OK.match(slug):
        return slug
    source = slug or name
    digest = hashlib.sha1(source.encode("utf-8")).hexdigest()[:8]
    base = slugify(source)
    return f"{base}-{digest}" if base else digest
