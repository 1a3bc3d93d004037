import re
import unicodedata
from typing import Awaitable, Callable


NON_ALNUM = re.compile(r"[^a-z0-9]+")
MAX_SLUG_LENGTH = 80


def slugify(title: str) -> str:
    folded = (
        unicodedata.normalize("NFKD", title)
        .encode("ascii", "ignore")
        .decode("ascii")
        .lower()
    )
    slug = NON_ALNUM.sub("-", folded).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or "recipe"


async def unique_slug(
    title: str,
    exists: Callable[[str], Awaitable[bool]],
) -> str:
    """Slug for `title`, suffixed with -2, -3, ... until `exists` says no."""
    base = slugify(title)
    slug, n = base, 1
    while await exists(slug):
        n += 1
        slug = f"{base}-{n}"
    return slug
