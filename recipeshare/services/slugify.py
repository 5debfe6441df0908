# recipeshare/services/slugify.py
import re
from typing import Optional

from recipeshare.app.domain.models import ParsedSlug

ID_SUFFIX_LENGTH = 8

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def recipe_slug(title: str, recipe_id: str) -> str:
    """Builds the recipe URL segment: normalized title + last 8 chars of the id.

    Boundary hyphens are kept as produced: "Pie!!" becomes "pie-".
    """
    base = _NON_ALNUM_RE.sub("-", title.lower())
    # ids shorter than 8 chars are appended whole
    return f"{base}-{recipe_id[-ID_SUFFIX_LENGTH:]}"


def parse_recipe_slug(slug: str) -> Optional[ParsedSlug]:
    """Recovers the id suffix from a slug. The suffix shape is not validated.

    Returns None for an empty slug and for a slug whose last hyphen-separated
    segment is empty ("soup-"). recipe_slug only yields such a slug for an
    empty id, which names no recipe, so neither case can be resolved.
    """
    if not slug:
        return None
    suffix = slug.split("-")[-1]
    if not suffix:
        return None
    return ParsedSlug(id_suffix=suffix)
