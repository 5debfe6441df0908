# recipeshare/services/catalog.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional
from uuid import UUID

from supabase import Client

SortOrder = Literal["newest", "oldest", "popular", "rating"]

CATALOG_COLUMNS = (
    "*, author:profiles(*), category:categories(*), ingredients:recipe_ingredients(*)"
)

# filter name -> recipes column
DIETARY_COLUMNS: dict[str, str] = {
    "vegetarian": "is_vegetarian",
    "vegan": "is_vegan",
    "gluten_free": "is_gluten_free",
    "dairy_free": "is_dairy_free",
    "nut_free": "is_nut_free",
}


class CategoryNotFoundError(LookupError):
    """Raised when a category name does not exist."""


@dataclass
class CatalogFilters:
    search: Optional[str] = None
    category_id: Optional[str] = None
    difficulty: Optional[str] = None
    vegetarian: bool = False
    vegan: bool = False
    gluten_free: bool = False
    dairy_free: bool = False
    nut_free: bool = False
    sort: SortOrder = "newest"
    limit: int = 50

    def dietary_columns(self) -> list[str]:
        return [column for flag, column in DIETARY_COLUMNS.items() if getattr(self, flag)]


def format_timestamp(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    return str(value)


def stringify_id(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, UUID):
        return str(value)
    return str(value)


def sanitize_search_term(term: str) -> str:
    """Strips characters that would break a PostgREST `or=` filter."""
    stripped = term.strip()
    safe_term = (
        stripped.replace("%", "")
        .replace(",", " ")
        .replace(";", " ")
        .replace("(", " ")
        .replace(")", " ")
        .replace("'", " ")
    ).strip()
    return safe_term


def list_public_recipes(supa: Client, filters: CatalogFilters) -> list[dict[str, Any]]:
    query = supa.table("recipes").select(CATALOG_COLUMNS).eq("is_public", True)

    if filters.search:
        safe_term = sanitize_search_term(filters.search)
        if safe_term:
            pattern = f"%{safe_term}%"
            query = query.or_(f"title.ilike.{pattern},description.ilike.{pattern}")

    if filters.category_id:
        query = query.eq("category_id", filters.category_id)

    if filters.difficulty:
        query = query.eq("difficulty", filters.difficulty)

    for column in filters.dietary_columns():
        query = query.eq(column, True)

    if filters.sort == "oldest":
        query = query.order("created_at", desc=False)
    elif filters.sort in ("popular", "rating"):
        # no ratings aggregate is exposed yet, both rank by likes
        query = query.order("like_count", desc=True)
    else:
        query = query.order("created_at", desc=True)

    response = query.limit(filters.limit).execute()
    return response.data or []


def list_categories(supa: Client) -> list[dict[str, Any]]:
    response = supa.table("categories").select("*").order("name").execute()
    return response.data or []


def get_category_by_name(supa: Client, name: str) -> dict[str, Any]:
    response = (
        supa.table("categories")
        .select("*")
        .eq("name", name)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows:
        raise CategoryNotFoundError(f"Category not found: {name}")
    return rows[0]


def list_category_recipes(supa: Client, category_id: str) -> list[dict[str, Any]]:
    response = (
        supa.table("recipes")
        .select(CATALOG_COLUMNS)
        .eq("category_id", category_id)
        .eq("is_public", True)
        .order("created_at", desc=True)
        .execute()
    )
    return response.data or []
