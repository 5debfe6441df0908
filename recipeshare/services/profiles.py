# recipeshare/services/profiles.py
from __future__ import annotations

from typing import Any, Literal
from uuid import UUID

from supabase import Client

from recipeshare.services.catalog import format_timestamp, stringify_id

ProfileTab = Literal["recipes", "liked"]

PROFILE_RECIPE_COLUMNS = "*, author:profiles(*), ingredients:recipe_ingredients(*)"


class ProfileNotFoundError(LookupError):
    """Raised when no profile matches an id or username."""


def _looks_like_uuid(value: str) -> bool:
    try:
        UUID(value)
    except ValueError:
        return False
    return True


def serialize_profile(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": stringify_id(row.get("id")),
        "username": str(row.get("username") or ""),
        "fullName": row.get("full_name"),
        "bio": row.get("bio"),
        "avatarUrl": row.get("avatar_url"),
        "website": row.get("website"),
        "location": row.get("location"),
        "recipeCount": int(row.get("recipe_count") or 0),
        "totalLikes": int(row.get("total_likes") or 0),
        "badgeTier": row.get("badge_tier") or "bronze",
        "createdAt": format_timestamp(row.get("created_at")),
    }


def get_profile(supa: Client, identifier: str) -> dict[str, Any]:
    """Profiles are addressed by id or by username."""
    column = "id" if _looks_like_uuid(identifier) else "username"
    response = (
        supa.table("profiles")
        .select("*")
        .eq(column, identifier)
        .limit(1)
        .execute()
    )
    rows = response.data or []
    if not rows:
        raise ProfileNotFoundError(f"Profile not found: {identifier}")
    return rows[0]


def list_profile_recipes(
    supa: Client, profile_id: str, tab: ProfileTab = "recipes"
) -> list[dict[str, Any]]:
    if tab == "liked":
        response = (
            supa.table("recipe_likes")
            .select(f"recipe:recipes({PROFILE_RECIPE_COLUMNS})")
            .eq("user_id", profile_id)
            .execute()
        )
        liked = [row.get("recipe") for row in (response.data or [])]
        # deleted recipes come back as null; private ones stay hidden on profiles
        return [
            recipe for recipe in liked
            if isinstance(recipe, dict) and recipe.get("is_public", True)
        ]

    response = (
        supa.table("recipes")
        .select(PROFILE_RECIPE_COLUMNS)
        .eq("author_id", profile_id)
        .eq("is_public", True)
        .order("created_at", desc=True)
        .execute()
    )
    return response.data or []
