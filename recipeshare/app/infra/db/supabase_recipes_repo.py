from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from recipeshare.app.domain.errors import DuplicateMembershipError, RepositoryError
from recipeshare.app.domain.models import Difficulty, Ingredient, Recipe, RecipeAggregate
from recipeshare.app.infra.db.base import CollectionRepository, RecipeRepository

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
AGGREGATE_COLUMNS = "*, ingredients:recipe_ingredients(*)"
# uuid columns have no LIKE operator; suffix lookups go through this generated text copy of recipes.id
ID_TEXT_COLUMN = "id_text"

_NETWORK_ERRORS = (ConnectionError, TimeoutError, httpx.HTTPError)
# PostgREST reserves these inside filter values; `*` is also a LIKE wildcard there
_UNSAFE_SUFFIX_RE = re.compile(r"[*,()\s\"]")


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None

    try:
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        return datetime.fromisoformat(normalized)
    except ValueError:
        return None


def _safe_int(value: object, default: int = 0) -> int:
    return int(value) if value else default


def _optional_int(value: object) -> int | None:
    return int(value) if value is not None else None


def _safe_str(value: object) -> str | None:
    return str(value) if value else None


def _parse_difficulty(value: object) -> Difficulty | None:
    try:
        return Difficulty(str(value)) if value else None
    except ValueError:
        return None


def _create_supabase_client() -> Client:
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY required")
    return create_client(url, key)


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def row_to_recipe(row: dict[str, Any]) -> Recipe:
    return Recipe(
        id=str(row["id"]),
        title=str(row.get("title") or ""),
        author_id=str(row.get("author_id") or ""),
        instructions=str(row.get("instructions") or ""),
        description=row.get("description"),
        prep_time=_optional_int(row.get("prep_time")),
        cook_time=_optional_int(row.get("cook_time")),
        servings=_optional_int(row.get("servings")),
        difficulty=_parse_difficulty(row.get("difficulty")),
        image_url=_safe_str(row.get("image_url")),
        youtube_url=_safe_str(row.get("youtube_url")),
        is_public=bool(row.get("is_public", True)),
        is_vegetarian=bool(row.get("is_vegetarian")),
        is_vegan=bool(row.get("is_vegan")),
        is_gluten_free=bool(row.get("is_gluten_free")),
        is_dairy_free=bool(row.get("is_dairy_free")),
        is_nut_free=bool(row.get("is_nut_free")),
        category_id=_safe_str(row.get("category_id")),
        original_recipe_id=_safe_str(row.get("original_recipe_id")),
        fork_count=_safe_int(row.get("fork_count")),
        like_count=_safe_int(row.get("like_count")),
        view_count=_safe_int(row.get("view_count")),
        created_at=_parse_datetime(row.get("created_at")),
        updated_at=_parse_datetime(row.get("updated_at")),
    )


def row_to_ingredient(row: dict[str, Any]) -> Ingredient:
    return Ingredient(
        name=str(row.get("name") or ""),
        amount=str(row.get("amount") or ""),
        unit=_safe_str(row.get("unit")),
        order_index=_safe_int(row.get("order_index")),
        id=_safe_str(row.get("id")),
        recipe_id=_safe_str(row.get("recipe_id")),
    )


def row_to_aggregate(row: dict[str, Any]) -> RecipeAggregate:
    ingredient_rows = row.get("ingredients") or []
    ingredients = [row_to_ingredient(item) for item in ingredient_rows if isinstance(item, dict)]
    ingredients.sort(key=lambda item: item.order_index)
    return RecipeAggregate(recipe=row_to_recipe(row), ingredients=ingredients)


class SupabaseRecipeRepository(RecipeRepository):
    RECIPES_TABLE = "recipes"
    INGREDIENTS_TABLE = "recipe_ingredients"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    def insert_recipe(self, payload: dict[str, Any]) -> Recipe:
        try:
            result = self._client.table(self.RECIPES_TABLE).insert(payload).execute()
        except APIError as error:
            logger.error("Store rejected recipe insert: code=%s message=%s", error.code, error.message)
            raise RepositoryError("insert_recipe", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            logger.error("Network error inserting recipe: %s", error)
            raise RepositoryError("insert_recipe", str(error)) from error

        if not result.data:
            raise RepositoryError("insert_recipe", "No row returned")

        recipe = row_to_recipe(result.data[0])
        logger.info("Created recipe: id=%s, author=%s", recipe.id, recipe.author_id)
        return recipe

    def insert_ingredients(self, rows: list[dict[str, Any]]) -> list[Ingredient]:
        if not rows:
            return []

        try:
            result = self._client.table(self.INGREDIENTS_TABLE).insert(rows).execute()
        except APIError as error:
            logger.error("Store rejected ingredient batch: code=%s message=%s", error.code, error.message)
            raise RepositoryError("insert_ingredients", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            logger.error("Network error inserting ingredients: %s", error)
            raise RepositoryError("insert_ingredients", str(error)) from error

        stored = [row_to_ingredient(row) for row in (result.data or [])]
        # some client setups return no representation; fall back to what was sent
        return stored or [row_to_ingredient(row) for row in rows]

    def get_aggregate(self, recipe_id: str) -> RecipeAggregate | None:
        try:
            result = (
                self._client.table(self.RECIPES_TABLE)
                .select(AGGREGATE_COLUMNS)
                .eq("id", recipe_id)
                .limit(1)
                .execute()
            )
        except APIError as error:
            raise RepositoryError("get_aggregate", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            logger.error("Network error getting recipe: %s", error)
            raise RepositoryError("get_aggregate", str(error)) from error

        rows = result.data or []
        return row_to_aggregate(rows[0]) if rows else None

    def find_by_id_suffix(self, id_suffix: str, limit: int = 2) -> list[RecipeAggregate]:
        if not id_suffix or _UNSAFE_SUFFIX_RE.search(id_suffix):
            logger.debug("Rejected id suffix without querying: %r", id_suffix)
            return []

        pattern = f"%{escape_like(id_suffix)}"
        try:
            result = (
                self._client.table(self.RECIPES_TABLE)
                .select(AGGREGATE_COLUMNS)
                .like(ID_TEXT_COLUMN, pattern)
                .limit(limit)
                .execute()
            )
        except APIError as error:
            raise RepositoryError("find_by_id_suffix", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            logger.error("Network error in suffix lookup: %s", error)
            raise RepositoryError("find_by_id_suffix", str(error)) from error

        return [row_to_aggregate(row) for row in (result.data or [])]


class SupabaseCollectionRepository(CollectionRepository):
    COLLECTIONS_TABLE = "recipe_collections"
    MEMBERSHIP_TABLE = "collection_recipes"

    def __init__(self, client: Client | None = None):
        self._client = client or _create_supabase_client()

    def get_collection(self, collection_id: str, owner_id: str) -> dict[str, Any] | None:
        try:
            result = (
                self._client.table(self.COLLECTIONS_TABLE)
                .select("id, name, description, is_public, user_id, created_at, updated_at")
                .eq("id", collection_id)
                .eq("user_id", owner_id)
                .limit(1)
                .execute()
            )
        except APIError as error:
            raise RepositoryError("get_collection", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            raise RepositoryError("get_collection", str(error)) from error

        rows = result.data or []
        return rows[0] if rows else None

    def has_recipe(self, collection_id: str, recipe_id: str) -> bool:
        try:
            result = (
                self._client.table(self.MEMBERSHIP_TABLE)
                .select("recipe_id")
                .eq("collection_id", collection_id)
                .eq("recipe_id", recipe_id)
                .limit(1)
                .execute()
            )
        except APIError as error:
            raise RepositoryError("has_recipe", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            raise RepositoryError("has_recipe", str(error)) from error

        return bool(result.data)

    def add_recipe(self, collection_id: str, recipe_id: str) -> dict[str, Any]:
        payload = {"collection_id": collection_id, "recipe_id": recipe_id}
        try:
            result = self._client.table(self.MEMBERSHIP_TABLE).insert(payload).execute()
        except APIError as error:
            if error.code == UNIQUE_VIOLATION:
                raise DuplicateMembershipError(collection_id, recipe_id) from error
            raise RepositoryError("add_recipe", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            raise RepositoryError("add_recipe", str(error)) from error

        rows = result.data or []
        logger.info("Added recipe to collection: collection=%s, recipe=%s", collection_id, recipe_id)
        return rows[0] if rows else payload

    def remove_recipe(self, collection_id: str, recipe_id: str) -> None:
        try:
            (
                self._client.table(self.MEMBERSHIP_TABLE)
                .delete()
                .eq("collection_id", collection_id)
                .eq("recipe_id", recipe_id)
                .execute()
            )
        except APIError as error:
            raise RepositoryError("remove_recipe", str(error.message or error)) from error
        except _NETWORK_ERRORS as error:
            raise RepositoryError("remove_recipe", str(error)) from error

        logger.info("Removed recipe from collection: collection=%s, recipe=%s", collection_id, recipe_id)
