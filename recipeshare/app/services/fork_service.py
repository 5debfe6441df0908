# recipeshare/app/services/fork_service.py
"""
Fork / copy workflow.
Creates independent, privately owned copies of recipes that keep a
back-reference to the recipe they were copied from.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Union

from recipeshare.app.domain.errors import (
    CollectionNotFoundError,
    CollectionSwapError,
    ForkIngredientsError,
    MissingActorError,
    RecipeNotFoundError,
    RepositoryError,
)
from recipeshare.app.domain.models import (
    CollectionCopyResult,
    Difficulty,
    Ingredient,
    IngredientDraft,
    RecipeAggregate,
)
from recipeshare.app.infra.db.base import CollectionRepository, RecipeRepository

logger = logging.getLogger(__name__)

FORK_TITLE_SUFFIX = " (Forked)"

# Content fields carried over from the source recipe
COPIED_FIELDS = (
    "title",
    "description",
    "instructions",
    "prep_time",
    "cook_time",
    "servings",
    "difficulty",
    "image_url",
    "youtube_url",
    "is_vegetarian",
    "is_vegan",
    "is_gluten_free",
    "is_dairy_free",
    "is_nut_free",
    "category_id",
)

OVERRIDABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "instructions",
        "prep_time",
        "cook_time",
        "servings",
        "difficulty",
        "ingredients",
    }
)

IngredientLike = Union[Ingredient, IngredientDraft, Mapping[str, Any]]


def fork_title(title: str) -> str:
    return f"{title}{FORK_TITLE_SUFFIX}"


def _ingredient_value(item: IngredientLike, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def build_ingredient_rows(
    ingredients: Iterable[IngredientLike],
    recipe_id: str,
) -> list[dict[str, Any]]:
    """
    Turn an ingredient list into insert rows for `recipe_id`.

    Entries with an empty or whitespace-only name or amount are dropped,
    the rest are numbered densely from zero in list order.
    """
    rows: list[dict[str, Any]] = []
    for item in ingredients:
        name = str(_ingredient_value(item, "name") or "")
        amount = str(_ingredient_value(item, "amount") or "")
        if not name.strip() or not amount.strip():
            continue
        unit = _ingredient_value(item, "unit")
        rows.append(
            {
                "recipe_id": recipe_id,
                "name": name,
                "amount": amount,
                "unit": unit or None,
                "order_index": len(rows),
            }
        )
    return rows


def _serialize_value(value: Any) -> Any:
    if isinstance(value, Difficulty):
        return value.value
    return value


class ForkService:
    """
    Service for copying recipes.

    Responsibilities:
    - Fork a recipe into a private copy owned by the actor
    - Replace a collection entry with an edited personal copy
    - Create recipes directly, with the same ingredient handling
    """

    def __init__(
        self,
        recipes: RecipeRepository,
        collections: Optional[CollectionRepository] = None,
    ):
        self._recipes = recipes
        self._collections = collections

    def fork(
        self,
        source: RecipeAggregate,
        actor_id: Optional[str],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> RecipeAggregate:
        """
        Create a private copy of `source` owned by `actor_id`.

        Args:
            source: Fully loaded recipe aggregate; never mutated
            actor_id: Owner of the new copy
            overrides: Field values replacing the source's (title, description,
                instructions, prep_time, cook_time, servings, difficulty, ingredients)

        Returns:
            The stored copy

        Raises:
            MissingActorError: If no actor is given
            ValueError: If overrides contain unknown fields or blank the title
            RepositoryError: If the recipe insert fails
            ForkIngredientsError: If the recipe was stored but its ingredients were not
        """
        if not actor_id:
            raise MissingActorError()

        changes = dict(overrides or {})
        payload = self._build_recipe_payload(source, actor_id, changes)

        recipe = self._recipes.insert_recipe(payload)
        logger.info(
            "fork.recipe_created recipe=%s origin=%s owner=%s",
            recipe.id, source.recipe.id, actor_id,
        )

        ingredient_source = changes["ingredients"] if "ingredients" in changes else source.ingredients
        rows = build_ingredient_rows(ingredient_source or [], recipe.id)
        try:
            ingredients = self._recipes.insert_ingredients(rows)
        except RepositoryError as error:
            logger.error(
                "fork.ingredients_failed recipe=%s origin=%s owner=%s rows=%d error=%s",
                recipe.id, source.recipe.id, actor_id, len(rows), error.reason,
            )
            raise ForkIngredientsError(recipe.id, source.recipe.id, error.reason) from error

        return RecipeAggregate(recipe=recipe, ingredients=ingredients)

    def edit_as_copy(
        self,
        collection_id: str,
        source: RecipeAggregate,
        actor_id: Optional[str],
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> CollectionCopyResult:
        """
        Save the actor's edits of a collection entry as a personal copy and
        point the collection at the copy instead of the original.

        Raises:
            CollectionNotFoundError: If the collection does not belong to the actor
            RecipeNotFoundError: If the source recipe is not a member of the collection
            CollectionSwapError: If the copy was stored but the membership swap failed
        """
        if not actor_id:
            raise MissingActorError()
        if self._collections is None:
            raise RuntimeError("ForkService was built without a collection repository")

        if self._collections.get_collection(collection_id, actor_id) is None:
            raise CollectionNotFoundError(collection_id)
        if not self._collections.has_recipe(collection_id, source.recipe.id):
            raise RecipeNotFoundError(
                source.recipe.id,
                f"Recipe {source.recipe.id} is not in collection {collection_id}",
            )

        copy = self.fork(source, actor_id, overrides)

        step = "remove_original"
        try:
            self._collections.remove_recipe(collection_id, source.recipe.id)
            step = "add_copy"
            self._collections.add_recipe(collection_id, copy.recipe.id)
        except Exception as error:
            logger.error(
                "fork.collection_swap_failed collection=%s original=%s copy=%s step=%s error=%s",
                collection_id, source.recipe.id, copy.recipe.id, step, error,
            )
            raise CollectionSwapError(
                collection_id, source.recipe.id, copy.recipe.id, step, str(error)
            ) from error

        logger.info(
            "fork.collection_swapped collection=%s original=%s copy=%s",
            collection_id, source.recipe.id, copy.recipe.id,
        )
        return CollectionCopyResult(
            collection_id=collection_id,
            original_recipe_id=source.recipe.id,
            copy=copy,
        )

    def create_recipe(
        self,
        author_id: Optional[str],
        fields: Mapping[str, Any],
        ingredients: Iterable[IngredientLike] = (),
    ) -> RecipeAggregate:
        """
        Create a new recipe authored by `author_id`.

        The recipe row is stored first; ingredients are only inserted once its
        id is known. Ingredient failures leave the recipe in place.
        """
        if not author_id:
            raise MissingActorError()

        payload = {key: _serialize_value(value) for key, value in fields.items()}
        title = str(payload.get("title") or "").strip()
        if not title:
            raise ValueError("Recipe title is required")
        payload.update(
            {
                "author_id": author_id,
                "original_recipe_id": None,
                "is_public": bool(payload.get("is_public", True)),
            }
        )

        recipe = self._recipes.insert_recipe(payload)
        rows = build_ingredient_rows(ingredients, recipe.id)
        try:
            stored = self._recipes.insert_ingredients(rows)
        except RepositoryError:
            logger.error("recipe.ingredients_failed recipe=%s author=%s rows=%d", recipe.id, author_id, len(rows))
            raise

        return RecipeAggregate(recipe=recipe, ingredients=stored)

    def _build_recipe_payload(
        self,
        source: RecipeAggregate,
        actor_id: str,
        changes: Mapping[str, Any],
    ) -> dict[str, Any]:
        unknown = set(changes) - OVERRIDABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be overridden on copy: {', '.join(sorted(unknown))}")

        payload: dict[str, Any] = {
            name: _serialize_value(getattr(source.recipe, name)) for name in COPIED_FIELDS
        }
        for name, value in changes.items():
            if name != "ingredients":
                payload[name] = _serialize_value(value)

        if not str(payload.get("title") or "").strip():
            raise ValueError("Recipe title is required")

        payload.update(
            {
                "is_public": False,
                "author_id": actor_id,
                "original_recipe_id": source.recipe.id,
                "fork_count": 0,
                "like_count": 0,
                "view_count": 0,
            }
        )
        return payload
