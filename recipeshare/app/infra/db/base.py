# recipeshare/app/infra/db/base.py
"""
Abstract base classes for the recipe and collection repositories.
These interfaces keep the fork workflow independent of the Supabase client.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from recipeshare.app.domain.models import Ingredient, Recipe, RecipeAggregate


class RecipeRepository(ABC):
    """
    Abstract interface for recipe aggregate persistence.

    Implementations:
    - SupabaseRecipeRepository: PostgREST tables `recipes` and `recipe_ingredients`
    """

    @abstractmethod
    def insert_recipe(self, payload: dict[str, Any]) -> Recipe:
        """
        Insert one recipe row.

        Args:
            payload: Column values for the new row (no id)

        Returns:
            The stored Recipe, including its generated id
        """
        pass

    @abstractmethod
    def insert_ingredients(self, rows: list[dict[str, Any]]) -> list[Ingredient]:
        """
        Insert ingredient rows as a single batch.

        Args:
            rows: Column values, already numbered and pointing at their recipe

        Returns:
            The stored ingredients, in insert order
        """
        pass

    @abstractmethod
    def get_aggregate(self, recipe_id: str) -> Optional[RecipeAggregate]:
        """
        Fetch a recipe and its ingredients by exact id.

        Returns:
            The aggregate, or None if not found
        """
        pass

    @abstractmethod
    def find_by_id_suffix(self, id_suffix: str, limit: int = 2) -> list[RecipeAggregate]:
        """
        Fetch recipes whose id ends with `id_suffix`.

        Args:
            id_suffix: Trailing characters of the id, as recovered from a slug
            limit: Max rows to return; callers ask for 2 to detect ambiguity

        Returns:
            Matching aggregates (possibly empty)
        """
        pass


class CollectionRepository(ABC):
    """
    Abstract interface for collection membership.
    """

    @abstractmethod
    def get_collection(self, collection_id: str, owner_id: str) -> Optional[dict[str, Any]]:
        """
        Get a collection row if it belongs to `owner_id`.

        Returns:
            The row, or None if not found / not owned
        """
        pass

    @abstractmethod
    def has_recipe(self, collection_id: str, recipe_id: str) -> bool:
        """Whether the recipe is currently a member of the collection."""
        pass

    @abstractmethod
    def add_recipe(self, collection_id: str, recipe_id: str) -> dict[str, Any]:
        """
        Add a membership row.

        Raises:
            DuplicateMembershipError: If the recipe is already in the collection
        """
        pass

    @abstractmethod
    def remove_recipe(self, collection_id: str, recipe_id: str) -> None:
        """
        Delete the membership row linking the collection to the recipe.
        """
        pass
