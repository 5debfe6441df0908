# recipeshare/app/domain/models.py
"""
Domain models for recipes, their ingredients and fork lineage.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Difficulty(str, Enum):
    """Difficulty levels accepted by the recipes table."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass
class Ingredient:
    """A single ingredient row belonging to exactly one recipe."""
    name: str
    amount: str  # free text, never parsed into number + unit
    unit: Optional[str] = None
    order_index: int = 0
    id: Optional[str] = None
    recipe_id: Optional[str] = None


@dataclass
class IngredientDraft:
    """An ingredient as typed by a user, before it is validated and numbered."""
    name: str
    amount: str
    unit: Optional[str] = None


@dataclass
class Recipe:
    """
    A recipe record as stored in the `recipes` table.
    Counters are maintained by the store and never computed here.
    """
    id: str
    title: str
    author_id: str
    instructions: str = ""
    description: Optional[str] = None

    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[Difficulty] = None

    # Media references
    image_url: Optional[str] = None
    youtube_url: Optional[str] = None

    is_public: bool = True

    # Dietary flags are independent, no consistency is enforced between them
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_dairy_free: bool = False
    is_nut_free: bool = False

    category_id: Optional[str] = None
    original_recipe_id: Optional[str] = None

    fork_count: int = 0
    like_count: int = 0
    view_count: int = 0

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_fork(self) -> bool:
        return self.original_recipe_id is not None

    @property
    def instruction_steps(self) -> list[str]:
        """Instructions split on newlines, blank lines dropped."""
        return [step.strip() for step in self.instructions.split("\n") if step.strip()]


@dataclass
class RecipeAggregate:
    """A recipe together with its ingredients, ordered by order_index."""
    recipe: Recipe
    ingredients: list[Ingredient] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.recipe.id


@dataclass
class ParsedSlug:
    """Result of decoding a recipe slug. Only a trailing fragment of the id is recoverable."""
    id_suffix: str


@dataclass
class CollectionCopyResult:
    """Outcome of replacing a collection entry with a personal copy."""
    collection_id: str
    original_recipe_id: str
    copy: RecipeAggregate
