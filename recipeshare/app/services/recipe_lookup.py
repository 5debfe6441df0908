# recipeshare/app/services/recipe_lookup.py
"""
Resolves recipe slugs and ids to recipe aggregates, applying visibility rules.
"""
from __future__ import annotations

import logging
from typing import Optional

from recipeshare.app.domain.errors import AmbiguousSlugError, RecipeNotFoundError
from recipeshare.app.domain.models import RecipeAggregate
from recipeshare.app.infra.db.base import RecipeRepository
from recipeshare.services.slugify import parse_recipe_slug

logger = logging.getLogger(__name__)


def _is_visible(aggregate: RecipeAggregate, viewer_id: Optional[str]) -> bool:
    recipe = aggregate.recipe
    return recipe.is_public or (viewer_id is not None and recipe.author_id == viewer_id)


class RecipeLookupService:
    def __init__(self, recipes: RecipeRepository):
        self._recipes = recipes

    def resolve_slug(self, slug: str, viewer_id: Optional[str] = None) -> RecipeAggregate:
        """
        Find the recipe a slug points at.

        Only the id suffix is recoverable from a slug, so the store is asked
        for every recipe ending with it. Anything but exactly one match is
        reported as not found; an arbitrary match is never picked.

        Raises:
            RecipeNotFoundError: Malformed slug, no match, or recipe not visible
            AmbiguousSlugError: More than one recipe shares the suffix
        """
        parsed = parse_recipe_slug(slug)
        if parsed is None:
            raise RecipeNotFoundError(slug, "Malformed recipe slug")

        matches = self._recipes.find_by_id_suffix(parsed.id_suffix, limit=2)
        if not matches:
            raise RecipeNotFoundError(slug)
        if len(matches) > 1:
            logger.warning(
                "slug.ambiguous slug=%s suffix=%s ids=%s",
                slug, parsed.id_suffix, ",".join(match.recipe.id for match in matches),
            )
            raise AmbiguousSlugError(parsed.id_suffix, len(matches))

        aggregate = matches[0]
        if not _is_visible(aggregate, viewer_id):
            raise RecipeNotFoundError(slug)
        return aggregate

    def get_aggregate(self, recipe_id: str, viewer_id: Optional[str] = None) -> RecipeAggregate:
        aggregate = self._recipes.get_aggregate(recipe_id)
        if aggregate is None or not _is_visible(aggregate, viewer_id):
            raise RecipeNotFoundError(recipe_id)
        return aggregate
