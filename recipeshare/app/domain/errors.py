from __future__ import annotations


class RecipeShareError(Exception):
    pass


class MissingActorError(RecipeShareError):
    def __init__(self, message: str = "An authenticated user is required for this operation"):
        super().__init__(message)


class RecipeNotFoundError(RecipeShareError):
    def __init__(self, reference: str, message: str | None = None):
        super().__init__(message or f"Recipe not found: {reference}")
        self.reference = reference


class AmbiguousSlugError(RecipeNotFoundError):
    def __init__(self, id_suffix: str, match_count: int):
        super().__init__(
            id_suffix,
            f"Recipe id suffix '{id_suffix}' matches {match_count} recipes",
        )
        self.id_suffix = id_suffix
        self.match_count = match_count


class CollectionNotFoundError(RecipeShareError):
    def __init__(self, collection_id: str):
        super().__init__(f"Collection not found: {collection_id}")
        self.collection_id = collection_id


class DuplicateMembershipError(RecipeShareError):
    def __init__(self, collection_id: str, recipe_id: str):
        super().__init__(f"Recipe {recipe_id} is already in collection {collection_id}")
        self.collection_id = collection_id
        self.recipe_id = recipe_id


class RepositoryError(RecipeShareError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class ForkIngredientsError(RepositoryError):
    """The forked recipe row exists but its ingredients were not stored."""

    def __init__(self, recipe_id: str, original_recipe_id: str, reason: str):
        super().__init__("insert_ingredients", reason)
        self.recipe_id = recipe_id
        self.original_recipe_id = original_recipe_id


class CollectionSwapError(RecipeShareError):
    """The personal copy exists but the collection membership swap did not finish."""

    def __init__(
        self,
        collection_id: str,
        original_recipe_id: str,
        copy_recipe_id: str,
        step: str,
        reason: str,
    ):
        super().__init__(
            f"Collection {collection_id} swap failed at {step} "
            f"(original={original_recipe_id}, copy={copy_recipe_id}): {reason}"
        )
        self.collection_id = collection_id
        self.original_recipe_id = original_recipe_id
        self.copy_recipe_id = copy_recipe_id
        self.step = step
        self.reason = reason
