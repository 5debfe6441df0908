from __future__ import annotations

from recipeshare.app.domain.errors import (
    AmbiguousSlugError,
    CollectionNotFoundError,
    CollectionSwapError,
    DuplicateMembershipError,
    ForkIngredientsError,
    MissingActorError,
    RecipeNotFoundError,
    RecipeShareError,
    RepositoryError,
)


class TestRecipeShareError:
    def test_base_exception(self) -> None:
        error = RecipeShareError("Base error")
        assert str(error) == "Base error"
        assert isinstance(error, Exception)


class TestMissingActorError:
    def test_default_message(self) -> None:
        error = MissingActorError()
        assert "authenticated user" in str(error)
        assert isinstance(error, RecipeShareError)


class TestRecipeNotFoundError:
    def test_default_message(self) -> None:
        error = RecipeNotFoundError("soup-12345678")
        assert str(error) == "Recipe not found: soup-12345678"
        assert error.reference == "soup-12345678"

    def test_custom_message(self) -> None:
        error = RecipeNotFoundError("x", "Malformed recipe slug")
        assert str(error) == "Malformed recipe slug"


class TestAmbiguousSlugError:
    def test_is_a_not_found(self) -> None:
        error = AmbiguousSlugError("1234abcd", 2)
        assert isinstance(error, RecipeNotFoundError)
        assert error.id_suffix == "1234abcd"
        assert error.match_count == 2
        assert "matches 2 recipes" in str(error)


class TestCollectionErrors:
    def test_not_found(self) -> None:
        error = CollectionNotFoundError("col-1")
        assert error.collection_id == "col-1"
        assert "col-1" in str(error)

    def test_duplicate_membership(self) -> None:
        error = DuplicateMembershipError("col-1", "rec-1")
        assert error.collection_id == "col-1"
        assert error.recipe_id == "rec-1"


class TestRepositoryError:
    def test_message(self) -> None:
        error = RepositoryError("insert_recipe", "timeout")
        assert str(error) == "Repository error during insert_recipe: timeout"
        assert error.operation == "insert_recipe"
        assert error.reason == "timeout"

    def test_fork_ingredients_error_names_both_recipes(self) -> None:
        error = ForkIngredientsError("copy-1", "orig-1", "constraint violated")
        assert isinstance(error, RepositoryError)
        assert error.operation == "insert_ingredients"
        assert error.recipe_id == "copy-1"
        assert error.original_recipe_id == "orig-1"


class TestCollectionSwapError:
    def test_attributes(self) -> None:
        error = CollectionSwapError("col-1", "orig-1", "copy-1", "add_copy", "boom")
        assert error.step == "add_copy"
        assert error.copy_recipe_id == "copy-1"
        assert "add_copy" in str(error)
        assert "copy-1" in str(error)
