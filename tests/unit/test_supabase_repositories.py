from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from recipeshare.app.domain.errors import DuplicateMembershipError, RepositoryError
from recipeshare.app.domain.models import Difficulty
from recipeshare.app.infra.db.supabase_recipes_repo import (
    SupabaseCollectionRepository,
    SupabaseRecipeRepository,
    escape_like,
    row_to_aggregate,
)


def _client_returning(data) -> MagicMock:
    client = MagicMock()
    query = client.table.return_value
    for name in ("select", "insert", "delete", "eq", "like", "limit"):
        getattr(query, name).return_value = query
    query.execute.return_value = MagicMock(data=data)
    return client


def _recipe_row(**overrides):
    row = {
        "id": "5f0c2b1e-0000-0000-0000-0123456789ab",
        "title": "Soup",
        "author_id": "user-1",
        "instructions": "Boil",
        "difficulty": "hard",
        "is_public": True,
        "like_count": 3,
        "created_at": "2024-01-15T10:00:00Z",
        "ingredients": [
            {"name": "salt", "amount": "1", "order_index": 1},
            {"name": "water", "amount": "1 l", "order_index": 0},
        ],
    }
    row.update(overrides)
    return row


class TestRowConversion:
    def test_aggregate_sorted_by_order_index(self) -> None:
        result = row_to_aggregate(_recipe_row())
        assert [item.name for item in result.ingredients] == ["water", "salt"]
        assert result.recipe.difficulty is Difficulty.HARD
        assert result.recipe.like_count == 3
        assert result.recipe.created_at is not None

    def test_unknown_difficulty_ignored(self) -> None:
        result = row_to_aggregate(_recipe_row(difficulty="extreme"))
        assert result.recipe.difficulty is None


class TestEscapeLike:
    def test_wildcards_escaped(self) -> None:
        assert escape_like("a_b%c") == "a\\_b\\%c"

    def test_plain_hex_untouched(self) -> None:
        assert escape_like("0123abcd") == "0123abcd"


class TestSupabaseRecipeRepository:
    def test_find_by_id_suffix_uses_trailing_like(self) -> None:
        client = _client_returning([_recipe_row()])
        repo = SupabaseRecipeRepository(client)

        matches = repo.find_by_id_suffix("456789ab", limit=2)

        query = client.table.return_value
        client.table.assert_called_with("recipes")
        query.like.assert_called_once_with("id_text", "%456789ab")
        query.limit.assert_called_once_with(2)
        assert len(matches) == 1

    @pytest.mark.parametrize("suffix", ["", "a,b", "ab)", "a b", "a*"])
    def test_unsafe_suffix_never_queried(self, suffix: str) -> None:
        client = _client_returning([_recipe_row()])
        assert SupabaseRecipeRepository(client).find_by_id_suffix(suffix) == []
        client.table.assert_not_called()

    def test_insert_recipe_api_error_wrapped(self) -> None:
        client = _client_returning([])
        client.table.return_value.execute.side_effect = APIError(
            {"message": "boom", "code": "XX000"}
        )
        with pytest.raises(RepositoryError) as exc_info:
            SupabaseRecipeRepository(client).insert_recipe({"title": "Soup"})
        assert exc_info.value.operation == "insert_recipe"

    def test_insert_recipe_without_row_fails(self) -> None:
        client = _client_returning([])
        with pytest.raises(RepositoryError):
            SupabaseRecipeRepository(client).insert_recipe({"title": "Soup"})

    def test_insert_ingredients_empty_batch_skips_store(self) -> None:
        client = _client_returning([])
        assert SupabaseRecipeRepository(client).insert_ingredients([]) == []
        client.table.assert_not_called()

    def test_get_aggregate_missing(self) -> None:
        client = _client_returning([])
        assert SupabaseRecipeRepository(client).get_aggregate("nope") is None


class TestSupabaseCollectionRepository:
    def test_duplicate_membership_mapped(self) -> None:
        client = _client_returning([])
        client.table.return_value.execute.side_effect = APIError(
            {"message": "duplicate key", "code": "23505"}
        )
        with pytest.raises(DuplicateMembershipError):
            SupabaseCollectionRepository(client).add_recipe("col-1", "rec-1")

    def test_other_insert_error_is_repository_error(self) -> None:
        client = _client_returning([])
        client.table.return_value.execute.side_effect = APIError(
            {"message": "fk violation", "code": "23503"}
        )
        with pytest.raises(RepositoryError):
            SupabaseCollectionRepository(client).add_recipe("col-1", "rec-1")

    def test_get_collection_scoped_to_owner(self) -> None:
        client = _client_returning([{"id": "col-1", "user_id": "user-1"}])
        row = SupabaseCollectionRepository(client).get_collection("col-1", "user-1")
        query = client.table.return_value
        query.eq.assert_any_call("id", "col-1")
        query.eq.assert_any_call("user_id", "user-1")
        assert row == {"id": "col-1", "user_id": "user-1"}

    def test_remove_recipe_filters_both_keys(self) -> None:
        client = _client_returning([])
        SupabaseCollectionRepository(client).remove_recipe("col-1", "rec-1")
        query = client.table.return_value
        query.delete.assert_called_once_with()
        query.eq.assert_any_call("collection_id", "col-1")
        query.eq.assert_any_call("recipe_id", "rec-1")

    def test_has_recipe(self) -> None:
        client = _client_returning([{"recipe_id": "rec-1"}])
        assert SupabaseCollectionRepository(client).has_recipe("col-1", "rec-1") is True
        query = client.table.return_value
        query.eq.assert_any_call("collection_id", "col-1")
        query.eq.assert_any_call("recipe_id", "rec-1")

    def test_has_recipe_missing(self) -> None:
        client = _client_returning([])
        assert SupabaseCollectionRepository(client).has_recipe("col-1", "rec-1") is False
