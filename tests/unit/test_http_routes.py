from __future__ import annotations

from typing import Any, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from postgrest.exceptions import APIError

from recipeshare.app import deps
from recipeshare.app.domain.errors import (
    CollectionSwapError,
    DuplicateMembershipError,
    ForkIngredientsError,
    RecipeNotFoundError,
)
from recipeshare.app.domain.models import (
    CollectionCopyResult,
    Difficulty,
    Ingredient,
    IngredientDraft,
    Recipe,
    RecipeAggregate,
)
from recipeshare.app.main import app
from recipeshare.app.services.recipe_lookup import RecipeLookupService


def make_aggregate(recipe_id: str = "rec-0000-12345678", **fields: Any) -> RecipeAggregate:
    values: dict[str, Any] = {"title": "Mom's Best Chili", "author_id": "user-1"}
    values.update(fields)
    return RecipeAggregate(
        recipe=Recipe(id=recipe_id, difficulty=Difficulty.EASY, instructions="Brown\nSimmer", **values),
        ingredients=[Ingredient(name="beans", amount="1 can", order_index=0)],
    )


class LookupStub:
    def __init__(self, aggregate: Optional[RecipeAggregate] = None) -> None:
        self.aggregate = aggregate
        self.slug_calls: list[tuple[str, Optional[str]]] = []

    def resolve_slug(self, slug: str, viewer_id: Optional[str] = None) -> RecipeAggregate:
        self.slug_calls.append((slug, viewer_id))
        if self.aggregate is None:
            raise RecipeNotFoundError(slug)
        return self.aggregate

    def get_aggregate(self, recipe_id: str, viewer_id: Optional[str] = None) -> RecipeAggregate:
        if self.aggregate is None or self.aggregate.id != recipe_id:
            raise RecipeNotFoundError(recipe_id)
        return self.aggregate


class ForkStub:
    def __init__(self) -> None:
        self.fork_calls: list[tuple[RecipeAggregate, str, dict]] = []
        self.copy_calls: list[tuple[str, RecipeAggregate, str, dict]] = []
        self.error: Optional[Exception] = None

    def fork(self, source: RecipeAggregate, actor_id: str, overrides: dict) -> RecipeAggregate:
        self.fork_calls.append((source, actor_id, overrides))
        if self.error:
            raise self.error
        return make_aggregate(
            "copy-0000-aaaabbbb",
            title=overrides.get("title", source.recipe.title),
            author_id=actor_id,
            is_public=False,
            original_recipe_id=source.id,
        )

    def edit_as_copy(
        self, collection_id: str, source: RecipeAggregate, actor_id: str, overrides: dict
    ) -> CollectionCopyResult:
        self.copy_calls.append((collection_id, source, actor_id, overrides))
        if self.error:
            raise self.error
        return CollectionCopyResult(
            collection_id=collection_id,
            original_recipe_id=source.id,
            copy=make_aggregate(
                "copy-0000-ccccdddd",
                title=overrides.get("title", source.recipe.title),
                author_id=actor_id,
                is_public=False,
                original_recipe_id=source.id,
            ),
        )


@pytest.fixture
def lookup() -> LookupStub:
    return LookupStub(make_aggregate())


@pytest.fixture
def forks() -> ForkStub:
    return ForkStub()


@pytest.fixture
def client(lookup: LookupStub, forks: ForkStub):
    user = deps.CurrentUser(id="user-2", email="cook@example.com")
    app.dependency_overrides[deps.get_lookup_service] = lambda: lookup
    app.dependency_overrides[deps.get_fork_service] = lambda: forks
    app.dependency_overrides[deps.get_current_user] = lambda: user
    app.dependency_overrides[deps.get_optional_user] = lambda: None
    app.dependency_overrides[deps.get_supabase] = lambda: MagicMock()
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["ok"] is True


class TestRecipeBySlug:
    def test_resolved_recipe_carries_slug(self, client: TestClient, lookup: LookupStub) -> None:
        response = client.get("/recipes/mom-s-best-chili-12345678")

        assert response.status_code == 200
        body = response.json()
        assert body["slug"] == "mom-s-best-chili-12345678"
        assert body["steps"] == ["Brown", "Simmer"]
        assert body["ingredients"][0]["name"] == "beans"
        assert lookup.slug_calls == [("mom-s-best-chili-12345678", None)]

    def test_unresolved_slug_redirects_to_listing(self, client: TestClient, lookup: LookupStub) -> None:
        lookup.aggregate = None
        response = client.get("/recipes/nothing-ffffffff", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/recipes"


class TestForkRoute:
    def test_fork_uses_marked_title(self, client: TestClient, forks: ForkStub) -> None:
        response = client.post("/recipes/rec-0000-12345678/fork")

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Mom's Best Chili (Forked)"
        assert body["originalRecipeId"] == "rec-0000-12345678"
        assert body["isPublic"] is False
        assert body["slug"].endswith("-aaaabbbb")
        _, actor_id, _ = forks.fork_calls[0]
        assert actor_id == "user-2"

    def test_unknown_recipe(self, client: TestClient) -> None:
        response = client.post("/recipes/missing/fork")
        assert response.status_code == 404

    def test_ingredient_failure_names_copy(self, client: TestClient, forks: ForkStub) -> None:
        forks.error = ForkIngredientsError("copy-1", "rec-0000-12345678", "boom")
        response = client.post("/recipes/rec-0000-12345678/fork")
        assert response.status_code == 502
        assert "copy-1" in response.json()["detail"]


class TestCollectionCopyRoute:
    def test_only_sent_fields_are_overrides(self, client: TestClient, forks: ForkStub) -> None:
        response = client.post(
            "/collections/col-1/recipes/rec-0000-12345678/copy",
            json={
                "title": "My Chili",
                "prepTime": 5,
                "ingredients": [{"name": "beans", "amount": "2 cans"}],
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["collectionId"] == "col-1"
        assert body["originalRecipeId"] == "rec-0000-12345678"
        assert body["recipe"]["title"] == "My Chili"

        collection_id, _, actor_id, overrides = forks.copy_calls[0]
        assert collection_id == "col-1"
        assert actor_id == "user-2"
        assert overrides == {
            "title": "My Chili",
            "prep_time": 5,
            "ingredients": [IngredientDraft(name="beans", amount="2 cans", unit=None)],
        }

    def test_swap_failure(self, client: TestClient, forks: ForkStub) -> None:
        forks.error = CollectionSwapError("col-1", "rec-0000-12345678", "copy-9", "add_copy", "boom")
        response = client.post("/collections/col-1/recipes/rec-0000-12345678/copy", json={})
        assert response.status_code == 502
        assert "copy-9" in response.json()["detail"]


class TestCollectionMembershipRoutes:
    def test_duplicate_recipe_conflicts(self, client: TestClient) -> None:
        repo = MagicMock()
        repo.get_collection.return_value = {"id": "col-1"}
        repo.add_recipe.side_effect = DuplicateMembershipError("col-1", "rec-0000-12345678")
        app.dependency_overrides[deps.get_collection_repository] = lambda: repo

        response = client.post(
            "/collections/col-1/recipes", json={"recipeId": "rec-0000-12345678"}
        )
        assert response.status_code == 409

    def test_foreign_collection_not_found(self, client: TestClient) -> None:
        repo = MagicMock()
        repo.get_collection.return_value = None
        app.dependency_overrides[deps.get_collection_repository] = lambda: repo

        response = client.delete("/collections/col-1/recipes/rec-1")
        assert response.status_code == 404
        repo.remove_recipe.assert_not_called()


class TestAuthMe:
    def test_me_includes_profile_username(self, client: TestClient) -> None:
        user_id = "5f0c2b1e-7a3d-4c11-9e2f-0123456789ab"
        supa = MagicMock()
        query = supa.table.return_value
        query.select.return_value = query
        query.eq.return_value = query
        query.limit.return_value = query
        query.execute.return_value = MagicMock(data=[{"id": user_id, "username": "cook"}])
        app.dependency_overrides[deps.get_current_user] = lambda: deps.CurrentUser(id=user_id)
        app.dependency_overrides[deps.get_supabase] = lambda: supa

        response = client.get("/auth/me")

        assert response.status_code == 200
        assert response.json() == {"id": user_id, "email": None, "name": None, "username": "cook"}
        query.eq.assert_called_once_with("id", user_id)


class TestStoreErrors:
    def test_store_failure_becomes_bad_gateway(self, client: TestClient) -> None:
        supa = MagicMock()
        supa.table.side_effect = APIError({"message": "relation missing", "code": "42P01"})
        app.dependency_overrides[deps.get_supabase] = lambda: supa

        response = client.get("/categories/")

        assert response.status_code == 502
        assert response.json() == {"detail": "Upstream store error"}


def _supa_with_results(*results: list[dict[str, Any]]) -> MagicMock:
    supa = MagicMock()
    query = supa.table.return_value
    for name in ("select", "insert", "eq", "in_", "order", "limit"):
        getattr(query, name).return_value = query
    query.execute.side_effect = [MagicMock(data=rows) for rows in results]
    return supa


class TestCollectionVisibility:
    def test_detail_hides_someone_elses_private_recipe(self, client: TestClient) -> None:
        supa = _supa_with_results(
            [{"id": "col-1", "name": "Favourites", "user_id": "user-2"}],
            [
                {"recipe_id": "rec-secret", "added_at": "2024-01-15T10:00:00Z"},
                {"recipe_id": "rec-open", "added_at": "2024-01-16T10:00:00Z"},
            ],
            [
                {"id": "rec-secret", "title": "The Secret", "author_id": "victim", "is_public": False},
                {"id": "rec-open", "title": "Open Stew", "author_id": "victim", "is_public": True},
            ],
        )
        app.dependency_overrides[deps.get_supabase] = lambda: supa

        response = client.get("/collections/col-1")

        assert response.status_code == 200
        body = response.json()
        assert [item["recipeId"] for item in body["items"]] == ["rec-open"]
        assert body["recipeCount"] == 1
        assert "The Secret" not in response.text

    def test_private_recipe_of_another_user_cannot_be_added(self, client: TestClient) -> None:
        recipes = MagicMock()
        recipes.get_aggregate.return_value = make_aggregate(
            "rec-secret", author_id="victim", is_public=False
        )
        collections_repo = MagicMock()
        collections_repo.get_collection.return_value = {"id": "col-1"}
        app.dependency_overrides[deps.get_lookup_service] = lambda: RecipeLookupService(recipes)
        app.dependency_overrides[deps.get_collection_repository] = lambda: collections_repo

        response = client.post("/collections/col-1/recipes", json={"recipeId": "rec-secret"})

        assert response.status_code == 404
        recipes.get_aggregate.assert_called_once_with("rec-secret")
        collections_repo.add_recipe.assert_not_called()

    def test_unknown_recipe_cannot_be_added(self, client: TestClient) -> None:
        collections_repo = MagicMock()
        collections_repo.get_collection.return_value = {"id": "col-1"}
        app.dependency_overrides[deps.get_collection_repository] = lambda: collections_repo

        response = client.post("/collections/col-1/recipes", json={"recipeId": "nope"})

        assert response.status_code == 404
        collections_repo.add_recipe.assert_not_called()


class TestViewerState:
    def test_signed_in_viewer_sees_like_state(self, client: TestClient) -> None:
        supa = _supa_with_results([{"id": 1}])
        app.dependency_overrides[deps.get_supabase] = lambda: supa
        app.dependency_overrides[deps.get_optional_user] = lambda: deps.CurrentUser(id="user-2")

        response = client.get("/recipes/mom-s-best-chili-12345678")

        assert response.status_code == 200
        assert response.json()["liked"] is True
        supa.table.assert_called_with("recipe_likes")

    def test_anonymous_viewer_gets_no_like_state(self, client: TestClient) -> None:
        body = client.get("/recipes/mom-s-best-chili-12345678").json()
        assert body["liked"] is None
        assert body["isFork"] is False

    def test_fork_is_flagged(self, client: TestClient) -> None:
        body = client.post("/recipes/rec-0000-12345678/fork").json()
        assert body["isFork"] is True


class TestCommentRoutes:
    def test_posted_comment_names_its_author(self, client: TestClient) -> None:
        supa = _supa_with_results(
            [{"id": "c1", "content": "Great", "recipe_id": "r1"}],
            [
                {
                    "id": "c1",
                    "content": "Great",
                    "profiles": {"username": "cook", "full_name": "Sam Cook"},
                }
            ],
        )
        app.dependency_overrides[deps.get_supabase] = lambda: supa

        response = client.post("/recipes/r1/comments", json={"content": "Great"})

        assert response.status_code == 201
        assert response.json()["author"] == {"username": "cook", "fullName": "Sam Cook"}
