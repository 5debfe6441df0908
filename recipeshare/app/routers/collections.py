# recipeshare/app/routers/collections.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from starlette.concurrency import run_in_threadpool
from supabase import Client

from recipeshare.app.deps import (
    CurrentUser,
    get_collection_repository,
    get_current_user,
    get_fork_service,
    get_lookup_service,
    get_supabase,
)
from recipeshare.app.domain.errors import (
    CollectionNotFoundError,
    CollectionSwapError,
    DuplicateMembershipError,
    ForkIngredientsError,
    RecipeNotFoundError,
    RepositoryError,
)
from recipeshare.app.domain.models import IngredientDraft
from recipeshare.app.infra.db.base import CollectionRepository
from recipeshare.app.routers.recipes import _recipe_from_aggregate, _recipe_from_record
from recipeshare.app.schemas.collections import (
    CollectionAppendRequest,
    CollectionCreate,
    CollectionDetail,
    CollectionItem,
    CollectionMembership,
    CollectionSummary,
)
from recipeshare.app.schemas.recipes import CollectionCopyResponse, RecipeCopyRequest
from recipeshare.app.services.fork_service import ForkService
from recipeshare.app.services.recipe_lookup import RecipeLookupService
from recipeshare.services import collections as collection_service
from recipeshare.services.catalog import format_timestamp, stringify_id

log = logging.getLogger("collections")
router = APIRouter(prefix="/collections", tags=["collections"])

_COPY_FIELD_NAMES = {
    "title": "title",
    "description": "description",
    "instructions": "instructions",
    "prepTime": "prep_time",
    "cookTime": "cook_time",
    "servings": "servings",
    "difficulty": "difficulty",
}


def _copy_overrides(payload: RecipeCopyRequest) -> dict:
    """Only the fields the user actually sent replace the original's values."""
    changes = payload.model_dump(exclude_unset=True)
    overrides = {
        _COPY_FIELD_NAMES[key]: value
        for key, value in changes.items()
        if key in _COPY_FIELD_NAMES
    }
    if "ingredients" in changes and payload.ingredients is not None:
        overrides["ingredients"] = [
            IngredientDraft(name=item.name, amount=item.amount, unit=item.unit)
            for item in payload.ingredients
        ]
    return overrides


@router.get("/", response_model=list[CollectionSummary])
async def list_collections(
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> list[CollectionSummary]:
    payloads = collection_service.list_collections(supa, str(user.id))
    return [CollectionSummary(**payload) for payload in payloads]


@router.post("/", response_model=CollectionSummary, status_code=status.HTTP_201_CREATED)
async def create_collection(
    payload: CollectionCreate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> CollectionSummary:
    try:
        summary = collection_service.create_collection(
            supa,
            str(user.id),
            name=payload.name,
            description=payload.description,
            is_public=payload.isPublic,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return CollectionSummary(**summary)


@router.get("/{collection_id}", response_model=CollectionDetail)
async def get_collection(
    collection_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> CollectionDetail:
    try:
        bundle = collection_service.fetch_collection_bundle(supa, str(user.id), collection_id)
    except CollectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    recipe_map = {
        stringify_id(row.get("id")): _recipe_from_record(row)
        for row in bundle["recipes"]
    }
    items: list[CollectionItem] = []
    for item in bundle["items"]:
        recipe = recipe_map.get(item["recipeId"])
        if not recipe:
            continue
        items.append(
            CollectionItem(recipeId=item["recipeId"], recipe=recipe, addedAt=item["addedAt"])
        )
    detail_payload = collection_service.serialize_collection(bundle["collection"], len(items))
    detail_payload["items"] = items
    return CollectionDetail(**detail_payload)


@router.post(
    "/{collection_id}/recipes",
    response_model=CollectionMembership,
    status_code=status.HTTP_201_CREATED,
)
async def add_recipe_to_collection(
    collection_id: str,
    payload: CollectionAppendRequest,
    user: CurrentUser = Depends(get_current_user),
    collections: CollectionRepository = Depends(get_collection_repository),
    lookup: RecipeLookupService = Depends(get_lookup_service),
) -> CollectionMembership:
    actor_id = str(user.id)
    try:
        if collections.get_collection(collection_id, actor_id) is None:
            raise CollectionNotFoundError(collection_id)
        # only recipes the user can read may be collected
        await run_in_threadpool(lookup.get_aggregate, payload.recipeId, actor_id)
        row = collections.add_recipe(collection_id, payload.recipeId)
    except CollectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except RecipeNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Recipe not found") from exc
    except DuplicateMembershipError as exc:
        raise HTTPException(status_code=409, detail="Recipe is already in this collection") from exc
    except RepositoryError as exc:
        raise HTTPException(status_code=502, detail="Could not update the collection") from exc
    return CollectionMembership(
        collectionId=collection_id,
        recipeId=payload.recipeId,
        addedAt=format_timestamp(row.get("added_at")),
    )


@router.delete(
    "/{collection_id}/recipes/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_recipe_from_collection(
    collection_id: str,
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    collections: CollectionRepository = Depends(get_collection_repository),
) -> Response:
    try:
        if collections.get_collection(collection_id, str(user.id)) is None:
            raise CollectionNotFoundError(collection_id)
        collections.remove_recipe(collection_id, recipe_id)
    except CollectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except RepositoryError as exc:
        raise HTTPException(status_code=502, detail="Could not update the collection") from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{collection_id}/recipes/{recipe_id}/copy",
    response_model=CollectionCopyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_personal_copy(
    collection_id: str,
    recipe_id: str,
    payload: RecipeCopyRequest,
    user: CurrentUser = Depends(get_current_user),
    lookup: RecipeLookupService = Depends(get_lookup_service),
    forks: ForkService = Depends(get_fork_service),
) -> CollectionCopyResponse:
    actor_id = str(user.id)
    overrides = _copy_overrides(payload)
    try:
        source = await run_in_threadpool(lookup.get_aggregate, recipe_id, actor_id)
        result = await run_in_threadpool(
            forks.edit_as_copy, collection_id, source, actor_id, overrides
        )
    except RecipeNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Recipe not found") from exc
    except CollectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except CollectionSwapError as exc:
        raise HTTPException(
            status_code=502,
            detail=f"Copy {exc.copy_recipe_id} saved, but the collection could not be updated",
        ) from exc
    except ForkIngredientsError as exc:
        raise HTTPException(
            status_code=502,
            detail=f"Recipe copied as {exc.recipe_id} but its ingredients could not be saved",
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(status_code=502, detail="Could not save the copy") from exc

    log.info(
        "collection.copy_saved collection=%s original=%s copy=%s",
        collection_id, recipe_id, result.copy.id,
    )
    return CollectionCopyResponse(
        collectionId=result.collection_id,
        originalRecipeId=result.original_recipe_id,
        recipe=_recipe_from_aggregate(result.copy),
    )
