# recipeshare/app/routers/browse.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from recipeshare.app.deps import get_supabase
from recipeshare.app.routers.recipes import _recipe_from_record
from recipeshare.app.schemas.profiles import ProfileRecipesResponse, ProfileResponse
from recipeshare.app.schemas.recipes import CategorySummary, RecipeResponse
from recipeshare.services import catalog, profiles
from recipeshare.services.profiles import ProfileTab

categories_router = APIRouter(prefix="/categories", tags=["categories"])
profiles_router = APIRouter(prefix="/profiles", tags=["profiles"])


@categories_router.get("/", response_model=list[CategorySummary])
async def list_categories(supa: Client = Depends(get_supabase)) -> list[CategorySummary]:
    return [
        CategorySummary(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            description=row.get("description"),
            icon=row.get("icon"),
        )
        for row in catalog.list_categories(supa)
    ]


@categories_router.get("/{name}/recipes", response_model=list[RecipeResponse])
async def list_category_recipes(
    name: str,
    supa: Client = Depends(get_supabase),
) -> list[RecipeResponse]:
    try:
        category = catalog.get_category_by_name(supa, name)
    except catalog.CategoryNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    rows = catalog.list_category_recipes(supa, str(category["id"]))
    return [_recipe_from_record(row) for row in rows]


@profiles_router.get("/{identifier}", response_model=ProfileResponse)
async def get_profile(
    identifier: str,
    supa: Client = Depends(get_supabase),
) -> ProfileResponse:
    try:
        row = profiles.get_profile(supa, identifier)
    except profiles.ProfileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return ProfileResponse(**profiles.serialize_profile(row))


@profiles_router.get("/{identifier}/recipes", response_model=ProfileRecipesResponse)
async def get_profile_recipes(
    identifier: str,
    tab: ProfileTab = "recipes",
    supa: Client = Depends(get_supabase),
) -> ProfileRecipesResponse:
    try:
        row = profiles.get_profile(supa, identifier)
    except profiles.ProfileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    profile_id = str(row["id"])
    records = profiles.list_profile_recipes(supa, profile_id, tab)
    return ProfileRecipesResponse(
        profileId=profile_id,
        tab=tab,
        items=[_recipe_from_record(record) for record in records],
    )
