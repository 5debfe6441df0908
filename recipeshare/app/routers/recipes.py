# recipeshare/app/routers/recipes.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from postgrest.exceptions import APIError
from starlette.concurrency import run_in_threadpool
from supabase import Client

from recipeshare.app.config import settings
from recipeshare.app.deps import (
    CurrentUser,
    get_current_user,
    get_fork_service,
    get_lookup_service,
    get_optional_user,
    get_supabase,
)
from recipeshare.app.domain.errors import (
    ForkIngredientsError,
    RecipeNotFoundError,
    RepositoryError,
)
from recipeshare.app.domain.models import RecipeAggregate
from recipeshare.app.infra.db.supabase_recipes_repo import row_to_aggregate
from recipeshare.app.schemas.recipes import (
    AuthorSummary,
    CategorySummary,
    CommentCreate,
    CommentResponse,
    DietaryFlags,
    DifficultyValue,
    IngredientItem,
    LikeResponse,
    RecipeCreate,
    RecipeListResponse,
    RecipeResponse,
)
from recipeshare.app.services.fork_service import ForkService, fork_title
from recipeshare.app.services.recipe_lookup import RecipeLookupService
from recipeshare.services import social
from recipeshare.services.catalog import CatalogFilters, SortOrder, format_timestamp, list_public_recipes
from recipeshare.services.slugify import recipe_slug

log = logging.getLogger("recipes")
router = APIRouter(prefix="/recipes", tags=["recipes"])


def _joined(value: Any) -> Optional[Dict[str, Any]]:
    # to-one embeds are objects, but some client versions hand back a 1-item list
    if isinstance(value, list):
        value = value[0] if value else None
    return value if isinstance(value, dict) else None


def _recipe_from_aggregate(
    aggregate: RecipeAggregate,
    author: Optional[Dict[str, Any]] = None,
    category: Optional[Dict[str, Any]] = None,
) -> RecipeResponse:
    recipe = aggregate.recipe
    author_summary = None
    if author:
        author_summary = AuthorSummary(
            id=str(author.get("id") or recipe.author_id),
            username=author.get("username"),
            fullName=author.get("full_name"),
        )
    category_summary = None
    if category and category.get("id") and category.get("name"):
        category_summary = CategorySummary(
            id=str(category["id"]),
            name=str(category["name"]),
            description=category.get("description"),
            icon=category.get("icon"),
        )

    return RecipeResponse(
        id=recipe.id,
        slug=recipe_slug(recipe.title, recipe.id),
        title=recipe.title,
        description=recipe.description,
        instructions=recipe.instructions,
        steps=recipe.instruction_steps,
        prepTime=recipe.prep_time,
        cookTime=recipe.cook_time,
        servings=recipe.servings,
        difficulty=recipe.difficulty.value if recipe.difficulty else None,
        imageUrl=recipe.image_url,
        youtubeUrl=recipe.youtube_url,
        isPublic=recipe.is_public,
        dietary=DietaryFlags(
            vegetarian=recipe.is_vegetarian,
            vegan=recipe.is_vegan,
            glutenFree=recipe.is_gluten_free,
            dairyFree=recipe.is_dairy_free,
            nutFree=recipe.is_nut_free,
        ),
        authorId=recipe.author_id,
        author=author_summary,
        category=category_summary,
        originalRecipeId=recipe.original_recipe_id,
        isFork=recipe.is_fork,
        forkCount=recipe.fork_count,
        likeCount=recipe.like_count,
        viewCount=recipe.view_count,
        ingredients=[
            IngredientItem(
                name=item.name,
                amount=item.amount,
                unit=item.unit,
                orderIndex=item.order_index,
            )
            for item in aggregate.ingredients
        ],
        createdAt=format_timestamp(recipe.created_at),
        updatedAt=format_timestamp(recipe.updated_at),
    )


def _recipe_from_record(record: Dict[str, Any]) -> RecipeResponse:
    return _recipe_from_aggregate(
        row_to_aggregate(record),
        author=_joined(record.get("author")),
        category=_joined(record.get("category")),
    )


@router.get("/", response_model=RecipeListResponse)
async def list_recipes(
    supa: Client = Depends(get_supabase),
    search: str | None = Query(
        default=None,
        max_length=120,
        alias="q",
        description="Text filter applied to title and description.",
    ),
    category: str | None = Query(default=None, alias="categoryId"),
    difficulty: DifficultyValue | None = Query(default=None),
    vegetarian: bool = False,
    vegan: bool = False,
    gluten_free: bool = Query(False, alias="glutenFree"),
    dairy_free: bool = Query(False, alias="dairyFree"),
    nut_free: bool = Query(False, alias="nutFree"),
    sort: SortOrder = "newest",
) -> RecipeListResponse:
    filters = CatalogFilters(
        search=search,
        category_id=category,
        difficulty=difficulty,
        vegetarian=vegetarian,
        vegan=vegan,
        gluten_free=gluten_free,
        dairy_free=dairy_free,
        nut_free=nut_free,
        sort=sort,
        limit=settings.CATALOG_PAGE_SIZE,
    )
    try:
        records = list_public_recipes(supa, filters)
    except APIError as exc:
        log.error("catalog.fail error=%s", exc.message)
        raise HTTPException(status_code=502, detail="Could not load recipes") from exc

    items = [_recipe_from_record(row) for row in records]
    return RecipeListResponse(items=items, total=len(items), limit=filters.limit)


@router.post("/", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    body: RecipeCreate,
    user: CurrentUser = Depends(get_current_user),
    forks: ForkService = Depends(get_fork_service),
) -> RecipeResponse:
    fields = {
        "title": body.title,
        "description": body.description,
        "instructions": body.instructions,
        "prep_time": body.prepTime,
        "cook_time": body.cookTime,
        "servings": body.servings,
        "difficulty": body.difficulty,
        "image_url": body.imageUrl or None,
        "youtube_url": body.youtubeUrl or None,
        "is_public": body.isPublic,
        "is_vegetarian": body.dietary.vegetarian,
        "is_vegan": body.dietary.vegan,
        "is_gluten_free": body.dietary.glutenFree,
        "is_dairy_free": body.dietary.dairyFree,
        "is_nut_free": body.dietary.nutFree,
        "category_id": body.categoryId,
    }
    ingredients = [item.model_dump() for item in body.ingredients]
    try:
        aggregate = await run_in_threadpool(
            forks.create_recipe, str(user.id), fields, ingredients
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except RepositoryError as exc:
        log.error("recipe.create_fail user=%s error=%s", user.id, exc)
        raise HTTPException(status_code=502, detail="Could not save the recipe") from exc

    log.info("recipe.created recipe=%s author=%s", aggregate.id, user.id)
    return _recipe_from_aggregate(aggregate)


@router.get("/{slug}", response_model=RecipeResponse)
async def get_recipe_by_slug(
    slug: str,
    viewer: CurrentUser | None = Depends(get_optional_user),
    lookup: RecipeLookupService = Depends(get_lookup_service),
    supa: Client = Depends(get_supabase),
):
    viewer_id = str(viewer.id) if viewer else None
    try:
        aggregate = await run_in_threadpool(lookup.resolve_slug, slug, viewer_id)
    except RecipeNotFoundError as exc:
        log.info("recipe.slug_unresolved slug=%s reason=%s", slug, exc)
        return RedirectResponse(
            url=settings.FALLBACK_LISTING_PATH,
            status_code=status.HTTP_303_SEE_OTHER,
        )
    except RepositoryError as exc:
        raise HTTPException(status_code=502, detail="Could not load the recipe") from exc

    response = _recipe_from_aggregate(aggregate)
    if viewer_id:
        response.liked = social.is_liked(supa, viewer_id, aggregate.id)
    return response


@router.post(
    "/{recipe_id}/fork",
    response_model=RecipeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def fork_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    lookup: RecipeLookupService = Depends(get_lookup_service),
    forks: ForkService = Depends(get_fork_service),
) -> RecipeResponse:
    actor_id = str(user.id)
    try:
        source = await run_in_threadpool(lookup.get_aggregate, recipe_id, actor_id)
        copy = await run_in_threadpool(
            forks.fork, source, actor_id, {"title": fork_title(source.recipe.title)}
        )
    except RecipeNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Recipe not found") from exc
    except ForkIngredientsError as exc:
        raise HTTPException(
            status_code=502,
            detail=f"Recipe copied as {exc.recipe_id} but its ingredients could not be saved",
        ) from exc
    except RepositoryError as exc:
        raise HTTPException(status_code=502, detail="Could not fork the recipe") from exc

    return _recipe_from_aggregate(copy)


@router.post("/{recipe_id}/like", response_model=LikeResponse)
async def like_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> LikeResponse:
    try:
        liked = social.like_recipe(supa, str(user.id), recipe_id)
    except APIError as exc:
        log.error("like.fail recipe=%s user=%s error=%s", recipe_id, user.id, exc.message)
        raise HTTPException(status_code=502, detail="Could not like the recipe") from exc
    return LikeResponse(recipeId=recipe_id, liked=liked)


@router.delete("/{recipe_id}/like", response_model=LikeResponse)
async def unlike_recipe(
    recipe_id: str,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> LikeResponse:
    try:
        liked = social.unlike_recipe(supa, str(user.id), recipe_id)
    except APIError as exc:
        log.error("unlike.fail recipe=%s user=%s error=%s", recipe_id, user.id, exc.message)
        raise HTTPException(status_code=502, detail="Could not unlike the recipe") from exc
    return LikeResponse(recipeId=recipe_id, liked=liked)


@router.get("/{recipe_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    recipe_id: str,
    supa: Client = Depends(get_supabase),
) -> list[CommentResponse]:
    return [CommentResponse(**row) for row in social.list_comments(supa, recipe_id)]


@router.post(
    "/{recipe_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    recipe_id: str,
    body: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> CommentResponse:
    try:
        payload = social.add_comment(
            supa,
            recipe_id,
            str(user.id),
            body.content,
            parent_comment_id=body.parentCommentId,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except APIError as exc:
        log.error("comment.fail recipe=%s user=%s error=%s", recipe_id, user.id, exc.message)
        raise HTTPException(status_code=502, detail="Could not post the comment") from exc
    return CommentResponse(**payload)
