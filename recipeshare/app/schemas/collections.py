from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from recipeshare.app.schemas.recipes import RecipeResponse


class CollectionItem(BaseModel):
    recipeId: str
    recipe: RecipeResponse
    addedAt: Optional[str] = None


class CollectionSummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    isPublic: bool = False
    recipeCount: int = 0
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class CollectionDetail(CollectionSummary):
    items: list[CollectionItem] = Field(default_factory=list)


class CollectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    isPublic: bool = False


class CollectionAppendRequest(BaseModel):
    recipeId: str = Field(..., min_length=1)


class CollectionMembership(BaseModel):
    collectionId: str
    recipeId: str
    addedAt: Optional[str] = None
