from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

from recipeshare.app.schemas.recipes import RecipeResponse


class ProfileResponse(BaseModel):
    id: str
    username: str
    fullName: Optional[str] = None
    bio: Optional[str] = None
    avatarUrl: Optional[str] = None
    website: Optional[str] = None
    location: Optional[str] = None
    recipeCount: int = 0
    totalLikes: int = 0
    badgeTier: Literal["bronze", "silver", "gold"] = "bronze"
    createdAt: Optional[str] = None


class ProfileRecipesResponse(BaseModel):
    profileId: str
    tab: Literal["recipes", "liked"]
    items: list[RecipeResponse] = Field(default_factory=list)
