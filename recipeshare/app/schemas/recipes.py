from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field

DifficultyValue = Literal["easy", "medium", "hard"]


class IngredientItem(BaseModel):
    name: str
    amount: str
    unit: Optional[str] = None
    orderIndex: int = 0


class IngredientInput(BaseModel):
    name: str = ""
    amount: str = ""
    unit: Optional[str] = None


class AuthorSummary(BaseModel):
    id: Optional[str] = None
    username: Optional[str] = None
    fullName: Optional[str] = None


class CategorySummary(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    icon: Optional[str] = None


class DietaryFlags(BaseModel):
    vegetarian: bool = False
    vegan: bool = False
    glutenFree: bool = False
    dairyFree: bool = False
    nutFree: bool = False


class RecipeResponse(BaseModel):
    id: str
    slug: str
    title: str
    description: Optional[str] = None
    instructions: str = ""
    steps: list[str] = Field(default_factory=list)
    prepTime: Optional[int] = None
    cookTime: Optional[int] = None
    servings: Optional[int] = None
    difficulty: Optional[DifficultyValue] = None
    imageUrl: Optional[str] = None
    youtubeUrl: Optional[str] = None
    isPublic: bool = True
    dietary: DietaryFlags = Field(default_factory=DietaryFlags)
    authorId: str
    author: Optional[AuthorSummary] = None
    category: Optional[CategorySummary] = None
    originalRecipeId: Optional[str] = None
    isFork: bool = False
    forkCount: int = 0
    likeCount: int = 0
    viewCount: int = 0
    ingredients: list[IngredientItem] = Field(default_factory=list)
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
    # only set for a signed-in viewer
    liked: Optional[bool] = None


class RecipeListResponse(BaseModel):
    items: list[RecipeResponse]
    total: int
    limit: int


class RecipeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    instructions: str = ""
    prepTime: Optional[int] = Field(default=None, ge=0)
    cookTime: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[DifficultyValue] = None
    imageUrl: Optional[str] = None
    youtubeUrl: Optional[str] = None
    isPublic: bool = True
    dietary: DietaryFlags = Field(default_factory=DietaryFlags)
    categoryId: Optional[str] = None
    ingredients: list[IngredientInput] = Field(default_factory=list)


class RecipeCopyRequest(BaseModel):
    """Edits applied on top of the source recipe when saving a personal copy."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    instructions: Optional[str] = None
    prepTime: Optional[int] = Field(default=None, ge=0)
    cookTime: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, ge=1)
    difficulty: Optional[DifficultyValue] = None
    ingredients: Optional[list[IngredientInput]] = None


class CollectionCopyResponse(BaseModel):
    collectionId: str
    originalRecipeId: str
    recipe: RecipeResponse


class LikeResponse(BaseModel):
    recipeId: str
    liked: bool


class CommentAuthor(BaseModel):
    username: str
    fullName: Optional[str] = None


class CommentResponse(BaseModel):
    id: str
    content: str
    createdAt: Optional[str] = None
    parentCommentId: Optional[str] = None
    author: CommentAuthor


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)
    parentCommentId: Optional[str] = None
