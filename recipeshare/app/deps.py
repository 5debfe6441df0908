# recipeshare/app/deps.py (keeps the client singleton, exposed as a dependency)

from __future__ import annotations
import logging
from supabase import create_client, Client
from recipeshare.app.config import settings
from recipeshare.app.infra.db.supabase_recipes_repo import (
    SupabaseCollectionRepository,
    SupabaseRecipeRepository,
)
from recipeshare.app.services.fork_service import ForkService
from recipeshare.app.services.recipe_lookup import RecipeLookupService
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

logger = logging.getLogger(__name__)

_client: Client | None = None

def get_supabase() -> Client:
    global _client
    if _client is None:
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


auth_scheme = HTTPBearer(auto_error=False)

class CurrentUser(BaseModel):
    id: str
    email: str | None = None
    name: str | None = None


def _resolve_user(token: str, supa: Client) -> CurrentUser | None:
    res = supa.auth.get_user(token)
    user = res.user if res else None
    if not user:
        return None

    # user metadata may carry a display name
    name = None
    meta = getattr(user, "user_metadata", None) or {}
    if isinstance(meta, dict):
        name = meta.get("full_name") or meta.get("name")

    return CurrentUser(id=str(user.id), email=user.email, name=name)


async def get_current_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser:
    """
    Takes Authorization: Bearer <access_token> issued by Supabase,
    validates it against GoTrue and returns the minimal user data.
    """
    if cred is None or cred.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")

    try:
        user = _resolve_user(cred.credentials, supa)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid/expired token")
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


async def get_optional_user(
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
    supa: Client = Depends(get_supabase),
) -> CurrentUser | None:
    """Same as get_current_user, but anonymous visitors get None instead of a 401."""
    if cred is None or cred.scheme.lower() != "bearer":
        return None
    try:
        return _resolve_user(cred.credentials, supa)
    except Exception as exc:
        logger.info("auth.optional_token_rejected error=%s", exc)
        return None


def get_recipe_repository(supa: Client = Depends(get_supabase)) -> SupabaseRecipeRepository:
    return SupabaseRecipeRepository(supa)


def get_collection_repository(supa: Client = Depends(get_supabase)) -> SupabaseCollectionRepository:
    return SupabaseCollectionRepository(supa)


def get_lookup_service(
    recipes: SupabaseRecipeRepository = Depends(get_recipe_repository),
) -> RecipeLookupService:
    return RecipeLookupService(recipes)


def get_fork_service(
    recipes: SupabaseRecipeRepository = Depends(get_recipe_repository),
    collections: SupabaseCollectionRepository = Depends(get_collection_repository),
) -> ForkService:
    return ForkService(recipes, collections)
