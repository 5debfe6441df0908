from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from supabase import Client

from recipeshare.app.deps import CurrentUser, get_current_user, get_supabase
from recipeshare.services import profiles

router = APIRouter(prefix="/auth", tags=["auth"])


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    username: Optional[str] = None


@router.get("/me", response_model=MeResponse)
async def me(
    user: CurrentUser = Depends(get_current_user),
    supa: Client = Depends(get_supabase),
) -> MeResponse:
    # a signed-up user without a profile row yet still gets a response
    try:
        username = profiles.get_profile(supa, user.id).get("username")
    except profiles.ProfileNotFoundError:
        username = None
    return MeResponse(id=user.id, email=user.email, name=user.name, username=username)
