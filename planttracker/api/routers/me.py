"""Profile router — the signed-in user's display name and zip code."""

from fastapi import APIRouter, Depends, HTTPException

from planttracker.api.deps import get_current_user, get_store
from planttracker.api.schemas import UserResponse, UserUpdate
from planttracker.core.store import GardenStore
from planttracker.models.user import User

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    return user


@router.put("/me", response_model=UserResponse)
async def update_profile(
    body: UserUpdate,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """Update the profile. The zip code is the default for zone lookups."""
    updated = store.update_user(user.id, body.display_name, body.zip_code)
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return updated
