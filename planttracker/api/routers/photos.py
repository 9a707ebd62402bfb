"""Photos router — per-plant photo gallery."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from planttracker.api.deps import get_current_user, get_store
from planttracker.api.schemas import PhotoCreate, PhotoResponse
from planttracker.core.store import GardenStore
from planttracker.models.user import User

router = APIRouter()


def _require_plant(store: GardenStore, user: User, plant_id: int) -> None:
    if not store.get_plant(user.id, plant_id):
        raise HTTPException(status_code=404, detail="Plant not found")


@router.get("", response_model=list[PhotoResponse])
async def list_photos(
    plant_id: int,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """List photos for a plant, newest first."""
    _require_plant(store, user, plant_id)
    return store.list_photos(user.id, plant_id)


@router.post("", response_model=PhotoResponse, status_code=201)
async def add_photo(
    plant_id: int,
    body: PhotoCreate,
    request: Request,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """Attach a photo. The encoded payload is capped at max_photo_bytes."""
    _require_plant(store, user, plant_id)
    if not body.image_data.strip():
        raise HTTPException(status_code=400, detail="Image data is required.")
    max_bytes = request.app.state.settings.max_photo_bytes
    if len(body.image_data) > max_bytes:
        raise HTTPException(
            status_code=400,
            detail=f"Image is too large. Maximum size is {max_bytes // (1024 * 1024)} MB.",
        )
    return store.add_photo(user.id, plant_id, body.image_data, body.caption)


@router.delete("/{photo_id}", status_code=204)
async def delete_photo(
    plant_id: int,
    photo_id: int,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    if not store.delete_photo(user.id, plant_id, photo_id):
        raise HTTPException(status_code=404, detail="Photo not found")
    return Response(status_code=204)
