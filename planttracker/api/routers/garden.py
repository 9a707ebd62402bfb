"""Garden router — saved plant CRUD endpoints."""

from fastapi import APIRouter, Body, Depends, HTTPException, Response

from planttracker.api.deps import get_current_user, get_store
from planttracker.api.schemas import (
    CatalogPlantUpdate,
    CustomPlantUpdate,
    SavedPlantCreate,
    SavedPlantResponse,
)
from planttracker.core.store import CatalogPlantEditError, DuplicatePlantError, GardenStore
from planttracker.models.user import User

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Plant not found")


@router.get("", response_model=list[SavedPlantResponse])
async def list_garden(
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """List the user's saved plants, ordered by name."""
    return store.list_plants(user.id)


@router.get("/{plant_id}", response_model=SavedPlantResponse)
async def get_saved_plant(
    plant_id: int,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    plant = store.get_plant(user.id, plant_id)
    if not plant:
        raise _not_found()
    return plant


@router.post("", response_model=SavedPlantResponse, status_code=201)
async def add_saved_plant(
    body: SavedPlantCreate,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """Add a plant to the garden. One entry per catalog plant; custom plants may repeat."""
    data = body.model_dump()
    if not body.is_custom:
        # Catalog care attributes are display-only, sourced from the catalog
        for key in ("watering", "sunlight", "cycle", "care_level"):
            data.pop(key)
    try:
        return store.add_plant(user.id, data)
    except DuplicatePlantError:
        raise HTTPException(status_code=409, detail="This plant is already in your garden.")


@router.put("/{plant_id}", response_model=SavedPlantResponse)
async def update_saved_plant(
    plant_id: int,
    body: CatalogPlantUpdate | CustomPlantUpdate = Body(..., discriminator="kind"),
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """Partially update a plant. Name and care fields require a custom plant."""
    existing = store.get_plant(user.id, plant_id)
    if not existing:
        raise _not_found()
    if body.kind == "custom" and not existing.is_custom:
        raise HTTPException(status_code=400, detail="Catalog plants only accept catalog updates.")
    try:
        plant = store.update_plant(user.id, plant_id, body.changes())
    except CatalogPlantEditError as e:
        raise HTTPException(status_code=400, detail=f"Fields not editable on catalog plants: {e.args[0]}")
    if not plant:
        raise _not_found()
    return plant


@router.delete("/{plant_id}", status_code=204)
async def remove_saved_plant(
    plant_id: int,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """Remove a plant and its photos."""
    if not store.delete_plant(user.id, plant_id):
        raise _not_found()
    return Response(status_code=204)


@router.put("/{plant_id}/watered", response_model=SavedPlantResponse)
async def mark_watered(
    plant_id: int,
    user: User = Depends(get_current_user),
    store: GardenStore = Depends(get_store),
):
    """Record that a plant was watered right now (server clock)."""
    plant = store.mark_watered(user.id, plant_id)
    if not plant:
        raise _not_found()
    return plant
