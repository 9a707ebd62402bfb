"""Zone router — hardiness zone for a zip code."""

from fastapi import APIRouter, Depends, HTTPException

from planttracker.api.deps import get_current_user, get_zone_service
from planttracker.api.schemas import ZoneResponse
from planttracker.core.zone import ZoneService
from planttracker.models.user import User

router = APIRouter()


@router.get("", response_model=ZoneResponse)
async def get_my_zone(
    zip_code: str | None = None,
    user: User = Depends(get_current_user),
    zone_service: ZoneService = Depends(get_zone_service),
):
    """Zone for ?zip_code=, falling back to the zip stored on the profile."""
    zip_code = (zip_code or "").strip() or user.zip_code
    if not zip_code:
        raise HTTPException(
            status_code=400,
            detail="Zip code is required. Pass ?zip_code=12345 or update your profile.",
        )
    zone = await zone_service.get_zone(zip_code)
    return ZoneResponse(zip_code=zip_code, zone=zone)


@router.get("/{zip_code}", response_model=ZoneResponse)
async def get_zone(
    zip_code: str,
    zone_service: ZoneService = Depends(get_zone_service),
):
    """Look up the USDA hardiness zone; zone is null when unknown."""
    zone = await zone_service.get_zone(zip_code)
    return ZoneResponse(zip_code=zip_code, zone=zone)
