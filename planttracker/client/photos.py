"""Photo gallery for a saved plant — thin wrapper over the Remote Store."""

import logging

from planttracker.api.schemas import PhotoCreate, PhotoResponse
from planttracker.client.errors import GardenError, ValidationError
from planttracker.client.remote import RemoteStore

logger = logging.getLogger("planttracker.photos")


class PhotoGallery:
    """Lists, uploads and deletes plant photos.

    Listing degrades to an empty gallery on failure; uploads and deletes
    report failures to the caller.
    """

    def __init__(self, remote: RemoteStore, max_photo_bytes: int):
        self.remote = remote
        self.max_photo_bytes = max_photo_bytes

    async def list_photos(self, plant_id: int) -> list[PhotoResponse]:
        try:
            return await self.remote.list_photos(plant_id)
        except GardenError as e:
            logger.warning(f"Could not load photos for plant {plant_id}: {e.message}")
            return []

    async def add_photo(
        self, plant_id: int, image_data: str, caption: str | None = None
    ) -> tuple[PhotoResponse | None, GardenError | None]:
        """Upload a photo. Returns (photo, None) or (None, error)."""
        if not image_data or not image_data.strip():
            return None, ValidationError("Image data is required.")
        if len(image_data) > self.max_photo_bytes:
            limit_mb = self.max_photo_bytes // (1024 * 1024)
            return None, ValidationError(f"Image is too large. Maximum size is {limit_mb} MB.")
        try:
            photo = await self.remote.add_photo(plant_id, PhotoCreate(image_data=image_data, caption=caption))
        except GardenError as e:
            logger.warning(f"Photo upload for plant {plant_id} failed: {e.message}")
            return None, e
        return photo, None

    async def delete_photo(self, plant_id: int, photo_id: int) -> bool:
        try:
            await self.remote.delete_photo(plant_id, photo_id)
        except GardenError as e:
            logger.warning(f"Delete of photo {photo_id} failed: {e.message}")
            return False
        return True
