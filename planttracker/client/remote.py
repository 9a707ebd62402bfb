"""Remote Store client — async httpx wrapper over the garden REST API."""

import logging

import httpx

from planttracker.api.schemas import (
    CatalogPlantUpdate,
    PhotoCreate,
    PhotoResponse,
    SavedPlantCreate,
    SavedPlantResponse,
)
from planttracker.client.errors import (
    ConflictError,
    NetworkError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from planttracker.client.session import Session
from planttracker.core.config import Settings

logger = logging.getLogger("planttracker.remote")

GARDEN_PATH = "/api/garden"


def _error_detail(response: httpx.Response) -> str | None:
    try:
        detail = response.json().get("detail")
    except (ValueError, AttributeError):
        return response.text or None
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        # FastAPI validation errors: [{"loc": [...], "msg": "..."}]
        return "; ".join(str(item.get("msg", item)) for item in detail if isinstance(item, dict)) or None
    return None


def _parse(response: httpx.Response, model):
    try:
        return model.model_validate(response.json())
    except ValueError as e:
        raise NetworkError("Unexpected response from server.") from e


def _parse_list(response: httpx.Response, model) -> list:
    try:
        return [model.model_validate(item) for item in response.json()]
    except (ValueError, TypeError) as e:
        raise NetworkError("Unexpected response from server.") from e


class RemoteStore:
    """Talks to the PlantTracker backend.

    Every call carries the session's bearer credential. Non-success
    responses are raised as the matching GardenError subclass; a 401 also
    expires the session through a response hook, once per burst.
    """

    def __init__(
        self,
        settings: Settings,
        session: Session,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.http_timeout_seconds,
            transport=transport,
            event_hooks={"request": [self._authorize], "response": [self._check_session]},
        )

    async def _authorize(self, request: httpx.Request) -> None:
        token = self.session.token
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def _check_session(self, response: httpx.Response) -> None:
        if response.status_code == 401:
            await self.session.expire()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise NetworkError(f"Could not reach the server: {e}") from e

        if response.is_success:
            return response

        detail = _error_detail(response)
        status = response.status_code
        logger.debug(f"{method} {url} failed with {status}: {detail}")
        if status == 409:
            raise ConflictError(detail, status)
        if status == 404:
            raise NotFoundError(None, status)
        if status == 401:
            raise UnauthorizedError(None, status)
        if status in (400, 413, 422):
            raise ValidationError(detail, status)
        raise NetworkError(f"Server error ({status}).", status)

    # ── Garden ────────────────────────────────────────────────────────────────

    async def list_garden(self) -> list[SavedPlantResponse]:
        response = await self._request("GET", GARDEN_PATH)
        return _parse_list(response, SavedPlantResponse)

    async def add_plant(self, new_plant: SavedPlantCreate) -> SavedPlantResponse:
        response = await self._request("POST", GARDEN_PATH, json=new_plant.model_dump(mode="json"))
        return _parse(response, SavedPlantResponse)

    async def update_plant(self, plant_id: int, patch: CatalogPlantUpdate) -> SavedPlantResponse:
        response = await self._request("PUT", f"{GARDEN_PATH}/{plant_id}", json=patch.to_payload())
        return _parse(response, SavedPlantResponse)

    async def delete_plant(self, plant_id: int) -> None:
        await self._request("DELETE", f"{GARDEN_PATH}/{plant_id}")

    async def mark_watered(self, plant_id: int) -> SavedPlantResponse:
        response = await self._request("PUT", f"{GARDEN_PATH}/{plant_id}/watered")
        return _parse(response, SavedPlantResponse)

    # ── Photos ────────────────────────────────────────────────────────────────

    async def list_photos(self, plant_id: int) -> list[PhotoResponse]:
        response = await self._request("GET", f"{GARDEN_PATH}/{plant_id}/photos")
        return _parse_list(response, PhotoResponse)

    async def add_photo(self, plant_id: int, photo: PhotoCreate) -> PhotoResponse:
        response = await self._request(
            "POST", f"{GARDEN_PATH}/{plant_id}/photos", json=photo.model_dump(mode="json")
        )
        return _parse(response, PhotoResponse)

    async def delete_photo(self, plant_id: int, photo_id: int) -> None:
        await self._request("DELETE", f"{GARDEN_PATH}/{plant_id}/photos/{photo_id}")

    async def aclose(self) -> None:
        await self._client.aclose()

