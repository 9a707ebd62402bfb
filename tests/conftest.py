"""Shared fixtures: an in-memory fake of the garden REST API and client wiring."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from planttracker.client.cache import GardenCache
from planttracker.client.preferences import Preferences
from planttracker.client.remote import RemoteStore
from planttracker.client.session import Session
from planttracker.core.config import Settings

TOKEN = "test-token"

PLANT_DEFAULTS = {
    "plant_id": 0,
    "common_name": "Plant",
    "scientific_name": "",
    "nickname": None,
    "thumbnail_url": None,
    "notes": None,
    "watering_reminder_enabled": False,
    "watering_frequency_days": None,
    "last_watered_at": None,
    "added_at": "2024-01-01T00:00:00Z",
    "watering": None,
    "sunlight": None,
    "cycle": None,
    "care_level": None,
}

CUSTOM_ONLY = {"common_name", "scientific_name", "watering", "sunlight", "cycle", "care_level"}


class FakeGardenServer:
    """Just enough of the Remote Store to exercise the client."""

    def __init__(self):
        self.plants: dict[int, dict] = {}
        self.photos: dict[int, list[dict]] = {}
        self.next_id = 1
        self.offline = False
        self.requests: list[httpx.Request] = []
        self.token = TOKEN

    def seed(self, **fields) -> dict:
        plant = dict(PLANT_DEFAULTS, id=self.next_id)
        plant.update(fields)
        self.plants[plant["id"]] = plant
        self.next_id += 1
        return plant

    def listing(self) -> list[dict]:
        return sorted(self.plants.values(), key=lambda p: (p["common_name"], p["id"]))

    def count(self, method: str, path_prefix: str = "/api/garden") -> int:
        return sum(
            1 for r in self.requests if r.method == method and r.url.path.startswith(path_prefix)
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.offline:
            raise httpx.ConnectError("offline", request=request)
        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"detail": "Invalid or expired credential"})

        parts = request.url.path.strip("/").split("/")[2:]  # drop "api/garden"
        body = json.loads(request.content) if request.content else {}

        if not parts:
            if request.method == "GET":
                return httpx.Response(200, json=self.listing())
            if request.method == "POST":
                if body.get("plant_id") and any(
                    p["plant_id"] == body["plant_id"] for p in self.plants.values()
                ):
                    return httpx.Response(409, json={"detail": "This plant is already in your garden."})
                plant = self.seed(**body, added_at=datetime.now(timezone.utc).isoformat())
                return httpx.Response(201, json=plant)

        plant = self.plants.get(int(parts[0]))
        if plant is None:
            return httpx.Response(404, json={"detail": "Plant not found"})

        if len(parts) == 1:
            if request.method == "PUT":
                kind = body.pop("kind", "catalog")
                if kind == "custom" and plant["plant_id"] != 0:
                    return httpx.Response(400, json={"detail": "Catalog plants only accept catalog updates."})
                plant.update(body)
                return httpx.Response(200, json=plant)
            if request.method == "DELETE":
                del self.plants[plant["id"]]
                self.photos.pop(plant["id"], None)
                return httpx.Response(204)

        if parts[1:] == ["watered"] and request.method == "PUT":
            plant["last_watered_at"] = "2024-03-05T12:00:00Z"
            return httpx.Response(200, json=plant)

        if parts[1:2] == ["photos"]:
            photos = self.photos.setdefault(plant["id"], [])
            if request.method == "GET":
                return httpx.Response(200, json=photos)
            if request.method == "POST":
                photo = {
                    "id": len(photos) + 1,
                    "saved_plant_id": plant["id"],
                    "image_data": body["image_data"],
                    "caption": body.get("caption"),
                    "taken_at": "2024-03-05T12:00:00Z",
                }
                photos.insert(0, photo)
                return httpx.Response(201, json=photo)
            if request.method == "DELETE":
                photo_id = int(parts[2])
                if not any(p["id"] == photo_id for p in photos):
                    return httpx.Response(404, json={"detail": "Photo not found"})
                self.photos[plant["id"]] = [p for p in photos if p["id"] != photo_id]
                return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        api_base_url="http://testserver",
        data_dir=tmp_path / "client",
        notification_enabled=True,
        timezone="UTC",
    )


@pytest.fixture
def server() -> FakeGardenServer:
    return FakeGardenServer()


@pytest.fixture
def preferences(settings) -> Preferences:
    return Preferences(settings.preferences_path)


@pytest.fixture
def session(preferences) -> Session:
    session = Session(preferences)
    session.login(TOKEN)
    return session


@pytest.fixture
async def remote(settings, session, server):
    store = RemoteStore(settings, session, transport=httpx.MockTransport(server.handler))
    yield store
    await store.aclose()


@pytest.fixture
async def cache(remote, settings):
    garden = GardenCache(remote, settings.garden_cache_path, settings.max_photo_bytes)
    yield garden
    await garden.wait_idle()
