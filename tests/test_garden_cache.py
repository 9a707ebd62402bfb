import asyncio
import json

import pydantic
import pytest

from planttracker.api.schemas import CatalogPlantUpdate, CustomPlantUpdate, SavedPlantCreate
from planttracker.client.cache import GardenCache, GardenChange, SavedPlant, reconcile
from planttracker.client.errors import ConflictError, NetworkError, NotFoundError, ValidationError


def _plant(plant_id: int, name: str, **fields) -> SavedPlant:
    data = {"id": plant_id, "plant_id": 0, "common_name": name, "added_at": "2024-01-01T00:00:00Z"}
    data.update(fields)
    return SavedPlant.model_validate(data)


# ── Reads ─────────────────────────────────────────────────────────────────────

async def test_first_load_waits_for_network_and_persists(cache, server, settings):
    server.seed(common_name="Basil")
    server.seed(common_name="Aloe")

    plants = await cache.get_garden()

    assert [p.common_name for p in plants] == ["Aloe", "Basil"]
    assert server.count("GET") == 1
    on_disk = json.loads(settings.garden_cache_path.read_text())
    assert {p["common_name"] for p in on_disk} == {"Aloe", "Basil"}


async def test_cached_read_returns_immediately_then_revalidates(cache, server):
    server.seed(common_name="Basil")
    await cache.get_garden()

    server.seed(common_name="Chives")
    plants = await cache.get_garden()
    assert [p.common_name for p in plants] == ["Basil"]

    await cache.wait_idle()
    assert [p.common_name for p in cache.peek()] == ["Basil", "Chives"]


async def test_disk_snapshot_serves_first_paint_when_offline(remote, server, settings):
    server.seed(common_name="Basil")
    first = GardenCache(remote, settings.garden_cache_path, settings.max_photo_bytes)
    await first.get_garden()

    server.offline = True
    second = GardenCache(remote, settings.garden_cache_path, settings.max_photo_bytes)
    plants = await second.get_garden()
    await second.wait_idle()

    assert [p.common_name for p in plants] == ["Basil"]
    assert [p.common_name for p in second.peek()] == ["Basil"]


async def test_corrupt_snapshot_falls_back_to_network(cache, server, settings):
    settings.garden_cache_path.parent.mkdir(parents=True, exist_ok=True)
    settings.garden_cache_path.write_text("{not json")
    server.seed(common_name="Basil")

    plants = await cache.get_garden()

    assert [p.common_name for p in plants] == ["Basil"]
    assert server.count("GET") == 1


async def test_first_load_offline_returns_empty_without_raising(cache, server):
    server.offline = True
    assert await cache.get_garden() == []
    assert not cache.has_snapshot


async def test_refresh_failure_keeps_existing_snapshot(cache, server):
    server.seed(common_name="Basil")
    await cache.refresh()

    server.offline = True
    await cache.refresh()

    assert [p.common_name for p in cache.peek()] == ["Basil"]


# ── Writes ────────────────────────────────────────────────────────────────────

async def test_add_is_visible_without_a_network_round_trip(cache, server):
    server.seed(common_name="Basil")
    await cache.get_garden()
    await cache.wait_idle()

    result = await cache.add(SavedPlantCreate(plant_id=7, common_name="Mint"))
    assert result.success
    server.offline = True

    plants = await cache.get_garden()
    await cache.wait_idle()

    assert [p.common_name for p in plants] == ["Basil", "Mint"]
    assert result.plant in plants


async def test_duplicate_catalog_add_returns_conflict_and_leaves_cache(cache, server):
    server.seed(plant_id=42, common_name="Tomato")
    await cache.get_garden()
    before = cache.peek()

    result = await cache.add(SavedPlantCreate(plant_id=42, common_name="Tomato"))

    assert not result.success
    assert isinstance(result.error, ConflictError)
    assert result.message == "This plant is already in your garden."
    assert cache.peek() == before
    assert [p.plant_id for p in cache.peek()].count(42) == 1
    assert [p["plant_id"] for p in server.plants.values()].count(42) == 1


async def test_custom_plants_may_repeat(cache, server):
    await cache.get_garden()
    first = await cache.add({"plant_id": 0, "common_name": "Mystery succulent"})
    second = await cache.add({"plant_id": 0, "common_name": "Mystery succulent"})

    assert first.success and second.success
    assert len(cache.peek()) == 2


async def test_invalid_add_fails_before_any_request(cache, server):
    result = await cache.add({"plant_id": 0, "common_name": "   "})

    assert not result.success
    assert isinstance(result.error, ValidationError)
    assert server.requests == []


async def test_update_sends_only_set_fields_and_keeps_order(cache, server):
    server.seed(common_name="Aloe")
    basil = server.seed(plant_id=3, common_name="Basil", notes="old")
    server.seed(common_name="Chives")
    await cache.get_garden()
    await cache.wait_idle()

    result = await cache.update(basil["id"], CatalogPlantUpdate(notes="pinch flowers"))

    assert result.success
    sent = json.loads(server.requests[-1].content)
    assert sent == {"notes": "pinch flowers", "kind": "catalog"}
    assert [p.common_name for p in cache.peek()] == ["Aloe", "Basil", "Chives"]
    assert cache.get_cached(basil["id"]).notes == "pinch flowers"


async def test_custom_update_on_catalog_plant_is_rejected_locally(cache, server):
    basil = server.seed(plant_id=3, common_name="Basil")
    await cache.get_garden()
    await cache.wait_idle()
    sent_before = len(server.requests)

    result = await cache.update(basil["id"], CustomPlantUpdate(common_name="Thai basil"))

    assert isinstance(result.error, ValidationError)
    assert len(server.requests) == sent_before
    assert cache.get_cached(basil["id"]).common_name == "Basil"


async def test_catalog_update_carrying_a_name_is_rejected(cache, server):
    basil = server.seed(plant_id=42, common_name="Basil")
    await cache.get_garden()
    await cache.wait_idle()
    sent_before = len(server.requests)

    result = await cache.update(basil["id"], {"kind": "catalog", "common_name": "Renamed"})

    assert not result.success
    assert isinstance(result.error, ValidationError)
    assert len(server.requests) == sent_before
    assert cache.get_cached(basil["id"]).common_name == "Basil"


def test_catalog_update_model_refuses_custom_fields():
    with pytest.raises(pydantic.ValidationError):
        CatalogPlantUpdate(common_name="Renamed")


async def test_untagged_patch_is_a_catalog_update(cache, server):
    basil = server.seed(plant_id=42, common_name="Basil")
    await cache.get_garden()
    await cache.wait_idle()

    assert (await cache.update(basil["id"], {"notes": "water at dusk"})).success
    assert json.loads(server.requests[-1].content) == {"notes": "water at dusk", "kind": "catalog"}

    result = await cache.update(basil["id"], {"sunlight": "Full sun"})
    assert isinstance(result.error, ValidationError)


async def test_custom_update_on_custom_plant(cache, server):
    fern = server.seed(common_name="Fern")
    await cache.get_garden()
    await cache.wait_idle()

    result = await cache.update(fern["id"], {"kind": "custom", "common_name": "Boston fern", "sunlight": "Part Shade"})

    assert result.success
    cached = cache.get_cached(fern["id"])
    assert cached.common_name == "Boston fern"
    assert cached.sunlight == "Part Shade"


async def test_update_of_deleted_plant_surfaces_not_found(cache, server):
    basil = server.seed(common_name="Basil")
    await cache.get_garden()
    await cache.wait_idle()
    del server.plants[basil["id"]]

    result = await cache.update(basil["id"], CatalogPlantUpdate(notes="x"))

    assert isinstance(result.error, NotFoundError)
    assert cache.get_cached(basil["id"]) is not None


async def test_write_while_offline_surfaces_network_failure(cache, server):
    await cache.get_garden()
    server.offline = True

    result = await cache.add(SavedPlantCreate(plant_id=9, common_name="Sage"))

    assert isinstance(result.error, NetworkError)
    assert result.message


async def test_remove(cache, server):
    basil = server.seed(common_name="Basil")
    await cache.get_garden()
    await cache.wait_idle()

    assert await cache.remove(basil["id"]) is True
    assert cache.peek() == []
    assert await cache.remove(basil["id"]) is False


async def test_mark_watered_keeps_server_timestamp(cache, server):
    basil = server.seed(common_name="Basil", watering_frequency_days=3)
    await cache.get_garden()
    await cache.wait_idle()

    result = await cache.mark_watered(basil["id"])

    assert result.success
    assert result.plant.last_watered_at.isoformat() == "2024-03-05T12:00:00+00:00"
    assert cache.get_cached(basil["id"]).last_watered_at == result.plant.last_watered_at


async def test_set_cover_photo(cache, server):
    basil = server.seed(common_name="Basil")
    await cache.get_garden()
    await cache.wait_idle()

    assert await cache.set_cover_photo(basil["id"], "data:image/png;base64,AAAA") is True
    assert cache.get_cached(basil["id"]).thumbnail_url == "data:image/png;base64,AAAA"
    assert json.loads(server.requests[-1].content) == {
        "thumbnail_url": "data:image/png;base64,AAAA",
        "kind": "catalog",
    }


async def test_set_cover_photo_rejects_oversized_payload(remote, server, settings):
    basil = server.seed(common_name="Basil")
    garden = GardenCache(remote, settings.garden_cache_path, max_photo_bytes=10)
    await garden.get_garden()
    await garden.wait_idle()

    assert await garden.set_cover_photo(basil["id"], "x" * 11) is False
    assert garden.get_cached(basil["id"]).thumbnail_url is None


async def test_successful_writes_match_a_fresh_fetch(cache, server):
    server.seed(common_name="Aloe")
    await cache.get_garden()
    await cache.wait_idle()

    mint = (await cache.add(SavedPlantCreate(plant_id=11, common_name="Mint"))).plant
    rose = (await cache.add(SavedPlantCreate(common_name="Rose"))).plant
    await cache.update(mint.id, CatalogPlantUpdate(watering_reminder_enabled=True, watering_frequency_days=2))
    await cache.mark_watered(rose.id)
    await cache.remove(1)

    fresh = {p["id"]: SavedPlant.model_validate(p) for p in server.listing()}
    assert {p.id: p for p in cache.peek()} == fresh


# ── Invalidation and observers ────────────────────────────────────────────────

async def test_invalidate_clears_memory_and_disk(cache, server, settings):
    server.seed(common_name="Basil")
    await cache.get_garden()
    assert settings.garden_cache_path.exists()

    await cache.invalidate()

    assert not cache.has_snapshot
    assert not settings.garden_cache_path.exists()


async def test_listeners_receive_diffs(cache, server):
    server.seed(common_name="Basil")
    seen: list[GardenChange] = []

    async def on_change(change: GardenChange):
        seen.append(change)

    unsubscribe = cache.subscribe(on_change)
    await cache.get_garden()
    added = await cache.add(SavedPlantCreate(plant_id=5, common_name="Mint"))

    assert seen[0].added == [1]
    assert seen[1].added == [added.plant.id]

    unsubscribe()
    await cache.remove(added.plant.id)
    assert len(seen) == 2


async def test_failing_listener_does_not_break_writes(cache, server):
    def boom(change):
        raise RuntimeError("listener bug")

    cache.subscribe(boom)
    await cache.get_garden()
    result = await cache.add(SavedPlantCreate(common_name="Rose"))

    assert result.success
    assert len(cache.peek()) == 1


# ── Refresh ordering ──────────────────────────────────────────────────────────

class GatedRemote:
    """Remote whose list call blocks until released, to interleave a write."""

    def __init__(self, initial: list[SavedPlant]):
        self.garden = list(initial)
        self.gate = asyncio.Event()
        self.gated = False

    async def list_garden(self):
        snapshot = list(self.garden)
        if self.gated:
            await self.gate.wait()
        return snapshot

    async def add_plant(self, new_plant):
        plant = _plant(len(self.garden) + 1, new_plant.common_name)
        self.garden.append(plant)
        return plant


async def test_refresh_started_before_a_write_is_discarded(tmp_path):
    remote = GatedRemote([_plant(1, "Aloe")])
    garden = GardenCache(remote, tmp_path / "snapshot.json", max_photo_bytes=1024)
    await garden.refresh()

    remote.gated = True
    in_flight = asyncio.create_task(garden.refresh())
    await asyncio.sleep(0)
    await garden.add(SavedPlantCreate(common_name="Basil"))
    remote.gate.set()
    await in_flight

    assert [p.common_name for p in garden.peek()] == ["Aloe", "Basil"]


async def test_refresh_after_invalidate_is_discarded(tmp_path):
    remote = GatedRemote([_plant(1, "Aloe")])
    garden = GardenCache(remote, tmp_path / "snapshot.json", max_photo_bytes=1024)
    remote.gated = True

    in_flight = asyncio.create_task(garden.refresh())
    await asyncio.sleep(0)
    await garden.invalidate()
    remote.gate.set()
    await in_flight

    assert not garden.has_snapshot


# ── reconcile ─────────────────────────────────────────────────────────────────

def test_reconcile_reports_added_removed_and_updated():
    current = [_plant(1, "Aloe"), _plant(2, "Basil"), _plant(3, "Chives")]
    incoming = [_plant(1, "Aloe"), _plant(3, "Chives", notes="trim"), _plant(4, "Dill")]

    change = reconcile(current, incoming)

    assert change.added == [4]
    assert change.removed == [2]
    assert change.updated == [3]
    assert change.plants == incoming


def test_reconcile_without_changes():
    plants = [_plant(1, "Aloe")]
    assert not reconcile(plants, list(plants)).changed


@pytest.mark.parametrize("payload", [{"kind": "catalog", "watering_frequency_days": 0}, {"kind": "bogus"}])
async def test_invalid_patch_is_a_validation_failure(cache, server, payload):
    result = await cache.update(1, payload)
    assert isinstance(result.error, ValidationError)
    assert server.requests == []
