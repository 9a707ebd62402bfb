"""PlantTracker Garden Cache — stale-while-revalidate view of the user's garden.

The cache owns the in-memory snapshot and its on-disk copy. Reads are served
from memory (or the disk snapshot at startup) and refreshed in the background;
writes go to the Remote Store first and then apply the server's returned
object to the matching entry. Nothing outside this module mutates the list.
"""

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable

import pydantic
from pydantic import TypeAdapter

from planttracker.api.schemas import (
    CatalogPlantUpdate,
    CustomPlantUpdate,
    PlantUpdate,
    SavedPlantCreate,
)
from planttracker.api.schemas import SavedPlantResponse as SavedPlant
from planttracker.client.errors import GardenError, MutationResult, ValidationError
from planttracker.client.remote import RemoteStore

logger = logging.getLogger("planttracker.cache")

_snapshot_adapter = TypeAdapter(list[SavedPlant])
_update_adapter = TypeAdapter(PlantUpdate)


@dataclass
class GardenChange:
    """What changed between two snapshots, keyed by plant id."""

    plants: list[SavedPlant]
    added: list[int] = field(default_factory=list)
    removed: list[int] = field(default_factory=list)
    updated: list[int] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.updated)


ChangeListener = Callable[[GardenChange], Awaitable[None] | None]


def reconcile(current: list[SavedPlant], incoming: list[SavedPlant]) -> GardenChange:
    """Diff two snapshots so observers can patch their views instead of rebuilding."""
    before = {p.id: p for p in current}
    after_ids = {p.id for p in incoming}
    change = GardenChange(plants=list(incoming))
    change.removed = [p.id for p in current if p.id not in after_ids]
    for plant in incoming:
        old = before.get(plant.id)
        if old is None:
            change.added.append(plant.id)
        elif old != plant:
            change.updated.append(plant.id)
    return change


def _validation_failure(e: pydantic.ValidationError) -> ValidationError:
    errors = e.errors()
    message = errors[0].get("msg") if errors else None
    return ValidationError(message)


class GardenCache:
    """Client-side cache of the user's saved plants.

    Reads never fail: a refresh that cannot reach the server leaves the
    current snapshot in place. Writes always report a MutationResult (or a
    bool) instead of raising.

    Refresh results are tagged with the mutation generation and request
    number they were issued under. A result is dropped when a local write
    happened meanwhile or a newer refresh has already landed.
    """

    def __init__(self, remote: RemoteStore, snapshot_path: str | Path, max_photo_bytes: int):
        self.remote = remote
        self.snapshot_path = Path(snapshot_path)
        self.max_photo_bytes = max_photo_bytes
        self._plants: list[SavedPlant] | None = None
        self._listeners: list[ChangeListener] = []
        self._generation = 0
        self._epoch = 0
        self._refresh_requested = 0
        self._refresh_applied = 0
        self._refresh_task: asyncio.Task | None = None

    # ── Reads ─────────────────────────────────────────────────────────────────

    @property
    def has_snapshot(self) -> bool:
        return self._plants is not None

    def peek(self) -> list[SavedPlant]:
        """Current snapshot without triggering a refresh."""
        return list(self._plants or [])

    def get_cached(self, plant_id: int) -> SavedPlant | None:
        for plant in self._plants or []:
            if plant.id == plant_id:
                return plant
        return None

    async def get_garden(self) -> list[SavedPlant]:
        """Return the best data available now and revalidate in the background.

        Only the very first load with neither a memory nor a disk snapshot
        waits on the network.
        """
        if self._plants is None:
            self.load_snapshot()

        if self._plants is not None:
            self._spawn_refresh()
            return list(self._plants)

        await self.refresh()
        return list(self._plants or [])

    async def refresh(self) -> None:
        """Fetch the full garden and replace the snapshot. Failures are logged only."""
        self._refresh_requested += 1
        request_no = self._refresh_requested
        generation = self._generation
        epoch = self._epoch

        try:
            plants = await self.remote.list_garden()
        except GardenError as e:
            logger.warning(f"Garden refresh failed, keeping cached data: {e.message}")
            return

        if epoch != self._epoch:
            logger.debug("Dropping refresh issued before the cache was invalidated")
            return
        if self._plants is not None and generation != self._generation:
            logger.debug("Dropping refresh superseded by a local change")
            return
        if request_no < self._refresh_applied:
            logger.debug("Dropping refresh older than the one already applied")
            return

        self._refresh_applied = request_no
        await self._set_plants(plants)

    async def wait_idle(self) -> None:
        """Wait for any background refresh to finish."""
        task = self._refresh_task
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)

    # ── Writes ────────────────────────────────────────────────────────────────

    async def add(self, new_plant: SavedPlantCreate | dict[str, Any]) -> MutationResult:
        """Add a plant. A repeated catalog plant fails with ConflictError."""
        if not isinstance(new_plant, SavedPlantCreate):
            try:
                new_plant = SavedPlantCreate.model_validate(new_plant)
            except pydantic.ValidationError as e:
                return MutationResult.failed(_validation_failure(e))

        try:
            plant = await self.remote.add_plant(new_plant)
        except GardenError as e:
            logger.warning(f"Add plant {new_plant.common_name!r} failed: {e.message}")
            return MutationResult.failed(e)

        self._generation += 1
        if self._plants is None:
            self._spawn_refresh()
        else:
            await self._set_plants([*self._plants, plant])
        logger.info(f"Added plant {plant.id} ({plant.common_name}) to garden")
        return MutationResult.ok(plant)

    async def update(
        self,
        plant_id: int,
        patch: CatalogPlantUpdate | CustomPlantUpdate | dict[str, Any],
    ) -> MutationResult:
        """Send only the fields set on the patch and apply the server's result.

        A dict without a ``kind`` tag is read as a catalog update.
        """
        if not isinstance(patch, CatalogPlantUpdate):
            try:
                patch = _update_adapter.validate_python({"kind": "catalog", **patch})
            except pydantic.ValidationError as e:
                return MutationResult.failed(_validation_failure(e))

        cached = self.get_cached(plant_id)
        if cached is not None and not cached.is_custom and patch.kind == "custom":
            return MutationResult.failed(
                ValidationError("Name and care details can only be edited on custom plants.")
            )

        try:
            plant = await self.remote.update_plant(plant_id, patch)
        except GardenError as e:
            logger.warning(f"Update of plant {plant_id} failed: {e.message}")
            return MutationResult.failed(e)

        await self._replace_entry(plant)
        return MutationResult.ok(plant)

    async def remove(self, plant_id: int) -> bool:
        try:
            await self.remote.delete_plant(plant_id)
        except GardenError as e:
            logger.warning(f"Remove of plant {plant_id} failed: {e.message}")
            return False

        self._generation += 1
        if self._plants is not None:
            await self._set_plants([p for p in self._plants if p.id != plant_id])
        logger.info(f"Removed plant {plant_id} from garden")
        return True

    async def mark_watered(self, plant_id: int) -> MutationResult:
        """Record a watering; the server's timestamp is kept verbatim."""
        try:
            plant = await self.remote.mark_watered(plant_id)
        except GardenError as e:
            logger.warning(f"Mark watered for plant {plant_id} failed: {e.message}")
            return MutationResult.failed(e)

        await self._replace_entry(plant)
        return MutationResult.ok(plant)

    async def set_cover_photo(self, plant_id: int, image_data: str) -> bool:
        """Use an image (URL or data URI) as the plant's thumbnail."""
        if not image_data or len(image_data) > self.max_photo_bytes:
            logger.warning(f"Rejected cover photo for plant {plant_id}: empty or too large")
            return False

        try:
            plant = await self.remote.update_plant(plant_id, CatalogPlantUpdate(thumbnail_url=image_data))
        except GardenError as e:
            logger.warning(f"Cover photo update for plant {plant_id} failed: {e.message}")
            return False

        await self._replace_entry(plant)
        return True

    async def invalidate(self) -> None:
        """Forget everything, memory and disk (called on logout)."""
        self._epoch += 1
        self._generation += 1
        self._plants = None
        self._delete_snapshot()
        logger.info("Garden cache invalidated")

    # ── Observers ─────────────────────────────────────────────────────────────

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register an on-change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, change: GardenChange) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(change)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Garden change listener failed: {e}", exc_info=True)

    # ── Snapshot handling ─────────────────────────────────────────────────────

    async def _set_plants(self, plants: list[SavedPlant]) -> None:
        first_load = self._plants is None
        change = reconcile(self._plants or [], plants)
        self._plants = list(plants)
        self._write_snapshot()
        if first_load or change.changed:
            await self._notify(change)

    async def _replace_entry(self, plant: SavedPlant) -> None:
        self._generation += 1
        if self._plants is None:
            self._spawn_refresh()
            return
        for index, existing in enumerate(self._plants):
            if existing.id == plant.id:
                updated = list(self._plants)
                updated[index] = plant
                await self._set_plants(updated)
                return
        # Entry vanished locally (removed or not yet fetched); resync wholesale
        self._spawn_refresh()

    def _spawn_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        self._refresh_task = asyncio.get_running_loop().create_task(self.refresh())

    def load_snapshot(self) -> bool:
        """Load the on-disk snapshot into memory. A missing or corrupt file means no cache."""
        if not self.snapshot_path.exists():
            return False
        try:
            plants = _snapshot_adapter.validate_json(self.snapshot_path.read_bytes())
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable garden snapshot {self.snapshot_path}: {e}")
            return False
        self._plants = plants
        logger.debug(f"Loaded {len(plants)} plants from garden snapshot")
        return True

    def _write_snapshot(self) -> None:
        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.snapshot_path.with_suffix(self.snapshot_path.suffix + ".tmp")
            tmp.write_bytes(_snapshot_adapter.dump_json(self._plants or []))
            os.replace(tmp, self.snapshot_path)
        except OSError as e:
            logger.error(f"Failed to write garden snapshot {self.snapshot_path}: {e}")

    def _delete_snapshot(self) -> None:
        try:
            self.snapshot_path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete garden snapshot {self.snapshot_path}: {e}")

