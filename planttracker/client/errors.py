"""Client error taxonomy and the result type returned by cache writes."""

from dataclasses import dataclass

from planttracker.api.schemas import SavedPlantResponse


class GardenError(Exception):
    """Base class for every failure the Remote Store client reports."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        self.status_code = status_code
        super().__init__(self.message)


class ConflictError(GardenError):
    default_message = "This plant is already in your garden."


class NotFoundError(GardenError):
    default_message = "This plant no longer exists. Pull to refresh."


class UnauthorizedError(GardenError):
    default_message = "Your session has expired. Please sign in again."


class NetworkError(GardenError):
    default_message = "Could not reach the server. Check your connection and try again."


class ValidationError(GardenError):
    default_message = "Some of the values entered are not valid."


@dataclass
class MutationResult:
    """Outcome of a garden write. Failures carry the error and a readable message."""

    success: bool
    plant: SavedPlantResponse | None = None
    error: GardenError | None = None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None

    @classmethod
    def ok(cls, plant: SavedPlantResponse | None = None) -> "MutationResult":
        return cls(success=True, plant=plant)

    @classmethod
    def failed(cls, error: GardenError) -> "MutationResult":
        return cls(success=False, error=error)

    def __bool__(self) -> bool:
        return self.success
