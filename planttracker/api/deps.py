"""PlantTracker API — dependency injection."""

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from planttracker.core.store import GardenStore
from planttracker.core.zone import ZoneService
from planttracker.models.user import User

_bearer = HTTPBearer(auto_error=False)


def get_store(request: Request) -> GardenStore:
    """Get the garden store from app state."""
    return request.app.state.store


def get_zone_service(request: Request) -> ZoneService:
    return request.app.state.zone_service


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    store: GardenStore = Depends(get_store),
) -> User:
    """Resolve the bearer credential to a user; 401 when missing or unknown."""
    user = store.get_user_by_token(credentials.credentials) if credentials else None
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired credential",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
