from collections.abc import AsyncGenerator
from datetime import datetime

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from slotbook.core.config import Settings
from slotbook.core.security import decode_access_token
from slotbook.core.timeutils import local_now
from slotbook.storage.base import BookingStore
from slotbook.storage.sql import SqlBookingStore

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_store(request: Request) -> AsyncGenerator[BookingStore, None]:
    """One store per request: the shared in-memory store, or a SQL store bound to a fresh session."""
    memory_store = getattr(request.app.state, "memory_store", None)
    if memory_store is not None:
        yield memory_store
        return
    async with request.app.state.db.session_maker() as session:
        try:
            yield SqlBookingStore(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_current_admin(
    settings: Settings = Depends(get_settings),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    subject = decode_access_token(settings, credentials.credentials)
    if not subject or subject != settings.admin_username:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject


def get_now(settings: Settings = Depends(get_settings)) -> datetime:
    """Naive wall clock in the configured booking timezone."""
    return local_now(settings.timezone)
