import logging

from fastapi import APIRouter, Depends, HTTPException, status

from slotbook.api.deps import get_current_admin, get_settings
from slotbook.api.schemas.auth import AdminPublic, LoginRequest, TokenResponse
from slotbook.core.config import Settings
from slotbook.core.security import authenticate_admin, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, settings: Settings = Depends(get_settings)) -> TokenResponse:
    if not authenticate_admin(settings, body.username, body.password):
        logger.warning("Failed admin login for username=%s", body.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    return TokenResponse(
        access_token=create_access_token(settings, body.username),
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get("/me", response_model=AdminPublic)
async def me(admin: str = Depends(get_current_admin)) -> AdminPublic:
    return AdminPublic(username=admin)
