import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from slotbook.core.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def authenticate_admin(settings: Settings, username: str, password: str) -> bool:
    if not settings.admin_password_hash:
        return False
    if not secrets.compare_digest(username, settings.admin_username):
        return False
    return verify_password(password, settings.admin_password_hash)


def create_access_token(settings: Settings, subject: str) -> str:
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(subject), "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(settings: Settings, token: str) -> str | None:
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.algorithm]
        )
        if payload.get("type") != "access":
            return None
        sub = payload.get("sub")
        return str(sub) if sub else None
    except JWTError:
        return None


def tokens_match(expected: str, provided: str | None) -> bool:
    """Constant-time comparison for booking cancellation tokens."""
    if not provided:
        return False
    return secrets.compare_digest(expected.encode(), provided.encode())
