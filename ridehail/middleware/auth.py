from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from ridehail.config import get_settings
from ridehail.schemas.schemas import RoleEnum

settings = get_settings()
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, passed explicitly into every engine operation."""
    id: str
    role: RoleEnum


def create_access_token(data: dict, expires_minutes: int | None = None) -> str:
    """Sign a JWT with the configured secret (HS256)."""
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    claims = {**data, "exp": datetime.now(timezone.utc) + timedelta(minutes=minutes)}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Principal:
    """Decode a token into a Principal. Raises JWTError or ValueError when unusable."""
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    principal_id = payload.get("sub")
    if not principal_id:
        raise ValueError("Token has no subject")
    return Principal(id=str(principal_id), role=RoleEnum(payload.get("role")))


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Decode and validate the JWT Bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(credentials.credentials)
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_driver(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Require a driver token."""
    if principal.role != RoleEnum.driver:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Driver token required")
    return principal
