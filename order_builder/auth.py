"""
JWT token creation/validation and permission checks.

Tokens are issued by the dashboard's login service; this service only
verifies them and reads the "permissions" claim ("resource:action" strings).

Library: python-jose[cryptography] for JWT.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import FrozenSet, Iterable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .config import settings
from .mode import ModeContext

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Authenticated operator and the capabilities granted by their token."""
    user_id: str
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def has_permission(self, resource: str, action: str) -> bool:
        return f"{resource}:{action}" in self.permissions

    @property
    def can_create_order(self) -> bool:
        return settings.ORDER_PERMISSION in self.permissions

    @property
    def can_create_estimate(self) -> bool:
        return settings.ESTIMATE_PERMISSION in self.permissions

    def mode_context(self, requested_type: Optional[str]) -> ModeContext:
        return ModeContext(
            requested_type=requested_type,
            can_create_order=self.can_create_order,
            can_create_estimate=self.can_create_estimate,
        )


def _get_jwt_secret() -> str:
    """Get JWT secret, failing loudly if not configured."""
    secret = settings.JWT_SECRET
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET not configured: set it in environment variables",
        )
    return secret


def create_access_token(user_id: str, permissions: Iterable[str] = ()) -> str:
    """Issue an access token. Used by tests and local tooling."""
    expire = datetime.utcnow() + timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES)
    payload = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
        "permissions": sorted(set(permissions)),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Raises HTTPException on failure."""
    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[settings.JWT_ALGORITHM])
        return payload
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


# --- FastAPI dependency: get current principal from JWT ---

def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Principal:
    """FastAPI dependency: extracts and validates JWT, returns Principal."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type: use an access token",
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    permissions = payload.get("permissions") or []
    return Principal(user_id=user_id, permissions=frozenset(str(p) for p in permissions))
