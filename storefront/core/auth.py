# storefront/core/auth.py
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from storefront.core.config import get_settings
from storefront.core.errors import ForbiddenError, UnauthorizedError

# HTTP Bearer scheme:
# - auto_error=False => a missing Authorization header reaches require_auth,
#   which answers with our own 401 payload instead of FastAPI's default.
bearer_scheme = HTTPBearer(auto_error=False)

ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """
    Who is calling. Produced by the auth gate, passed explicitly into
    services; never stored on the request.
    """

    user_id: uuid.UUID
    role: str = ROLE_USER

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token (JWT).

    Verification:
      - signature (JWT_ALG using JWT_SECRET)
      - expiration time (exp), when present

    Raises:
        UnauthorizedError: if token is invalid/expired.
    """
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise UnauthorizedError("Invalid or expired token")


def resolve_identity(credential: str) -> Identity:
    """
    Turn a bearer credential into an Identity.

    Expected claims:
      - userId: UUID of the account
      - role:   "user" | "admin" (defaults to "user")

    Raises:
        UnauthorizedError: if the token is invalid or lacks a usable userId.
    """
    payload = decode_access_token(credential)
    raw_user_id = payload.get("userId")
    if not raw_user_id:
        raise UnauthorizedError("Token missing userId")

    try:
        user_id = uuid.UUID(str(raw_user_id))
    except ValueError:
        raise UnauthorizedError("Invalid userId in token")

    role = payload.get("role") or ROLE_USER
    return Identity(user_id=user_id, role=str(role))


def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Enforce authentication. Every cart/order route depends on this.

    Raises:
        UnauthorizedError: no credential, or credential rejected.
    """
    if credentials is None:
        raise UnauthorizedError("Access denied. No token provided.")
    return resolve_identity(credentials.credentials)


def require_admin(identity: Identity = Depends(require_auth)) -> Identity:
    """
    Enforce admin role.

    Raises:
        ForbiddenError: if role is not admin.
    """
    if not identity.is_admin:
        raise ForbiddenError("Admin access required")
    return identity
