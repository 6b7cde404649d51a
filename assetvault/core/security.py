import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable
import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from assetvault.core.config import Settings
from assetvault.core.errors import (
    UnauthenticatedError, InvalidCredentialError, NoRoleError, ForbiddenError,
)

http_bearer = HTTPBearer(auto_error=False)

ROLE_ADMIN = "admin"
ROLE_USER = "user"

class Principal(BaseModel):
    user_id: uuid.UUID
    role: str | None = None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")

def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(settings: Settings, user_id: uuid.UUID, role: str | None,
                        expires_in: timedelta | None = None) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "id": str(user_id),
        "iat": now,
        "exp": now + (expires_in if expires_in is not None else timedelta(minutes=settings.JWT_EXPIRES_MINUTES)),
    }
    if role is not None:
        claims["role"] = role
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def verify_credential(settings: Settings, token: str | None) -> Principal:
    """Turn a bearer token into a Principal using only its signed claims."""
    if not token:
        raise UnauthenticatedError()
    try:
        data = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG], options={"require_exp": True})
    except JWTError as e:
        raise InvalidCredentialError(f"Invalid token: {e}")
    try:
        user_id = uuid.UUID(str(data["id"]))
    except (KeyError, ValueError):
        raise InvalidCredentialError("Invalid token: missing or malformed id claim")
    role = data.get("role")
    return Principal(user_id=user_id, role=str(role) if role else None)

async def get_principal(request: Request, creds: HTTPAuthorizationCredentials | None = Depends(http_bearer)) -> Principal:
    return verify_credential(request.app.state.settings, creds.credentials if creds else None)


def authorize(principal: Principal, allowed_roles: Iterable[str]) -> None:
    if not principal.role:
        raise NoRoleError()
    if principal.role not in set(allowed_roles):
        raise ForbiddenError()

def require_roles(*allowed: str):
    def dep(principal: Principal = Depends(get_principal)) -> Principal:
        authorize(principal, allowed)
        return principal
    return dep
