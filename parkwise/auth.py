from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import AliasChoices, BaseModel, Field, ValidationError

from parkwise.config import settings
from parkwise.errors import Unauthorized, Forbidden
from parkwise.models import Role

security = HTTPBearer(auto_error=False)

# Roles each role may act as
ROLE_GRANTS = {
    Role.ADMIN: {Role.ADMIN, Role.OWNER, Role.USER},
    Role.OWNER: {Role.OWNER, Role.USER},
    Role.USER: {Role.USER},
}


class Principal(BaseModel):
    user_id: str = Field(validation_alias=AliasChoices("user_id", "userId", "sub"))
    role: Role = Role.USER
    email: Optional[str] = None

    def has_role(self, role: Role) -> bool:
        return role in ROLE_GRANTS[self.role]

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def create_access_token(data: dict, expires_minutes: Optional[int] = None) -> str:
    payload = data.copy()
    minutes = settings.JWT_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Principal:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        return Principal.model_validate(payload)
    except (JWTError, ValidationError):
        raise Unauthorized()


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_token: Optional[str] = Cookie(default=None, alias="authToken"),
) -> Principal:
    token = credentials.credentials if credentials else auth_token
    if not token:
        raise Unauthorized("Authentication required")
    return decode_token(token)


def require_role(*roles: Role):
    """Dependency admitting principals that satisfy any of ``roles``."""
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not any(principal.has_role(role) for role in roles):
            wanted = " or ".join(role.value for role in roles)
            raise Forbidden(f"Access forbidden: {wanted} role required")
        return principal
    return dependency


allow_owner = require_role(Role.OWNER)
allow_admin = require_role(Role.ADMIN)
