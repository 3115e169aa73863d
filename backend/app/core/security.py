from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from jose import JWTError, jwt

from app.core.config import get_settings


class UserRole(str, Enum):
    class_admin = "class_admin"
    student = "student"


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: UserRole
    class_id: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.class_admin


def create_access_token(
    subject: str,
    *,
    role: UserRole,
    class_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {"sub": subject, "role": role.value, "class_id": class_id, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def principal_from_claims(payload: dict) -> Principal:
    user_id = payload.get("sub")
    class_id = payload.get("class_id")
    if not user_id or not class_id:
        raise JWTError("Token is missing required claims")
    try:
        role = UserRole(payload.get("role"))
    except ValueError as exc:
        raise JWTError("Token carries an unknown role") from exc
    return Principal(user_id=user_id, role=role, class_id=class_id)
