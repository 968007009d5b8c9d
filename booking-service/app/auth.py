from typing import Optional

from fastapi import Header

from app.exceptions import AuthenticationError, AuthorizationError
from app.models import User, UserRole


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> User:
    """Пользователь из заголовков, которые проставляет шлюз авторизации"""
    if not x_user_id:
        raise AuthenticationError("Missing X-User-Id header")
    try:
        role = UserRole((x_user_role or UserRole.USER.value).lower())
    except ValueError:
        raise AuthorizationError(f"Unknown role '{x_user_role}'")
    return User(id=x_user_id, role=role)


def require_admin(user: User):
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
