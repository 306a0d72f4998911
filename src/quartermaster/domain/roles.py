"""Role ranking used as the single authorization primitive."""

from __future__ import annotations

from quartermaster.domain.enums import Role
from quartermaster.domain.errors import AuthorizationError

ROLE_RANK: dict[Role, int] = {
    Role.RECRUIT: 0,
    Role.MEMBER: 1,
    Role.OFFICER: 2,
    Role.HIGH_COMMAND: 3,
    Role.COMMANDER: 4,
}


def rank(role: Role | str) -> int:
    return ROLE_RANK[Role(role)]


def at_least(role: Role | str, minimum: Role | str) -> bool:
    """Return True when ``role`` ranks at or above ``minimum``."""

    return rank(role) >= rank(minimum)


def require_role(role: Role | str, minimum: Role | str) -> None:
    """Raise :class:`AuthorizationError` unless ``role`` meets ``minimum``."""

    if not at_least(role, minimum):
        raise AuthorizationError()
