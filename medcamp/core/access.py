# medcamp/core/access.py
from collections.abc import Collection

from medcamp.core.errors import Forbidden

# App-level roles. Anonymous callers never reach this check.
ROLE_USER = "user"
ROLE_ADMIN = "admin"


def authorize(role: str | None, required_roles: Collection[str]) -> None:
    """
    Allow the request iff `role` is one of `required_roles`.

    A missing role is always a deny, never an implicit allow.

    Raises:
        Forbidden: carrying the offending role.
    """
    if not role:
        raise Forbidden()
    if role not in required_roles:
        raise Forbidden(role)
