"""Caller identity as seen by the marketplace.

User profiles and role management live outside this service. All the core
needs is an opaque principal id and whether that principal is an
administrator; the administrator set comes from ``MARKETPLACE_ADMIN_IDS``.
"""

import os
from dataclasses import dataclass

from marketplace.errors import Unauthorized


@dataclass(frozen=True)
class Principal:
    id: str
    is_admin: bool = False


class AccessPolicy:
    """Decides which principals are administrators."""

    def __init__(self, admin_ids=None) -> None:
        self.admin_ids = frozenset(i.strip() for i in (admin_ids or []) if i and i.strip())

    @classmethod
    def from_env(cls) -> "AccessPolicy":
        raw = os.environ.get("MARKETPLACE_ADMIN_IDS", "")
        return cls(raw.split(","))

    def principal(self, principal_id: str) -> Principal:
        return Principal(id=principal_id, is_admin=principal_id in self.admin_ids)

    def require_admin(self, principal: Principal, action: str) -> None:
        if not principal.is_admin:
            raise Unauthorized(principal.id, action)


_current_policy: AccessPolicy | None = None


def get_access_policy() -> AccessPolicy:
    """Return the current access policy, built from the environment on first use."""
    global _current_policy
    if _current_policy is None:
        _current_policy = AccessPolicy.from_env()
    return _current_policy


def set_access_policy(policy: AccessPolicy) -> None:
    global _current_policy
    _current_policy = policy


def reset_access_policy() -> None:
    global _current_policy
    _current_policy = None
