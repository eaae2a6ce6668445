"""Backoffice — Admin Access Control."""

from dataclasses import dataclass
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class AdminIdentity:
    """The signed-in backoffice admin performing the request."""

    user_id: str
    email: str


def is_admin(email: Optional[str], allowlist: FrozenSet[str]) -> bool:
    """Whether ``email`` is on the admin allowlist (case-insensitive)."""
    if not email:
        return False
    return email.strip().lower() in allowlist
