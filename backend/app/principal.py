"""Principal abstraction for authenticated callers of the booking engine."""

from __future__ import annotations

from dataclasses import dataclass

from app.core.enums import RoleName


@dataclass(frozen=True)
class Actor:
    """
    The authenticated party performing an operation.

    Identity and role come from the auth collaborator (JWT claims); this
    service never looks accounts up.
    """

    id: str
    role: RoleName

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN

    @property
    def is_guide(self) -> bool:
        return self.role == RoleName.GUIDE

    @property
    def is_tourist(self) -> bool:
        return self.role == RoleName.TOURIST
