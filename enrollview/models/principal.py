from __future__ import annotations

from dataclasses import dataclass

STUDENT = "student"
INSTRUCTOR = "instructor"
ADMIN = "admin"


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from a validated bearer token.

    user_id: `sub` claim
    roles: platform roles (admin, instructor, student)
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_admin(self) -> bool:
        return ADMIN in self.roles

    @property
    def acting_role(self) -> str:
        """The role a mutation is attributed to.

        Admin wins over student so an admin acting on someone else's
        enrollment is recorded as an override, not as the student.
        """
        for role in (ADMIN, INSTRUCTOR, STUDENT):
            if role in self.roles:
                return role
        return next(iter(sorted(self.roles)), "")
