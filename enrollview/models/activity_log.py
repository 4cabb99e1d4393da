from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class ActivityLog:
    """One audit entry: who did what to which enrollment, and from where."""

    id: str
    title: str
    user_id: str
    ip: str | None = None
    desc: str | None = None

    @staticmethod
    def new(
        *, title: str, user_id: str, ip: str | None = None, desc: str | None = None
    ) -> ActivityLog:
        return ActivityLog(id=str(uuid4()), title=title, user_id=user_id, ip=ip, desc=desc)

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "desc": self.desc,
            "ip": self.ip,
            "user_id": self.user_id,
            "is_deleted": False,
        }
