from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class File:
    id: str
    path: str
    mimetype: str
    size: int
    time_length: int | None = None  # seconds, videos only

    @staticmethod
    def new(
        *, path: str, mimetype: str, size: int, time_length: int | None = None
    ) -> File:
        return File(
            id=str(uuid4()),
            path=path,
            mimetype=mimetype,
            size=size,
            time_length=time_length,
        )

    @property
    def is_video(self) -> bool:
        return self.mimetype.startswith("video/")

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "path": self.path,
            "mimetype": self.mimetype,
            "size": self.size,
            "time_length": self.time_length,
        }
