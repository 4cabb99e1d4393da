from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class Review:
    id: str
    course_id: str
    rating: int  # 1..5
    comment: str = ""
    is_deleted: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.rating <= 5:
            raise ValueError(f"rating must be between 1 and 5 (got {self.rating})")

    @staticmethod
    def new(*, course_id: str, rating: int, comment: str = "") -> Review:
        return Review(id=str(uuid4()), course_id=course_id, rating=rating, comment=comment)

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "rating": self.rating,
            "comment": self.comment,
            "is_deleted": self.is_deleted,
        }
