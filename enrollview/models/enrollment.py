from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class CompletedLecture:
    lecture_id: str
    completed_at: int  # epoch millis


@dataclass(frozen=True, slots=True)
class Enrollment:
    """A student's registration in a course.

    `completed_lectures` is an append-only set keyed by lecture_id.
    Enrollments are never hard-deleted; withdrawal sets the soft-delete
    triple (is_deleted, deleted_at, deleted_by).
    """

    id: str
    course_id: str
    student_id: str
    updated_by: str | None = None
    completed_lectures: tuple[CompletedLecture, ...] = ()
    is_deleted: bool = False
    deleted_at: int | None = None
    deleted_by: str | None = None
    created_at: int | None = None
    updated_at: int | None = None
    payment_id: str | None = field(default=None, compare=False)

    @staticmethod
    def new(
        *, course_id: str, student_id: str, payment_id: str | None = None
    ) -> Enrollment:
        return Enrollment(
            id=str(uuid4()),
            course_id=course_id,
            student_id=student_id,
            updated_by=student_id,
            payment_id=payment_id,
        )

    def has_completed(self, lecture_id: str) -> bool:
        return any(c.lecture_id == str(lecture_id) for c in self.completed_lectures)

    def with_completed(self, lecture_id: str, completed_at: int) -> Enrollment:
        if self.has_completed(lecture_id):
            return self
        entry = CompletedLecture(lecture_id=str(lecture_id), completed_at=completed_at)
        return replace(self, completed_lectures=(*self.completed_lectures, entry))

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "id": self.id,
            "course_id": self.course_id,
            "student_id": self.student_id,
            "updated_by": self.updated_by,
            "payment_id": self.payment_id,
            "completed_lectures": [
                {"lecture_id": c.lecture_id, "completed_at": c.completed_at}
                for c in self.completed_lectures
            ],
            "is_deleted": self.is_deleted,
            "deleted_at": self.deleted_at,
            "deleted_by": self.deleted_by,
        }
        if self.created_at is not None:
            doc["created_at"] = self.created_at
        if self.updated_at is not None:
            doc["updated_at"] = self.updated_at
        return doc

    @staticmethod
    def from_doc(doc: dict[str, Any]) -> Enrollment:
        completed = tuple(
            CompletedLecture(
                lecture_id=str(c["lecture_id"]),
                completed_at=int(c.get("completed_at") or 0),
            )
            for c in doc.get("completed_lectures") or ()
            if c.get("lecture_id")
        )
        return Enrollment(
            id=str(doc["id"]),
            course_id=str(doc["course_id"]),
            student_id=str(doc.get("student_id") or doc.get("updated_by") or ""),
            updated_by=doc.get("updated_by"),
            completed_lectures=completed,
            is_deleted=bool(doc.get("is_deleted", False)),
            deleted_at=doc.get("deleted_at"),
            deleted_by=doc.get("deleted_by"),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
            payment_id=doc.get("payment_id"),
        )
