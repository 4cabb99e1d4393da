from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4

ITEM_KINDS = ("lecture", "quiz", "assignment")


def _new_id() -> str:
    return str(uuid4())


@dataclass(frozen=True, slots=True)
class SectionItem:
    kind: str  # lecture|quiz|assignment
    ref_id: str

    def __post_init__(self) -> None:
        if self.kind not in ITEM_KINDS:
            raise ValueError(f"unknown section item kind {self.kind!r}")

    @property
    def ref_field(self) -> str:
        return f"{self.kind}_id"

    def to_doc(self) -> dict[str, Any]:
        return {"kind": self.kind, self.ref_field: self.ref_id}


@dataclass(frozen=True, slots=True)
class Section:
    id: str
    title: str
    items: tuple[SectionItem, ...] = ()

    @staticmethod
    def new(*, title: str, items: tuple[SectionItem, ...] = ()) -> Section:
        return Section(id=_new_id(), title=title, items=items)

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "items": [item.to_doc() for item in self.items],
        }


@dataclass(frozen=True, slots=True)
class Course:
    id: str
    title: str
    slug: str
    sub_title: str = ""
    level: str | None = None
    language: str | None = None
    price: float | None = None
    thumbnail_id: str | None = None
    promotional_video_id: str | None = None
    category_id: str | None = None
    sub_category_id: str | None = None
    updated_by: str | None = None  # instructor user id
    sections: tuple[Section, ...] = ()
    is_deleted: bool = False

    @staticmethod
    def new(
        *,
        title: str,
        slug: str,
        sections: tuple[Section, ...] = (),
        **extra: Any,
    ) -> Course:
        return Course(id=_new_id(), title=title, slug=slug, sections=sections, **extra)

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "sub_title": self.sub_title,
            "level": self.level,
            "language": self.language,
            "price": self.price,
            "thumbnail_id": self.thumbnail_id,
            "promotional_video_id": self.promotional_video_id,
            "category_id": self.category_id,
            "sub_category_id": self.sub_category_id,
            "updated_by": self.updated_by,
            "sections": [s.to_doc() for s in self.sections],
            "is_deleted": self.is_deleted,
        }


@dataclass(frozen=True, slots=True)
class Attachment:
    """A file hung off a lecture: a downloadable resource or a caption track."""

    file_id: str
    title: str | None = None
    language: str | None = None

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"file_id": self.file_id}
        if self.title is not None:
            doc["title"] = self.title
        if self.language is not None:
            doc["language"] = self.language
        return doc


@dataclass(frozen=True, slots=True)
class Lecture:
    id: str
    title: str
    desc: str = ""
    video_id: str | None = None
    resources: tuple[Attachment, ...] = ()
    captions: tuple[Attachment, ...] = ()
    is_deleted: bool = False

    @staticmethod
    def new(*, title: str, **extra: Any) -> Lecture:
        return Lecture(id=_new_id(), title=title, **extra)

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "desc": self.desc,
            "video_id": self.video_id,
            "resources": [r.to_doc() for r in self.resources],
            "captions": [c.to_doc() for c in self.captions],
            "is_deleted": self.is_deleted,
        }


@dataclass(frozen=True, slots=True)
class Quiz:
    id: str
    title: str
    is_deleted: bool = False

    @staticmethod
    def new(*, title: str) -> Quiz:
        return Quiz(id=_new_id(), title=title)

    def to_doc(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "is_deleted": self.is_deleted}


@dataclass(frozen=True, slots=True)
class Assignment:
    id: str
    title: str
    instruction_video_id: str | None = None
    instruction_file_id: str | None = None
    solution_video_id: str | None = None
    solution_file_id: str | None = None
    is_deleted: bool = False

    @staticmethod
    def new(*, title: str, **extra: Any) -> Assignment:
        return Assignment(id=_new_id(), title=title, **extra)

    def to_doc(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "instruction_video_id": self.instruction_video_id,
            "instruction_file_id": self.instruction_file_id,
            "solution_video_id": self.solution_video_id,
            "solution_file_id": self.solution_file_id,
            "is_deleted": self.is_deleted,
        }
