"""Flatten expanded enrollment graphs into UI-ready views.

After expansion a reference field holds either the resolved document or
None.  The views expose both halves side by side:

    thumbnail_id -> "f-123"            (or None)
    thumbnail    -> {"id": "f-123", "path": ...}  (or the field's default)

Items whose kind is unknown, or whose target did not resolve, are
dropped rather than rendered half-empty.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from enrollview.models.course import ITEM_KINDS

Doc = dict[str, Any]

UNTITLED_COURSE = "Untitled Course"

# (view key, reference field) pairs that are optional on every course.
_COURSE_OPTIONAL_REFS = (
    ("thumbnail", "thumbnail_id"),
    ("promotional_video", "promotional_video_id"),
    ("category", "category_id"),
    ("sub_category", "sub_category_id"),
)

_ASSIGNMENT_REFS = (
    ("instruction_video", "instruction_video_id"),
    ("instruction_file", "instruction_file_id"),
    ("solution_video", "solution_video_id"),
    ("solution_file", "solution_file_id"),
)


# ---------------------------------------------------------------------------
# resolve-or-default helpers
# ---------------------------------------------------------------------------


def resolved(value: Any) -> Doc | None:
    """The resolved document, or None for an id, None, or anything else."""
    return value if isinstance(value, dict) else None


def ref_id(value: Any) -> str | None:
    doc = resolved(value)
    return doc.get("id") if doc is not None else None


def split_ref(value: Any, default: Any) -> tuple[str | None, Any]:
    """(id, document) for a resolved reference, (None, default) otherwise."""
    doc = resolved(value)
    if doc is None or doc.get("id") is None:
        return None, default
    return doc["id"], doc


# ---------------------------------------------------------------------------
# lecture attachments
# ---------------------------------------------------------------------------


def flatten_resource(resource: Doc) -> Doc:
    file_id, file = split_ref(resource.get("file_id"), {})
    return {**resource, "file_id": file_id, "file": file}


def flatten_caption(caption: Doc) -> Doc | None:
    # A caption track without its file has nothing to play.
    file_id, file = split_ref(caption.get("file_id"), None)
    if file is None:
        return None
    return {**caption, "file_id": file_id, "file": file}


def flatten_lecture(lecture: Doc) -> Doc:
    video_id, video = split_ref(lecture.get("video_id"), {})
    captions = (flatten_caption(c) for c in _dicts(lecture.get("captions")))
    return {
        **lecture,
        "video": video,
        "video_id": video_id,
        "resources": [flatten_resource(r) for r in _dicts(lecture.get("resources"))],
        "captions": [c for c in captions if c is not None],
    }


# ---------------------------------------------------------------------------
# section items
# ---------------------------------------------------------------------------


def _lecture_item(item: Doc) -> Doc | None:
    lecture = resolved(item.get("lecture_id"))
    if lecture is None:
        return None
    return {"lecture_id": lecture.get("id"), "lecture": flatten_lecture(lecture)}


def _quiz_item(item: Doc) -> Doc | None:
    quiz = resolved(item.get("quiz_id"))
    if quiz is None:
        return None
    return {"quiz_id": quiz.get("id"), "quiz": dict(quiz)}


def _assignment_item(item: Doc) -> Doc | None:
    assignment = resolved(item.get("assignment_id"))
    if assignment is None:
        return None
    out: Doc = {"assignment_id": assignment.get("id")}
    for name, field in _ASSIGNMENT_REFS:
        out[field], out[name] = split_ref(assignment.get(field), None)
    out["assignment"] = dict(assignment)
    return out


_ITEM_FLATTENERS: dict[str, Callable[[Doc], Doc | None]] = {
    "lecture": _lecture_item,
    "quiz": _quiz_item,
    "assignment": _assignment_item,
}


def item_kind(item: Doc) -> str | None:
    """Declared kind, else inferred from whichever reference field is set."""
    kind = item.get("kind")
    if kind:
        return kind
    for candidate in ITEM_KINDS:
        if item.get(f"{candidate}_id") is not None:
            return candidate
    return None


def flatten_item(item: Any) -> Doc | None:
    if not isinstance(item, dict):
        return None
    flatten = _ITEM_FLATTENERS.get(item_kind(item) or "")
    return flatten(item) if flatten is not None else None


def flatten_section(section: Doc) -> Doc:
    items = (flatten_item(i) for i in section.get("items") or ())
    return {**section, "items": [i for i in items if i is not None]}


# ---------------------------------------------------------------------------
# courses and enrollments
# ---------------------------------------------------------------------------


def flatten_course_summary(course: Doc, *, total_lecture: int, total_length: int) -> Doc:
    thumbnail_id, thumbnail = split_ref(course.get("thumbnail_id"), {})
    return {
        "id": course.get("id"),
        "title": course.get("title") or UNTITLED_COURSE,
        "slug": course.get("slug"),
        "language": course.get("language"),
        "level": course.get("level"),
        "sub_title": course.get("sub_title"),
        "price": course.get("price"),
        "thumbnail_id": thumbnail_id,
        "thumbnail": thumbnail,
        "total_lecture": total_lecture,
        "total_length": total_length,
    }


def flatten_course_detail(course: Doc, *, total_lecture: int, total_length: int) -> Doc:
    out: Doc = dict(course)
    for name, field in _COURSE_OPTIONAL_REFS:
        out[field], out[name] = split_ref(course.get(field), {})
    out["updated_by"] = resolved(course.get("updated_by"))
    out["sections"] = [flatten_section(s) for s in _dicts(course.get("sections"))]
    out["total_lecture"] = total_lecture
    out["total_length"] = total_length
    return out


def enrollment_summary_view(
    enrollment: Doc,
    course: Doc,
    *,
    total_lecture: int,
    total_length: int,
    average_rating: str,
    total_completed: str,
) -> Doc:
    return {
        "id": enrollment.get("id"),
        "course_id": course.get("id"),
        "student_id": enrollment.get("student_id"),
        "completed_lectures": list(enrollment.get("completed_lectures") or ()),
        "total_completed": total_completed,
        "updated_by": resolved(enrollment.get("updated_by")),
        "created_at": enrollment.get("created_at"),
        "updated_at": enrollment.get("updated_at"),
        "course": flatten_course_summary(
            course, total_lecture=total_lecture, total_length=total_length
        ),
        "average_rating": average_rating,
    }


def enrollment_detail_view(
    enrollment: Doc,
    course: Doc,
    *,
    total_lecture: int,
    total_length: int,
    average_rating: str,
    total_completed: str,
) -> Doc:
    return {
        "id": enrollment.get("id"),
        "course_id": course.get("id"),
        "course": flatten_course_detail(
            course, total_lecture=total_lecture, total_length=total_length
        ),
        "student_id": enrollment.get("student_id"),
        "updated_by": resolved(enrollment.get("updated_by")),
        "completed_lectures": list(enrollment.get("completed_lectures") or ()),
        "created_at": enrollment.get("created_at"),
        "updated_at": enrollment.get("updated_at"),
        "average_rating": average_rating,
        "total_completed": total_completed,
    }


def _dicts(value: Any) -> list[Doc]:
    return [v for v in value or () if isinstance(v, dict)]
