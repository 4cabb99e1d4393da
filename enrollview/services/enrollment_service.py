"""Enrollment aggregation: list and detail views plus enrollment mutations.

The two read paths never raise.  Whatever goes wrong underneath (a
dangling course, a failing review query, a malformed document) the
caller gets a well-formed value back, and the failure travels alongside
it in AggregationResult.error instead of disappearing into a log line.

The mutation paths (create, complete-lecture, soft-delete) propagate
store failures: there is no safe value to substitute for a lost write.
"""

from __future__ import annotations

import logging
import math
import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from enrollview.core.metrics import AGGREGATION_FAILURES, ENROLLMENT_ROWS_SKIPPED
from enrollview.models.enrollment import Enrollment
from enrollview.models.principal import STUDENT
from enrollview.repos.document_store import Document, DocumentStore, Query, now_ms
from enrollview.services.enrollment_view import (
    enrollment_detail_view,
    enrollment_summary_view,
    resolved,
)
from enrollview.services.progress import (
    average_rating,
    completion_percent,
    count_lectures_and_runtime,
)
from enrollview.services.relations import Relation, expand, expand_one

logger = logging.getLogger(__name__)

ENROLLMENTS = "enrollments"
COURSES = "courses"
LECTURES = "lectures"
REVIEWS = "reviews"

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Expansion plans
# ---------------------------------------------------------------------------

_UPDATED_BY = Relation("updated_by", "users", select=("name", "email"))

# Summary cards need the lecture videos (runtime) but nothing below them.
SUMMARY_RELATIONS = (
    Relation(
        "course_id",
        COURSES,
        nested=(
            Relation(
                "sections.items.lecture_id",
                LECTURES,
                nested=(Relation("video_id", "files"),),
            ),
            Relation("thumbnail_id", "files"),
        ),
    ),
    _UPDATED_BY,
)

DETAIL_RELATIONS = (
    Relation(
        "course_id",
        COURSES,
        nested=(
            Relation(
                "sections.items.lecture_id",
                LECTURES,
                nested=(
                    Relation("video_id", "files"),
                    Relation("resources.file_id", "files"),
                    Relation("captions.file_id", "files"),
                ),
            ),
            Relation("sections.items.quiz_id", "quizzes"),
            Relation(
                "sections.items.assignment_id",
                "assignments",
                nested=(
                    Relation("instruction_video_id", "files"),
                    Relation("instruction_file_id", "files"),
                    Relation("solution_video_id", "files"),
                    Relation("solution_file_id", "files"),
                ),
            ),
            Relation("thumbnail_id", "files"),
            Relation("promotional_video_id", "files"),
            Relation("category_id", "categories"),
            Relation("sub_category_id", "categories"),
            _UPDATED_BY,
        ),
    ),
    _UPDATED_BY,
)


# ---------------------------------------------------------------------------
# Errors and results
# ---------------------------------------------------------------------------


class EnrollmentError(Exception):
    pass


class EnrollmentExistsError(EnrollmentError):
    pass


class CourseNotFoundError(EnrollmentError):
    pass


class AggregationError(EnrollmentError):
    """A read path fell back to its empty value."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} aggregation failed: {cause!r}")


@dataclass(frozen=True, slots=True)
class AggregationResult(Generic[T]):
    value: T
    error: AggregationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class EnrollmentPage:
    enrollments: list[Document]
    total_item: int
    total_page: int
    # Ids of rows that matched but could not be rendered.
    skipped: tuple[str, ...] = field(default=(), compare=False)

    @staticmethod
    def empty() -> EnrollmentPage:
        return EnrollmentPage(enrollments=[], total_item=0, total_page=0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "enrollments": self.enrollments,
            "total_item": self.total_item,
            "total_page": self.total_page,
        }


# ---------------------------------------------------------------------------
# List options
# ---------------------------------------------------------------------------

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Any, default: int) -> int:
    """Lenient integer parsing: "12abc" -> 12, "", "x", 0, -3 -> default."""
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        number = value
    else:
        match = _LEADING_INT.match(str(value))
        if match is None:
            return default
        number = int(match.group(1))
    return number if number > 0 else default


@dataclass(frozen=True, slots=True)
class ListOptions:
    search_text: str = ""
    page: int = DEFAULT_PAGE
    size: int = DEFAULT_PAGE_SIZE
    student_id: str | None = None

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError(f"page must be positive (got {self.page})")
        if self.size < 1:
            raise ValueError(f"size must be positive (got {self.size})")

    @staticmethod
    def parse(
        *,
        q: Any = None,
        page: Any = None,
        size: Any = None,
        student_id: str | None = None,
        default_size: int = DEFAULT_PAGE_SIZE,
    ) -> ListOptions:
        text = "" if q in (None, "undefined") else str(q).strip()
        return ListOptions(
            search_text=text,
            page=parse_int(page, DEFAULT_PAGE),
            size=parse_int(size, default_size),
            student_id=student_id,
        )

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.size


# ---------------------------------------------------------------------------
# Read paths
# ---------------------------------------------------------------------------


async def list_enrollments(
    store: DocumentStore,
    query: Query | None = None,
    options: ListOptions | None = None,
) -> AggregationResult[EnrollmentPage]:
    """Paginated summary cards for the enrollments matching `query`."""
    options = options or ListOptions()
    try:
        page = await _list_page(store, dict(query or {}), options)
    except Exception as exc:
        AGGREGATION_FAILURES.labels(operation="list").inc()
        logger.exception("Enrollment list aggregation failed")
        return AggregationResult(EnrollmentPage.empty(), AggregationError("list", exc))
    return AggregationResult(page)


async def get_enrollment_detail(
    store: DocumentStore, enrollment_id: str
) -> AggregationResult[Document | None]:
    """Full course-content view of one enrollment, or None when not found."""
    try:
        view = await _detail(store, str(enrollment_id))
    except Exception as exc:
        AGGREGATION_FAILURES.labels(operation="detail").inc()
        logger.exception(
            "Enrollment detail aggregation failed",
            extra={"enrollment_id": enrollment_id},
        )
        return AggregationResult(None, AggregationError("detail", exc))
    return AggregationResult(view)


async def _compose_list_query(
    store: DocumentStore, query: Query, options: ListOptions
) -> Query:
    # Soft-deleted rows are already hidden by the store.
    query.pop("is_deleted", None)

    if options.student_id:
        query["student_id"] = options.student_id

    if options.search_text:
        pattern = re.escape(options.search_text)
        matching = await store.find(COURSES, {"title": {"$regex": pattern}})
        course_ids = [c["id"] for c in matching]
        scoped = query.get("course_id")
        if isinstance(scoped, str):
            course_ids = [cid for cid in course_ids if cid == scoped]
        query["course_id"] = {"$in": course_ids}

    return query


async def _list_page(
    store: DocumentStore, query: Query, options: ListOptions
) -> EnrollmentPage:
    query = await _compose_list_query(store, query, options)

    rows = await store.find(ENROLLMENTS, query, skip=options.skip, limit=options.size)
    expanded = await expand(store, rows, SUMMARY_RELATIONS)

    course_ids = {
        course["id"]
        for course in (resolved(e.get("course_id")) for e in expanded)
        if course is not None
    }
    ratings = await _ratings_by_course(store, course_ids)

    views: list[Document] = []
    skipped: list[str] = []
    for enrollment in expanded:
        course = resolved(enrollment.get("course_id"))
        if course is None:
            _skip_row(enrollment, "dangling_course")
            skipped.append(enrollment["id"])
            continue
        try:
            views.append(_summary(enrollment, course, ratings.get(course["id"], "0")))
        except Exception:
            logger.exception(
                "Could not aggregate enrollment row",
                extra={"enrollment_id": enrollment.get("id"), "reason": "aggregation_error"},
            )
            ENROLLMENT_ROWS_SKIPPED.labels(reason="aggregation_error").inc()
            skipped.append(enrollment["id"])

    total = await store.count(ENROLLMENTS, query)
    return EnrollmentPage(
        enrollments=views,
        total_item=total,
        total_page=math.ceil(total / options.size),
        skipped=tuple(skipped),
    )


def _skip_row(enrollment: Document, reason: str) -> None:
    ENROLLMENT_ROWS_SKIPPED.labels(reason=reason).inc()
    logger.warning(
        "Skipping enrollment %s: course does not resolve",
        enrollment.get("id"),
        extra={"enrollment_id": enrollment.get("id"), "reason": reason},
    )


def _summary(enrollment: Document, course: Document, rating: str) -> Document:
    stats = count_lectures_and_runtime(course)
    return enrollment_summary_view(
        enrollment,
        course,
        total_lecture=stats.count,
        total_length=stats.total_seconds,
        average_rating=rating,
        total_completed=completion_percent(enrollment, stats.count),
    )


async def _ratings_by_course(
    store: DocumentStore, course_ids: Iterable[str]
) -> dict[str, str]:
    wanted = sorted(set(course_ids))
    if not wanted:
        return {}
    reviews = await store.find(REVIEWS, {"course_id": {"$in": wanted}})
    grouped: dict[str, list[Document]] = defaultdict(list)
    for review in reviews:
        grouped[str(review.get("course_id"))].append(review)
    return {cid: average_rating(grouped.get(cid, ())) for cid in wanted}


async def _detail(store: DocumentStore, enrollment_id: str) -> Document | None:
    raw = await store.find_one(ENROLLMENTS, {"id": enrollment_id})
    if raw is None:
        logger.info("Enrollment %s not found", enrollment_id)
        return None

    enrollment = await expand_one(store, raw, DETAIL_RELATIONS)
    course = resolved(enrollment.get("course_id"))
    if course is None:
        logger.warning(
            "Enrollment %s points at a missing course %s",
            enrollment_id,
            raw.get("course_id"),
            extra={"enrollment_id": enrollment_id, "course_id": raw.get("course_id")},
        )
        return None

    reviews = await store.find(REVIEWS, {"course_id": course["id"]})
    stats = count_lectures_and_runtime(course)
    return enrollment_detail_view(
        enrollment,
        course,
        total_lecture=stats.count,
        total_length=stats.total_seconds,
        average_rating=average_rating(reviews),
        total_completed=completion_percent(enrollment, stats.count),
    )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def find_enrollment(store: DocumentStore, enrollment_id: str) -> Enrollment | None:
    doc = await store.find_one(ENROLLMENTS, {"id": str(enrollment_id)})
    return Enrollment.from_doc(doc) if doc is not None else None


async def create_enrollment(
    store: DocumentStore,
    *,
    course_id: str,
    student_id: str,
    payment_id: str | None = None,
) -> Enrollment:
    if await store.find_one(COURSES, {"id": course_id}) is None:
        logger.warning("Rejected enrollment into unknown course=%s", course_id)
        raise CourseNotFoundError(course_id)

    existing = await store.find_one(
        ENROLLMENTS, {"course_id": course_id, "student_id": student_id}
    )
    if existing is not None:
        logger.warning(
            "Rejected duplicate enrollment student=%s course=%s", student_id, course_id
        )
        raise EnrollmentExistsError(existing["id"])

    enrollment = Enrollment.new(
        course_id=course_id, student_id=student_id, payment_id=payment_id
    )
    saved = await store.save(ENROLLMENTS, enrollment.to_doc())
    logger.info(
        "Created enrollment id=%s student=%s course=%s",
        enrollment.id,
        student_id,
        course_id,
        extra={"enrollment_id": enrollment.id, "course_id": course_id},
    )
    return Enrollment.from_doc(saved)


async def complete_lecture(
    store: DocumentStore,
    enrollment: Enrollment,
    lecture_id: str,
    *,
    role: str,
    user_id: str,
) -> Enrollment:
    """Mark a lecture completed; completing it again changes nothing.

    Read-modify-write with no version check: two concurrent calls resolve
    by the store's last write.
    """
    updated = enrollment.with_completed(str(lecture_id), now_ms())
    if role == STUDENT:
        updated = replace(updated, updated_by=user_id)

    saved = await store.save(ENROLLMENTS, updated.to_doc())
    logger.info(
        "Lecture %s completed on enrollment %s (%d done)",
        lecture_id,
        enrollment.id,
        len(updated.completed_lectures),
        extra={"enrollment_id": enrollment.id},
    )
    return Enrollment.from_doc(saved)


async def soft_delete_enrollment(
    store: DocumentStore, enrollment: Enrollment, *, user_id: str
) -> Enrollment:
    deleted = replace(
        enrollment, is_deleted=True, deleted_at=now_ms(), deleted_by=user_id
    )
    saved = await store.save(ENROLLMENTS, deleted.to_doc())
    logger.info(
        "Soft-deleted enrollment %s by user=%s",
        enrollment.id,
        user_id,
        extra={"enrollment_id": enrollment.id},
    )
    return Enrollment.from_doc(saved)
