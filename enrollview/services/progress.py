"""Progress and rating arithmetic over expanded documents.

Pure functions: no I/O, no mutation, safe to call from any number of
concurrent requests.

Rounding is half-up (12.5% -> "13%"), not Python's round-half-even, so
percentages and ratings match what the web client has always displayed.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from enrollview.services.enrollment_view import resolved

_WHOLE = Decimal("1")
_CENTS = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class LectureStats:
    count: int = 0
    total_seconds: int = 0


def iter_lectures(course: dict[str, Any] | None) -> Iterable[dict[str, Any]]:
    """Resolved lecture documents in section/item order."""
    for section in (course or {}).get("sections") or ():
        for item in (section or {}).get("items") or ():
            lecture = resolved((item or {}).get("lecture_id"))
            if lecture is not None:
                yield lecture


def count_lectures_and_runtime(course: dict[str, Any] | None) -> LectureStats:
    count = 0
    total = 0
    for lecture in iter_lectures(course):
        count += 1
        video = resolved(lecture.get("video_id"))
        length = (video or {}).get("time_length") or 0
        if isinstance(length, int | float) and length > 0:
            total += length
    return LectureStats(count=count, total_seconds=int(total))


def completion_percent(enrollment: dict[str, Any], total_lecture_count: int) -> str:
    if total_lecture_count <= 0:
        return "0%"
    done = len(enrollment.get("completed_lectures") or ())
    percent = Decimal(done) / Decimal(total_lecture_count) * 100
    return f"{percent.quantize(_WHOLE, rounding=ROUND_HALF_UP)}%"


def average_rating(reviews: Iterable[dict[str, Any]]) -> str:
    ratings = [
        r.get("rating") or 0 for r in reviews if r.get("is_deleted") is not True
    ]
    total = sum(ratings)
    if not ratings or not total:
        return "0"
    avg = Decimal(total) / Decimal(len(ratings))
    return str(avg.quantize(_CENTS, rounding=ROUND_HALF_UP))
