from __future__ import annotations

import pytest

from enrollview.models.course import SectionItem
from enrollview.models.enrollment import Enrollment
from enrollview.models.principal import Principal
from enrollview.models.review import Review


def test_with_completed_appends_once() -> None:
    e = Enrollment.new(course_id="c1", student_id="s1")
    once = e.with_completed("l1", 100)
    twice = once.with_completed("l1", 200)
    assert twice is once
    assert once.has_completed("l1")
    assert not e.has_completed("l1")


def test_enrollment_doc_round_trip_keeps_completion_times() -> None:
    e = Enrollment.new(course_id="c1", student_id="s1").with_completed("l1", 123)
    back = Enrollment.from_doc(e.to_doc())
    assert back == e
    assert back.completed_lectures[0].completed_at == 123


def test_section_item_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError, match="unknown section item kind"):
        SectionItem("survey", "x")


def test_section_item_doc_uses_kind_field() -> None:
    assert SectionItem("quiz", "q1").to_doc() == {"kind": "quiz", "quiz_id": "q1"}


def test_review_rating_range() -> None:
    with pytest.raises(ValueError, match="rating must be between 1 and 5"):
        Review.new(course_id="c1", rating=6)


@pytest.mark.parametrize(
    ("roles", "expected"),
    [
        ({"student"}, "student"),
        ({"student", "admin"}, "admin"),
        ({"instructor", "student"}, "instructor"),
        (set(), ""),
    ],
)
def test_acting_role_priority(roles: set[str], expected: str) -> None:
    assert Principal(user_id="u", roles=frozenset(roles)).acting_role == expected
