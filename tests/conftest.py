from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from enrollview.api.dependencies import memory_store
from enrollview.main import app
from enrollview.models.course import (
    Assignment,
    Attachment,
    Course,
    Lecture,
    Quiz,
    Section,
    SectionItem,
)
from enrollview.models.enrollment import Enrollment
from enrollview.models.file import File
from enrollview.models.review import Review
from enrollview.repos.document_store import InMemoryDocumentStore
from enrollview.services import token_service

# Ensure repo root is on sys.path so `import enrollview` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def reset_memory_store() -> None:
    """Every test starts from an empty document store."""
    memory_store.clear()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


def mint_token(
    username: str = "student-1",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------


@dataclass
class Catalog:
    """Ids of a seeded course graph.

    Course "Python Basics":
      section 1: lecture_1 (5:00 video, 1 resource, 1 caption), quiz
      section 2: lecture_2 (2:30 video), lecture_3 (no video),
                 assignment, and a lecture id that does not resolve
    Reviews: 5, 4, 4 live plus one soft-deleted 1 -> "4.33".
    """

    course_id: str
    lecture_ids: tuple[str, ...]
    quiz_id: str
    assignment_id: str
    video_ids: tuple[str, ...]
    thumbnail_id: str
    resource_file_id: str
    caption_file_id: str
    missing_lecture_id: str = "lecture-gone"


async def seed_catalog(
    store: InMemoryDocumentStore, *, title: str = "Python Basics"
) -> Catalog:
    video_1 = File.new(path="/v/intro.mp4", mimetype="video/mp4", size=10, time_length=300)
    video_2 = File.new(path="/v/vars.mp4", mimetype="video/mp4", size=10, time_length=150)
    thumb = File.new(path="/img/thumb.png", mimetype="image/png", size=3)
    handout = File.new(path="/docs/handout.pdf", mimetype="application/pdf", size=4)
    subs = File.new(path="/subs/intro.vtt", mimetype="text/vtt", size=1)
    await store.insert_many(
        "files", [f.to_doc() for f in (video_1, video_2, thumb, handout, subs)]
    )

    lecture_1 = Lecture.new(
        title="Intro",
        video_id=video_1.id,
        resources=(
            Attachment(file_id=handout.id, title="Handout"),
            Attachment(file_id="file-gone", title="Lost slides"),
        ),
        captions=(
            Attachment(file_id=subs.id, language="en"),
            Attachment(file_id="file-gone", language="fr"),
        ),
    )
    lecture_2 = Lecture.new(title="Variables", video_id=video_2.id)
    lecture_3 = Lecture.new(title="Reading")
    await store.insert_many(
        "lectures", [lec.to_doc() for lec in (lecture_1, lecture_2, lecture_3)]
    )

    quiz = Quiz.new(title="Checkpoint")
    assignment = Assignment.new(
        title="Homework",
        instruction_video_id=video_1.id,
        solution_file_id="file-gone",
    )
    await store.save("quizzes", quiz.to_doc())
    await store.save("assignments", assignment.to_doc())

    catalog = Catalog(
        course_id="",
        lecture_ids=(lecture_1.id, lecture_2.id, lecture_3.id),
        quiz_id=quiz.id,
        assignment_id=assignment.id,
        video_ids=(video_1.id, video_2.id),
        thumbnail_id=thumb.id,
        resource_file_id=handout.id,
        caption_file_id=subs.id,
    )

    course = Course.new(
        title=title,
        slug=title.lower().replace(" ", "-"),
        level="beginner",
        language="en",
        price=19.99,
        thumbnail_id=thumb.id,
        category_id="category-gone",
        sections=(
            Section.new(
                title="Getting started",
                items=(
                    SectionItem("lecture", lecture_1.id),
                    SectionItem("quiz", quiz.id),
                ),
            ),
            Section.new(
                title="Basics",
                items=(
                    SectionItem("lecture", lecture_2.id),
                    SectionItem("lecture", lecture_3.id),
                    SectionItem("assignment", assignment.id),
                    SectionItem("lecture", catalog.missing_lecture_id),
                ),
            ),
        ),
    )
    await store.save("courses", course.to_doc())
    catalog.course_id = course.id

    reviews = [Review.new(course_id=course.id, rating=r) for r in (5, 4, 4)]
    deleted = Review(id="review-deleted", course_id=course.id, rating=1, is_deleted=True)
    await store.insert_many("reviews", [r.to_doc() for r in (*reviews, deleted)])
    return catalog


async def seed_enrollment(
    store: InMemoryDocumentStore,
    *,
    course_id: str,
    student_id: str = "student-1",
    completed: tuple[str, ...] = (),
) -> Enrollment:
    enrollment = Enrollment.new(course_id=course_id, student_id=student_id)
    for i, lecture_id in enumerate(completed):
        enrollment = enrollment.with_completed(lecture_id, 1_700_000_000_000 + i)
    saved = await store.save("enrollments", enrollment.to_doc())
    return Enrollment.from_doc(saved)
