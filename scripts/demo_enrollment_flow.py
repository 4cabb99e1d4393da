"""Demo: enroll, complete lectures, and read the aggregated views.

Runs against the in-memory store using FastAPI TestClient.

Run with:
    python scripts/demo_enrollment_flow.py
"""

from __future__ import annotations

import asyncio
import json

from fastapi.testclient import TestClient

from enrollview.api.dependencies import memory_store
from enrollview.main import app
from enrollview.models.course import Course, Lecture, Section, SectionItem
from enrollview.models.file import File
from enrollview.models.review import Review
from enrollview.services import token_service

STUDENT_ID = "demo-student"


async def _seed() -> tuple[str, list[str]]:
    videos = [
        File.new(path=f"/videos/{n}.mp4", mimetype="video/mp4", size=1, time_length=s)
        for n, s in (("welcome", 95), ("setup", 410), ("first-app", 1210))
    ]
    await memory_store.insert_many("files", [v.to_doc() for v in videos])

    lectures = [
        Lecture.new(title=title, video_id=video.id)
        for title, video in zip(("Welcome", "Setup", "First app"), videos, strict=True)
    ]
    await memory_store.insert_many("lectures", [lec.to_doc() for lec in lectures])

    course = Course.new(
        title="FastAPI from Scratch",
        slug="fastapi-from-scratch",
        level="beginner",
        sections=(
            Section.new(
                title="Start here",
                items=tuple(SectionItem("lecture", lec.id) for lec in lectures),
            ),
        ),
    )
    await memory_store.save("courses", course.to_doc())
    await memory_store.insert_many(
        "reviews",
        [Review.new(course_id=course.id, rating=r).to_doc() for r in (5, 4, 5)],
    )
    return course.id, [lec.id for lec in lectures]


def main() -> None:
    client = TestClient(app)
    course_id, lecture_ids = asyncio.run(_seed())
    token = token_service.create_access_token(sub=STUDENT_ID, roles=["student"])
    headers = {"Authorization": f"Bearer {token}"}

    # ── Step 1: enroll ──────────────────────────────────────────────
    r = client.post("/v1/enrollments", json={"course_id": course_id}, headers=headers)
    enrollment_id = r.json()["data"]["enrollment"]["id"]
    print(f"1. POST /v1/enrollments          → {r.status_code}  id={enrollment_id}")

    # ── Step 2: enroll again ────────────────────────────────────────
    r = client.post("/v1/enrollments", json={"course_id": course_id}, headers=headers)
    print(f"2. POST /v1/enrollments (again)  → {r.status_code}  (conflict)")

    # ── Step 3: complete two lectures ───────────────────────────────
    for lecture_id in lecture_ids[:2]:
        r = client.put(
            f"/v1/enrollments/complete/{enrollment_id}",
            json={"lecture_id": lecture_id},
            headers=headers,
        )
    print(f"3. PUT  /v1/enrollments/complete → {r.status_code}  (x2)")

    # ── Step 4: list ────────────────────────────────────────────────
    r = client.get("/v1/enrollments", headers=headers)
    card = r.json()["data"]["enrollments"][0]
    print(
        f"4. GET  /v1/enrollments          → {r.status_code}  "
        f"progress={card['total_completed']} rating={card['average_rating']} "
        f"runtime={card['course']['total_length']}s"
    )

    # ── Step 5: detail ──────────────────────────────────────────────
    r = client.get(f"/v1/enrollments/{enrollment_id}", headers=headers)
    print(f"5. GET  /v1/enrollments/{{id}}     → {r.status_code}")
    print(json.dumps(r.json()["data"]["enrollment"]["course"]["sections"], indent=2))


if __name__ == "__main__":
    main()
