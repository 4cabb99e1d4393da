"""Enrollment endpoints.

  POST   /v1/enrollments                       enroll (student)
  GET    /v1/enrollments                       my enrollments, summary cards
  GET    /v1/enrollments/course/{course_id}    a course's enrollments (instructor)
  GET    /v1/enrollments/{enrollment_id}       full course-content view
  PUT    /v1/enrollments/complete/{id}         mark a lecture completed
  DELETE /v1/enrollments/{enrollment_id}       soft delete (admin)

Responses share one envelope: {"data": {...}}.  The list and detail
reads never fail with 5xx; a broken aggregation comes back as an empty
page (list) or 404 (detail), and is logged and counted server-side.

Every successful call also writes an entry to the `activity_logs`
collection (title, description, client IP, user).
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel

from enrollview.api.access import check_owner_or_admin, client_ip
from enrollview.api.dependencies import get_document_store, require_any_role
from enrollview.core.config import SETTINGS
from enrollview.models.enrollment import Enrollment
from enrollview.models.principal import ADMIN, INSTRUCTOR, STUDENT, Principal
from enrollview.repos.document_store import DocumentStore
from enrollview.services import enrollment_service
from enrollview.services.activity_log import record_activity
from enrollview.services.enrollment_service import (
    CourseNotFoundError,
    EnrollmentExistsError,
    ListOptions,
)

router = APIRouter(prefix="/v1/enrollments", tags=["enrollments"])

Store = Annotated[DocumentStore, Depends(get_document_store)]
Student = Annotated[Principal, Depends(require_any_role({STUDENT}))]
Instructor = Annotated[Principal, Depends(require_any_role({INSTRUCTOR}))]
Admin = Annotated[Principal, Depends(require_any_role({ADMIN}))]


class EnrollIn(BaseModel):
    course_id: str
    payment_id: str | None = None


class CompleteLectureIn(BaseModel):
    lecture_id: str


class DataOut(BaseModel):
    data: dict[str, Any]


def _enrollment_out(enrollment: Enrollment) -> dict[str, Any]:
    doc = enrollment.to_doc()
    # Soft-delete bookkeeping is internal.
    for key in ("is_deleted", "deleted_at", "deleted_by"):
        doc.pop(key, None)
    return doc


async def _load_enrollment(store: DocumentStore, enrollment_id: str) -> Enrollment:
    enrollment = await enrollment_service.find_enrollment(store, enrollment_id)
    if enrollment is None:
        raise HTTPException(status_code=404, detail="enrollment not found")
    return enrollment


@router.post("", response_model=DataOut, status_code=status.HTTP_201_CREATED)
async def enroll(
    request: Request, body: EnrollIn, principal: Student, store: Store
) -> DataOut:
    try:
        enrollment = await enrollment_service.create_enrollment(
            store,
            course_id=body.course_id,
            student_id=principal.user_id,
            payment_id=body.payment_id,
        )
    except CourseNotFoundError:
        raise HTTPException(status_code=404, detail="course not found") from None
    except EnrollmentExistsError:
        raise HTTPException(status_code=409, detail="already enrolled") from None
    await record_activity(
        store,
        title="New enrollment",
        desc=f"{enrollment.id} enrollment id is created",
        ip=client_ip(request),
        user_id=principal.user_id,
    )
    return DataOut(data={"enrollment": _enrollment_out(enrollment)})


@router.get("", response_model=DataOut)
async def list_my_enrollments(
    request: Request,
    principal: Student,
    store: Store,
    q: Annotated[str | None, Query()] = None,
    page: Annotated[str | None, Query()] = None,
    size: Annotated[str | None, Query()] = None,
) -> DataOut:
    options = ListOptions.parse(
        q=q,
        page=page,
        size=size,
        student_id=principal.user_id,
        default_size=SETTINGS.default_page_size,
    )
    result = await enrollment_service.list_enrollments(store, {}, options)
    await record_activity(
        store, title="List enrollment", ip=client_ip(request), user_id=principal.user_id
    )
    return DataOut(data=result.value.to_dict())


@router.get("/course/{course_id}", response_model=DataOut)
async def list_course_enrollments(
    course_id: str,
    request: Request,
    principal: Instructor,
    store: Store,
    q: Annotated[str | None, Query()] = None,
    page: Annotated[str | None, Query()] = None,
    size: Annotated[str | None, Query()] = None,
) -> DataOut:
    options = ListOptions.parse(
        q=q, page=page, size=size, default_size=SETTINGS.default_page_size
    )
    result = await enrollment_service.list_enrollments(
        store, {"course_id": course_id}, options
    )
    await record_activity(
        store,
        title="List course enrollments",
        desc=f"Get enrollments for course {course_id}",
        ip=client_ip(request),
        user_id=principal.user_id,
    )
    return DataOut(data=result.value.to_dict())


@router.get("/{enrollment_id}", response_model=DataOut)
async def get_enrollment(
    enrollment_id: str, request: Request, principal: Student, store: Store
) -> DataOut:
    result = await enrollment_service.get_enrollment_detail(store, enrollment_id)
    view = result.value
    if view is None:
        raise HTTPException(status_code=404, detail="enrollment not found")
    check_owner_or_admin(principal, view.get("student_id"))
    await record_activity(
        store,
        title="Detail enrollment",
        desc=f'Get detail enrollment by "{enrollment_id}" id',
        ip=client_ip(request),
        user_id=principal.user_id,
    )
    return DataOut(data={"enrollment": view})


@router.put("/complete/{enrollment_id}", response_model=DataOut)
async def complete_lecture(
    enrollment_id: str,
    request: Request,
    body: CompleteLectureIn,
    principal: Student,
    store: Store,
) -> DataOut:
    enrollment = await _load_enrollment(store, enrollment_id)
    check_owner_or_admin(principal, enrollment.student_id)

    lecture = await store.find_one(enrollment_service.LECTURES, {"id": body.lecture_id})
    if lecture is None:
        raise HTTPException(status_code=404, detail="lecture not found")

    updated = await enrollment_service.complete_lecture(
        store,
        enrollment,
        body.lecture_id,
        role=principal.acting_role,
        user_id=principal.user_id,
    )
    await record_activity(
        store,
        title="Update enrollment",
        desc=f"{enrollment.id} enrollment id is updated",
        ip=client_ip(request),
        user_id=principal.user_id,
    )
    return DataOut(data={"enrollment": _enrollment_out(updated)})


@router.delete("/{enrollment_id}", response_model=DataOut)
async def delete_enrollment(
    enrollment_id: str, request: Request, principal: Admin, store: Store
) -> DataOut:
    enrollment = await _load_enrollment(store, enrollment_id)
    await enrollment_service.soft_delete_enrollment(
        store, enrollment, user_id=principal.user_id
    )
    await record_activity(
        store,
        title="Delete enrollment",
        desc=f"{enrollment.id} enrollment id is deleted",
        ip=client_ip(request),
        user_id=principal.user_id,
    )
    return DataOut(data={"id": enrollment.id})
