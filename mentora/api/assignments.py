"""
Assignment and submission API endpoints.
Empty list results answer 202 with success=false.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from mentora.api.dependencies import get_current_user, object_id_or_400, require_teacher
from mentora.api.responses import internal_error, respond
from mentora.core.logging import audit_log
from mentora.db.mongodb import get_mongodb
from mentora.models.mongo_models import write_result
from mentora.schemas.api_schemas import (
    AssignmentCreateRequest, CurrentUser, SubmissionCreateRequest
)
from mentora.services.assignment_service import AssignmentService


router = APIRouter(tags=["Assignments"])


@router.post("/assignments")
async def add_assignment(
    request: AssignmentCreateRequest,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Post an assignment for a course."""
    try:
        result = await AssignmentService(db).add_assignment(
            request.model_dump(exclude_none=True), current_user.email
        )
    except PyMongoError as e:
        audit_log.log_failure("assignment.create.failed", e, course_id=request.courseId)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(
            status.HTTP_400_BAD_REQUEST,
            success=False,
            message="Failed to add assignment",
            data=write_result(result)
        )
    return respond(status.HTTP_200_OK, success=True, message="Assignment added successfully", data=write_result(result))


@router.get("/assignments/{courseId}/{studentEmail}")
async def get_assignments_for_student(
    courseId: str,
    studentEmail: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Assignments of a course with the given student's submissions attached."""
    course_id = object_id_or_400(courseId)
    try:
        assignments = await AssignmentService(db).by_course_for_student(course_id, studentEmail)
    except PyMongoError as e:
        audit_log.log_failure("assignment.list_student.failed", e, course_id=courseId, email=studentEmail)
        return internal_error()

    if not assignments:
        return respond(status.HTTP_202_ACCEPTED, success=False, message="No assignments found", assignments=[])
    return respond(
        status.HTTP_200_OK,
        success=True,
        message="Assignments with student submissions fetched successfully",
        assignments=assignments
    )


@router.get("/assignments/{courseId}")
async def get_assignments_by_course(
    courseId: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """All assignments of a course."""
    course_id = object_id_or_400(courseId)
    try:
        assignments = await AssignmentService(db).by_course(course_id)
    except PyMongoError as e:
        audit_log.log_failure("assignment.list.failed", e, course_id=courseId)
        return internal_error()

    if not assignments:
        return respond(status.HTTP_202_ACCEPTED, success=False, message="No assignments found", assignments=[])
    return respond(status.HTTP_200_OK, success=True, message="Assignments fetched successfully", assignments=assignments)


@router.get("/submissions/{courseId}")
async def get_submissions_by_course(
    courseId: str,
    studentEmail: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Submissions of a course, optionally for one student."""
    course_id = object_id_or_400(courseId)
    try:
        submissions = await AssignmentService(db).submissions_by_course(course_id, studentEmail)
    except PyMongoError as e:
        audit_log.log_failure("submission.list.failed", e, course_id=courseId)
        return internal_error()

    if not submissions:
        return respond(status.HTTP_202_ACCEPTED, success=False, message="No submissions found", submissions=[])
    return respond(status.HTTP_200_OK, success=True, message="Submissions fetched successfully", submissions=submissions)


@router.post("/submissions")
async def add_submission(
    request: SubmissionCreateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Submit work for an assignment."""
    try:
        result = await AssignmentService(db).add_submission(request.model_dump(exclude_none=True))
    except PyMongoError as e:
        audit_log.log_failure("submission.create.failed", e, assignment_id=request.assignmentId)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(
            status.HTTP_400_BAD_REQUEST,
            success=False,
            message="Failed to add submission",
            data=write_result(result)
        )
    return respond(status.HTTP_200_OK, success=True, message="Submission added successfully", data=write_result(result))
