"""
Enrollment API endpoints.
"""
from fastapi import APIRouter, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from mentora.api.dependencies import object_id_or_400
from mentora.api.responses import internal_error, respond
from mentora.core.logging import audit_log
from mentora.db.mongodb import get_mongodb
from mentora.models.mongo_models import write_result
from mentora.schemas.api_schemas import EnrollmentCreateRequest
from mentora.services.enrollment_service import EnrollmentService


router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


@router.get("/{courseId}")
async def get_enrollments_by_course(
    courseId: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """All enrollments of a course; an empty result answers 202."""
    course_id = object_id_or_400(courseId)
    try:
        enrollments = await EnrollmentService(db).by_course(course_id)
    except PyMongoError as e:
        audit_log.log_failure("enrollment.list.failed", e, course_id=courseId)
        return internal_error()

    if not enrollments:
        return respond(status.HTTP_202_ACCEPTED, success=False, message="No enrollments found", enrollments=[])
    return respond(
        status.HTTP_200_OK,
        success=True,
        message="Enrollments fetched successfully",
        enrollments=enrollments
    )


@router.post("")
async def add_enrollment(
    request: EnrollmentCreateRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Enroll a student; repeated enrollments are stored as separate documents."""
    try:
        result = await EnrollmentService(db).add_enrollment(request.model_dump(exclude_none=True))
    except PyMongoError as e:
        audit_log.log_failure("enrollment.create.failed", e, course_id=request.courseId, email=request.email)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(
            status.HTTP_400_BAD_REQUEST,
            success=False,
            message="Failed to add enrollment",
            data=write_result(result)
        )
    return respond(status.HTTP_200_OK, success=True, message="Enrollment added successfully", data=write_result(result))
