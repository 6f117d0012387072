"""
Feedback API endpoints.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from mentora.api.dependencies import object_id_or_400, require_student
from mentora.api.responses import internal_error, respond
from mentora.core.logging import audit_log
from mentora.db.mongodb import get_mongodb
from mentora.models.mongo_models import write_result
from mentora.schemas.api_schemas import CurrentUser, FeedbackCreateRequest, FeedbackUpdateRequest
from mentora.services.feedback_service import FeedbackNotFound, FeedbackService, NotFeedbackAuthor


router = APIRouter(prefix="/feedbacks", tags=["Feedback"])


@router.post("")
async def add_feedback(
    request: FeedbackCreateRequest,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Leave feedback on a course."""
    try:
        result = await FeedbackService(db).add_feedback(request.model_dump(exclude_none=True))
    except PyMongoError as e:
        audit_log.log_failure("feedback.create.failed", e, course_id=request.courseId)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(
            status.HTTP_400_BAD_REQUEST,
            success=False,
            message="Failed to add feedback",
            data=write_result(result)
        )
    return respond(status.HTTP_200_OK, success=True, message="Feedback added successfully", data=write_result(result))


@router.get("")
async def get_feedbacks(
    courseId: Optional[str] = Query(None),
    studentEmail: Optional[str] = Query(None),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """
    Top six feedbacks by rating, optionally for one course or one student.
    An empty result answers 202 with success=true.
    """
    course_id = object_id_or_400(courseId) if courseId else None
    try:
        feedbacks = await FeedbackService(db).list_feedbacks(course_id, studentEmail)
    except PyMongoError as e:
        audit_log.log_failure("feedback.list.failed", e, course_id=courseId)
        return internal_error()

    if not feedbacks:
        return respond(status.HTTP_202_ACCEPTED, success=True, message="No feedbacks found", feedbacks=[])
    return respond(status.HTTP_200_OK, success=True, message="Feedbacks fetched successfully", feedbacks=feedbacks)


@router.patch("/{id}")
async def update_feedback(
    id: str,
    request: FeedbackUpdateRequest,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Patch the rating and/or comment of the caller's own feedback."""
    feedback_id = object_id_or_400(id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return respond(status.HTTP_400_BAD_REQUEST, success=False, message="No fields to update")

    try:
        result = await FeedbackService(db).update_feedback(feedback_id, changes, current_user.email)
    except FeedbackNotFound:
        return respond(status.HTTP_404_NOT_FOUND, success=False, message="Feedback not found")
    except NotFeedbackAuthor:
        return respond(status.HTTP_403_FORBIDDEN, success=False, message="You can only modify your own feedback")
    except PyMongoError as e:
        audit_log.log_failure("feedback.update.failed", e, feedback_id=id)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(
            status.HTTP_400_BAD_REQUEST,
            success=False,
            message="Failed to update feedback",
            data=write_result(result)
        )
    return respond(status.HTTP_200_OK, success=True, message="Feedback updated successfully", data=write_result(result))
