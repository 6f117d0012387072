"""
Feedback service.
"""
from typing import Any, Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from mentora.db.mongodb import COURSES, FEEDBACKS, USERS
from mentora.models.mongo_models import parse_object_id, utc_now
from mentora.core.logging import audit_log


# Fixed cap, no pagination
FEEDBACK_LIMIT = 6


class FeedbackNotFound(Exception):
    """Raised when a feedback id does not match any document."""


class NotFeedbackAuthor(Exception):
    """Raised when a student edits feedback left by someone else."""


class FeedbackService:
    """Service for course feedback."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.feedbacks = db[FEEDBACKS]

    async def add_feedback(self, feedback: dict[str, Any]):
        """Insert a feedback for a course."""
        doc = {
            **feedback,
            "courseId": parse_object_id(feedback["courseId"]),
            "createdAt": utc_now(),
        }
        result = await self.feedbacks.insert_one(doc)
        if result.acknowledged:
            audit_log.log_write(
                "feedback.created", "feedback", result.inserted_id,
                actor_email=doc.get("studentEmail"), actor_role="student",
                details={"course_id": doc["courseId"], "rating": doc.get("rating")}
            )
        return result

    async def list_feedbacks(
        self,
        course_id: Optional[ObjectId] = None,
        student_email: Optional[str] = None
    ) -> list[dict]:
        """Highest-rated feedbacks with the author and course attached when they exist."""
        query: dict[str, Any] = {}
        if course_id is not None:
            query["courseId"] = course_id
        if student_email:
            query["studentEmail"] = student_email

        pipeline = [
            {"$match": query},
            {
                "$lookup": {
                    "from": USERS,
                    "localField": "studentEmail",
                    "foreignField": "email",
                    "as": "userInfo",
                }
            },
            {
                "$lookup": {
                    "from": COURSES,
                    "localField": "courseId",
                    "foreignField": "_id",
                    "as": "courseInfo",
                }
            },
            {"$unwind": {"path": "$userInfo", "preserveNullAndEmptyArrays": True}},
            {"$unwind": {"path": "$courseInfo", "preserveNullAndEmptyArrays": True}},
            {"$sort": {"rating": -1}},
            {"$limit": FEEDBACK_LIMIT},
        ]
        return await self.feedbacks.aggregate(pipeline).to_list(length=None)

    async def update_feedback(self, feedback_id: ObjectId, changes: dict[str, Any], actor_email: str):
        """
        Merge-patch a feedback written by `actor_email`: supplied fields overwrite,
        the rest are retained.

        Raises:
            FeedbackNotFound, NotFeedbackAuthor
        """
        feedback = await self.feedbacks.find_one({"_id": feedback_id}, {"studentEmail": 1})
        if not feedback:
            raise FeedbackNotFound(str(feedback_id))
        if feedback.get("studentEmail") != actor_email:
            raise NotFeedbackAuthor(str(feedback_id))

        result = await self.feedbacks.update_one({"_id": feedback_id}, {"$set": changes})
        if result.acknowledged:
            audit_log.log_write(
                "feedback.updated", "feedback", feedback_id,
                actor_email=actor_email, actor_role="student",
                details={"fields": sorted(changes)}
            )
        return result
