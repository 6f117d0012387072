"""
Enrollment service.
Enrollments are append-only; no uniqueness is enforced per (student, course).
"""
from typing import Any
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from mentora.db.mongodb import ENROLLMENTS
from mentora.models.mongo_models import parse_object_id, utc_now
from mentora.core.logging import audit_log


class EnrollmentService:
    """Service for course enrollments."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.enrollments = db[ENROLLMENTS]

    async def by_course(self, course_id: ObjectId) -> list[dict]:
        """All enrollments of a course."""
        return await self.enrollments.find({"courseId": course_id}).to_list(length=None)

    async def add_enrollment(self, enrollment: dict[str, Any]):
        """Insert an enrollment; the course id is trusted, not checked for existence."""
        doc = {
            **enrollment,
            "courseId": parse_object_id(enrollment["courseId"]),
            "createdAt": utc_now(),
        }
        result = await self.enrollments.insert_one(doc)
        if result.acknowledged:
            audit_log.log_write(
                "enrollment.created", "course", doc["courseId"],
                actor_email=doc.get("email"), actor_role="student"
            )
        return result
