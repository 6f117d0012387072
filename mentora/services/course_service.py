"""
Course service.
Course catalogue queries are aggregation pipelines that join the instructor
profile and compute enrollment counts at read time.
"""
from typing import Any, Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from mentora.db.mongodb import COURSES, ENROLLMENTS, USERS
from mentora.models.mongo_models import ReviewStatus, utc_now
from mentora.services.pagination import PageRequest, and_filters, search_pattern
from mentora.core.logging import audit_log


HIGHLIGHT_LIMIT = 6

APPROVED = {"status": ReviewStatus.APPROVED.value}

# Left-outer joins: no instructor / no enrollments yields empty lists
INSTRUCTOR_LOOKUP = {
    "$lookup": {
        "from": USERS,
        "localField": "instructorEmail",
        "foreignField": "email",
        "as": "instructor",
    }
}
ENROLLMENTS_LOOKUP = {
    "$lookup": {
        "from": ENROLLMENTS,
        "localField": "_id",
        "foreignField": "courseId",
        "as": "enrollments",
    }
}
ENROLLMENT_COUNT = {"$addFields": {"totalEnrollments": {"$size": "$enrollments"}}}


class CourseNotFound(Exception):
    """Raised when a course id does not match any document."""


class NotCourseOwner(Exception):
    """Raised when a teacher acts on a course they do not own."""


class CourseService:
    """Service for course catalogue and authoring operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.courses = db[COURSES]
        self.enrollments = db[ENROLLMENTS]

    async def list_all(self, page: PageRequest) -> tuple[list[dict], int]:
        """Every course regardless of status, newest first."""
        total = await self.courses.count_documents({})
        cursor = self.courses.find().sort("createdAt", -1).skip(page.skip).limit(page.limit)
        return await cursor.to_list(length=None), total

    async def list_approved(self, page: PageRequest, search: str = "") -> tuple[list[dict], int]:
        """Approved courses, optionally filtered by title, with instructor and enrollment count."""
        title_filter = {"title": search_pattern(search)} if search else {}
        query = and_filters(APPROVED, title_filter)

        total = await self.courses.count_documents(query)
        pipeline = [
            {"$match": query},
            INSTRUCTOR_LOOKUP,
            ENROLLMENTS_LOOKUP,
            ENROLLMENT_COUNT,
            {"$skip": page.skip},
            {"$limit": page.limit},
        ]
        courses = await self.courses.aggregate(pipeline).to_list(length=None)
        return courses, total

    async def list_by_instructor(self, email: str, page: PageRequest) -> tuple[list[dict], int]:
        """Courses authored by one teacher, newest first."""
        query = {"instructorEmail": email}
        total = await self.courses.count_documents(query)
        cursor = self.courses.find(query).sort("createdAt", -1).skip(page.skip).limit(page.limit)
        return await cursor.to_list(length=None), total

    async def _highlights(self, sort: dict[str, int]) -> list[dict]:
        pipeline = [
            {"$match": APPROVED},
            INSTRUCTOR_LOOKUP,
            ENROLLMENTS_LOOKUP,
            ENROLLMENT_COUNT,
            {"$sort": sort},
            {"$limit": HIGHLIGHT_LIMIT},
        ]
        return await self.courses.aggregate(pipeline).to_list(length=None)

    async def popular(self) -> list[dict]:
        """Top approved courses by enrollment count."""
        return await self._highlights({"totalEnrollments": -1})

    async def newest(self) -> list[dict]:
        """Most recently created approved courses."""
        return await self._highlights({"createdAt": -1})

    async def get_course(self, course_id: ObjectId) -> Optional[dict]:
        """
        Single course with instructor profile and enrollment count.
        The instructor join is required: a course whose instructor has no user
        document is not returned.
        """
        pipeline = [
            {"$match": {"_id": course_id}},
            INSTRUCTOR_LOOKUP,
            ENROLLMENTS_LOOKUP,
            {"$unwind": "$instructor"},
            ENROLLMENT_COUNT,
        ]
        result = await self.courses.aggregate(pipeline).to_list(length=1)
        return result[0] if result else None

    async def add_course(self, course: dict[str, Any], actor_email: str):
        """Insert a new course awaiting admin review, owned by the caller."""
        doc = {
            **course,
            "instructorEmail": actor_email,
            "status": ReviewStatus.PENDING.value,
            "createdAt": utc_now(),
        }
        result = await self.courses.insert_one(doc)
        if result.acknowledged:
            audit_log.log_write(
                "course.created", "course", result.inserted_id,
                actor_email=actor_email, actor_role="teacher",
                details={"title": course.get("title")}
            )
        return result

    async def _owned_course(self, course_id: ObjectId, owner_email: str) -> dict:
        course = await self.courses.find_one({"_id": course_id}, {"instructorEmail": 1})
        if not course:
            raise CourseNotFound(str(course_id))
        if course.get("instructorEmail") != owner_email:
            raise NotCourseOwner(str(course_id))
        return course

    async def update_course(self, course_id: ObjectId, changes: dict[str, Any], owner_email: str):
        """
        Merge-patch the content fields of a course owned by `owner_email`.

        Raises:
            CourseNotFound, NotCourseOwner
        """
        await self._owned_course(course_id, owner_email)
        result = await self.courses.update_one({"_id": course_id}, {"$set": changes})
        if result.acknowledged:
            audit_log.log_write(
                "course.updated", "course", course_id,
                actor_email=owner_email, actor_role="teacher",
                details={"fields": sorted(changes)}
            )
        return result

    async def delete_course(self, course_id: ObjectId, owner_email: str):
        """
        Delete a course owned by `owner_email`.

        Raises:
            CourseNotFound, NotCourseOwner
        """
        await self._owned_course(course_id, owner_email)
        result = await self.courses.delete_one({"_id": course_id})
        if result.acknowledged:
            audit_log.log_write(
                "course.deleted", "course", course_id,
                actor_email=owner_email, actor_role="teacher"
            )
        return result

    async def change_status(self, course_id: ObjectId, status: ReviewStatus, actor_email: str):
        """Record an admin review decision."""
        result = await self.courses.update_one(
            {"_id": course_id},
            {"$set": {"status": status.value}}
        )
        if result.acknowledged:
            audit_log.log_write(
                "course.status.changed", "course", course_id,
                actor_email=actor_email, actor_role="admin",
                details={"status": status.value}
            )
        return result

    async def enrolled_courses(self, email: str) -> list[dict]:
        """Enrollments of a student joined with the course and its instructor, newest first."""
        pipeline = [
            {"$match": {"email": email}},
            {
                "$lookup": {
                    "from": COURSES,
                    "localField": "courseId",
                    "foreignField": "_id",
                    "as": "courseInfo",
                }
            },
            # Enrollments whose course was deleted are dropped
            {"$unwind": "$courseInfo"},
            {
                "$lookup": {
                    "from": USERS,
                    "localField": "courseInfo.instructorEmail",
                    "foreignField": "email",
                    "as": "instructor",
                }
            },
            {"$sort": {"createdAt": -1}},
        ]
        return await self.enrollments.aggregate(pipeline).to_list(length=None)
