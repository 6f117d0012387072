"""
Assignment and submission service.
"""
from typing import Any, Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from mentora.db.mongodb import ASSIGNMENTS, COURSES, SUBMISSIONS
from mentora.models.mongo_models import parse_object_id, utc_now
from mentora.core.logging import audit_log


class AssignmentService:
    """Service for assignments posted by teachers and submissions by students."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.assignments = db[ASSIGNMENTS]
        self.submissions = db[SUBMISSIONS]

    async def add_assignment(self, assignment: dict[str, Any], actor_email: str):
        """Insert an assignment for a course."""
        doc = {
            **assignment,
            "courseId": parse_object_id(assignment["courseId"]),
            "createdAt": utc_now(),
        }
        result = await self.assignments.insert_one(doc)
        if result.acknowledged:
            audit_log.log_write(
                "assignment.created", "assignment", result.inserted_id,
                actor_email=actor_email, actor_role="teacher",
                details={"course_id": doc["courseId"]}
            )
        return result

    async def by_course(self, course_id: ObjectId) -> list[dict]:
        """All assignments of a course."""
        return await self.assignments.find({"courseId": course_id}).to_list(length=None)

    async def by_course_for_student(self, course_id: ObjectId, student_email: str) -> list[dict]:
        """
        Assignments of a course joined with the course and the student's own submissions.
        `studentSubmission` is always a list, empty when nothing was submitted.
        """
        pipeline = [
            {"$match": {"courseId": course_id}},
            {
                "$lookup": {
                    "from": COURSES,
                    "localField": "courseId",
                    "foreignField": "_id",
                    "as": "courseInfo",
                }
            },
            {
                "$lookup": {
                    "from": SUBMISSIONS,
                    "localField": "_id",
                    "foreignField": "assignmentId",
                    "as": "studentSubmission",
                }
            },
        ]
        assignments = await self.assignments.aggregate(pipeline).to_list(length=None)
        for assignment in assignments:
            assignment["studentSubmission"] = [
                s for s in assignment.get("studentSubmission", [])
                if s.get("studentEmail") == student_email
            ]
        return assignments

    async def add_submission(self, submission: dict[str, Any]):
        """Insert a submission; assignment and course ids are trusted."""
        doc = {
            **submission,
            "assignmentId": parse_object_id(submission["assignmentId"]),
            "courseId": parse_object_id(submission["courseId"]),
            "createdAt": utc_now(),
        }
        result = await self.submissions.insert_one(doc)
        if result.acknowledged:
            audit_log.log_write(
                "submission.created", "assignment", doc["assignmentId"],
                actor_email=doc.get("studentEmail"), actor_role="student"
            )
        return result

    async def submissions_by_course(
        self,
        course_id: ObjectId,
        student_email: Optional[str] = None
    ) -> list[dict]:
        """Submissions of a course, optionally limited to one student."""
        query: dict[str, Any] = {"courseId": course_id}
        if student_email:
            query["studentEmail"] = student_email
        return await self.submissions.find(query).to_list(length=None)
