"""
User service.
Handles first sign-in, profile lookup, teacher applications and role changes.
"""
from typing import Any, Optional
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from mentora.db.mongodb import USERS
from mentora.models.mongo_models import UserRole, ReviewStatus, utc_now
from mentora.services.pagination import PageRequest, search_pattern
from mentora.core.logging import audit_log


# Pending applications first, then the remaining statuses alphabetically
TEACHER_SORT_PIPELINE = [
    {"$addFields": {"statusOrder": {"$cond": [{"$eq": ["$status", ReviewStatus.PENDING.value]}, 0, 1]}}},
    {"$sort": {"statusOrder": 1, "status": 1}},
]


class UserService:
    """Service for user and role operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.users = db[USERS]

    async def get_user_by_email(self, email: str) -> Optional[dict]:
        """Get a user by email."""
        return await self.users.find_one({"email": email})

    async def get_role(self, email: str) -> Optional[str]:
        """Stored role of a user, None if the user does not exist."""
        doc = await self.users.find_one({"email": email}, {"role": 1})
        if doc:
            return doc.get("role")
        return None

    async def create_user(self, profile: dict[str, Any]) -> tuple[bool, Any]:
        """
        Create a user on first sign-in.
        Returns (created, insert_result); a repeat call for the same email is a no-op
        and returns (False, None). Concurrent first sign-ins are settled by the
        unique email index.
        """
        existing = await self.users.find_one({"email": profile["email"]})
        if existing:
            return False, None

        doc = {
            **profile,
            "role": UserRole.STUDENT.value,
            "createdAt": utc_now(),
        }
        try:
            result = await self.users.insert_one(doc)
        except DuplicateKeyError:
            return False, None
        if result.acknowledged:
            audit_log.log_user_created(profile["email"])
        return True, result

    async def apply_as_teacher(
        self,
        email: str,
        application: dict[str, Any],
        actor_email: Optional[str] = None
    ):
        """Move a user toward the teacher role with a pending review."""
        result = await self.users.update_one(
            {"email": email},
            {
                "$set": {
                    **application,
                    "role": UserRole.TEACHER.value,
                    "status": ReviewStatus.PENDING.value,
                }
            }
        )
        if result.acknowledged:
            audit_log.log_role_change(actor_email, email, UserRole.TEACHER.value, ReviewStatus.PENDING.value)
        return result

    async def list_teachers(self, page: PageRequest) -> tuple[list[dict], int]:
        """Teachers ordered pending-first. Returns (teachers, total)."""
        query = {"role": UserRole.TEACHER.value}
        total = await self.users.count_documents(query)
        pipeline = [
            {"$match": query},
            *TEACHER_SORT_PIPELINE,
            {"$skip": page.skip},
            {"$limit": page.limit},
        ]
        teachers = await self.users.aggregate(pipeline).to_list(length=None)
        return teachers, total

    async def set_teacher_status(
        self,
        user_id: ObjectId,
        status: ReviewStatus,
        actor_email: Optional[str] = None
    ):
        """Record an admin decision on a teacher application."""
        result = await self.users.update_one(
            {"_id": user_id},
            {"$set": {"status": status.value, "role": UserRole.TEACHER.value}}
        )
        if result.acknowledged:
            audit_log.log_role_change(actor_email, str(user_id), UserRole.TEACHER.value, status.value)
        return result

    async def search_users(self, search: str, page: PageRequest) -> tuple[list[dict], int]:
        """Users whose name or email contains `search`. Returns (users, total)."""
        query = {
            "$or": [
                {"name": search_pattern(search)},
                {"email": search_pattern(search)},
            ]
        }
        total = await self.users.count_documents(query)
        cursor = self.users.find(query).skip(page.skip).limit(page.limit)
        users = await cursor.to_list(length=None)
        return users, total

    async def make_admin(self, user_id: ObjectId, actor_email: Optional[str] = None):
        """Elevate a user to the admin role."""
        result = await self.users.update_one(
            {"_id": user_id},
            {"$set": {"role": UserRole.ADMIN.value}}
        )
        if result.acknowledged:
            audit_log.log_role_change(actor_email, str(user_id), UserRole.ADMIN.value)
        return result
