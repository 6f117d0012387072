"""
MongoDB document models.
The store is schemaless; these define the enumerations the handlers rely on
and the helpers that move documents across the HTTP boundary.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId


class UserRole(str, Enum):
    """User roles in the system."""
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class ReviewStatus(str, Enum):
    """Review state shared by teacher applications and courses."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def utc_now() -> datetime:
    """Server-side creation timestamp."""
    return datetime.now(timezone.utc)


def parse_object_id(value: Any) -> ObjectId:
    """
    Coerce a path/body string to the store's native reference type.

    Raises:
        ValueError: if the value is not a 24-character hex id
    """
    if isinstance(value, ObjectId):
        return value
    if value is None:
        raise ValueError("Invalid id: None")
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValueError(f"Invalid id: {value!r}") from e


def write_result(result: Any) -> dict[str, Any]:
    """
    Shape a pymongo write result as the acknowledgment payload returned to clients.
    Counts are only readable on acknowledged writes.
    """
    payload: dict[str, Any] = {"acknowledged": bool(result.acknowledged)}
    if not result.acknowledged:
        return payload

    if hasattr(result, "inserted_id"):
        payload["insertedId"] = result.inserted_id
    if hasattr(result, "matched_count"):
        payload["matchedCount"] = result.matched_count
        payload["modifiedCount"] = result.modified_count
        payload["upsertedId"] = result.upserted_id
    if hasattr(result, "deleted_count"):
        payload["deletedCount"] = result.deleted_count
    return payload

