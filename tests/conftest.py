"""
Pytest fixtures for Mentora LMS test suite.
Provides an async test client over an in-memory MongoDB and a fake identity provider.
"""
import pytest
from typing import AsyncGenerator, Dict, Any
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient
from bson import ObjectId

# Import the FastAPI app
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mentora.main import app
from mentora.core.security import InvalidCredentialError, get_identity_verifier
from mentora.db.mongodb import get_mongodb


# ================== Test Data Constants ==================

ADMIN_EMAIL = "admin@mentora.dev"
TEACHER_EMAIL = "teacher@mentora.dev"
OTHER_TEACHER_EMAIL = "teacher2@mentora.dev"
STUDENT_EMAIL = "student@mentora.dev"
UNKNOWN_EMAIL = "ghost@mentora.dev"

TOKENS = {
    "admin-token": ADMIN_EMAIL,
    "teacher-token": TEACHER_EMAIL,
    "teacher2-token": OTHER_TEACHER_EMAIL,
    "student-token": STUDENT_EMAIL,
    # Valid credential for an identity that never signed up
    "ghost-token": UNKNOWN_EMAIL,
}


class FakeIdentityVerifier:
    """Stands in for Firebase: maps opaque tokens to decoded claims."""

    def __init__(self, tokens: Dict[str, str]):
        self.tokens = tokens
        self.calls = 0

    def verify(self, token: str) -> Dict[str, Any]:
        self.calls += 1
        if token == "no-email-token":
            return {"uid": "uid-without-email"}
        if token not in self.tokens:
            raise InvalidCredentialError("Firebase ID token has expired")
        return {"email": self.tokens[token], "uid": f"uid-{token}"}


def auth_header(token: str) -> Dict[str, str]:
    """Create authorization header."""
    return {"Authorization": f"Bearer {token}"}


def days_ago(days: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=days)


# ================== Database Fixtures ==================

@pytest.fixture
def mongo_db():
    """Fresh in-memory database per test."""
    client = AsyncMongoMockClient()
    return client[f"mentora_test_{ObjectId()}"]


@pytest.fixture
async def seeded_db(mongo_db):
    """Database with one user per role."""
    await mongo_db.users.insert_many([
        {"email": ADMIN_EMAIL, "name": "Ada Admin", "role": "admin", "createdAt": days_ago(30)},
        {"email": TEACHER_EMAIL, "name": "Tess Teacher", "role": "teacher", "status": "approved", "createdAt": days_ago(20)},
        {"email": OTHER_TEACHER_EMAIL, "name": "Theo Teacher", "role": "teacher", "status": "approved", "createdAt": days_ago(19)},
        {"email": STUDENT_EMAIL, "name": "Sam Student", "role": "student", "createdAt": days_ago(10)},
    ])
    return mongo_db


@pytest.fixture
def verifier() -> FakeIdentityVerifier:
    return FakeIdentityVerifier(TOKENS)


@pytest.fixture
async def async_client(seeded_db, verifier) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing FastAPI app."""
    app.dependency_overrides[get_mongodb] = lambda: seeded_db
    app.dependency_overrides[get_identity_verifier] = lambda: verifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ================== Data Helpers ==================

async def insert_course(
    db,
    title: str,
    status: str = "approved",
    instructor: str = TEACHER_EMAIL,
    created_at: datetime = None,
    **fields
) -> ObjectId:
    """Insert a course directly into the store."""
    result = await db.courses.insert_one({
        "title": title,
        "instructorEmail": instructor,
        "status": status,
        "createdAt": created_at or datetime.now(timezone.utc),
        **fields,
    })
    return result.inserted_id


async def enroll(db, course_id: ObjectId, email: str, count: int = 1) -> None:
    """Insert `count` enrollments of `email` in a course."""
    for _ in range(count):
        await db.enrollments.insert_one({
            "courseId": course_id,
            "email": email,
            "createdAt": datetime.now(timezone.utc),
        })
