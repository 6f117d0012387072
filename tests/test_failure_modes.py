"""
Failure Mode Tests

Tests system behavior under failure conditions:
- Store errors surface as 500 envelopes, never unhandled exceptions
- Unacknowledged writes
- Malformed input
- Role lookup failures
"""
import pytest
from httpx import AsyncClient
from types import SimpleNamespace
from unittest.mock import patch, AsyncMock

from bson import ObjectId
from pymongo.errors import PyMongoError

from mentora.services.course_service import CourseService
from mentora.services.enrollment_service import EnrollmentService
from mentora.services.feedback_service import FeedbackService
from mentora.services.user_service import UserService
from tests.conftest import auth_header, STUDENT_EMAIL


def store_down():
    return AsyncMock(side_effect=PyMongoError("connection refused"))


class TestStoreErrors:
    """Database errors are logged and answered with the family's error envelope."""

    @pytest.mark.asyncio
    async def test_user_creation(self, async_client: AsyncClient):
        with patch.object(UserService, "create_user", store_down()):
            response = await async_client.post("/users", json={"email": "x@mentora.dev"})

        assert response.status_code == 500
        assert response.json() == {"status": "error", "message": "Internal server error"}

    @pytest.mark.asyncio
    async def test_user_search(self, async_client: AsyncClient):
        with patch.object(UserService, "search_users", store_down()):
            response = await async_client.get("/users", headers=auth_header("admin-token"))

        assert response.status_code == 500
        assert response.json() == {"message": "Failed to fetch users", "success": False}

    @pytest.mark.asyncio
    async def test_make_admin(self, async_client: AsyncClient):
        with patch.object(UserService, "make_admin", store_down()):
            response = await async_client.patch(
                f"/users/admin/{ObjectId()}", headers=auth_header("admin-token")
            )

        assert response.status_code == 500
        assert response.json()["message"] == "Failed to update user"

    @pytest.mark.asyncio
    async def test_course_listing(self, async_client: AsyncClient):
        with patch.object(CourseService, "list_approved", store_down()):
            response = await async_client.get("/courses")

        assert response.status_code == 500
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_feedback_listing(self, async_client: AsyncClient):
        with patch.object(FeedbackService, "list_feedbacks", store_down()):
            response = await async_client.get("/feedbacks")

        assert response.status_code == 500
        assert response.json()["message"] == "Internal server error"

    @pytest.mark.asyncio
    async def test_role_lookup_failure(self, async_client: AsyncClient):
        with patch.object(UserService, "get_role", store_down()):
            response = await async_client.get("/teachers", headers=auth_header("admin-token"))

        assert response.status_code == 500
        assert response.json()["detail"] == "Role verification failed"


class TestUnacknowledgedWrites:

    @pytest.mark.asyncio
    async def test_enrollment(self, async_client: AsyncClient):
        unacknowledged = AsyncMock(return_value=SimpleNamespace(acknowledged=False))
        with patch.object(EnrollmentService, "add_enrollment", unacknowledged):
            response = await async_client.post(
                "/enrollments", json={"courseId": str(ObjectId()), "email": STUDENT_EMAIL}
            )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["data"] == {"acknowledged": False}

    @pytest.mark.asyncio
    async def test_user_creation(self, async_client: AsyncClient):
        unacknowledged = AsyncMock(return_value=(True, SimpleNamespace(acknowledged=False)))
        with patch.object(UserService, "create_user", unacknowledged):
            response = await async_client.post("/users", json={"email": "y@mentora.dev"})

        assert response.status_code == 400
        assert response.json()["status"] == "error"


class TestMalformedInput:

    @pytest.mark.asyncio
    async def test_malformed_json_returns_422(self, async_client: AsyncClient):
        """Malformed JSON should return 422, not 500."""
        resp = await async_client.post(
            "/users",
            content="{ invalid json }",
            headers={"Content-Type": "application/json"}
        )

        assert resp.status_code == 422, \
            "Malformed JSON should return 422 Unprocessable Entity"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/courses/123", "/enrollments/zz", "/assignments/not-an-id"])
    async def test_malformed_ids_return_400(self, async_client: AsyncClient, path):
        resp = await async_client.get(path)

        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_feedback_id(self, async_client: AsyncClient):
        resp = await async_client.patch(
            "/feedbacks/nope", json={"rating": 3}, headers=auth_header("student-token")
        )
        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_feedback_patch(self, async_client: AsyncClient):
        resp = await async_client.patch(
            f"/feedbacks/{ObjectId()}", json={}, headers=auth_header("student-token")
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == "No fields to update"
