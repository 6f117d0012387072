"""
User Management Tests

Tests:
- Idempotent first sign-in
- Profile lookup
- Admin search with pagination
- Teacher application, review and listing order
- Admin elevation
"""
import pytest
from httpx import AsyncClient
from unittest.mock import patch, AsyncMock

from mentora.services.user_service import UserService
from tests.conftest import auth_header, STUDENT_EMAIL


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_new_user_becomes_student(self, async_client: AsyncClient, seeded_db):
        response = await async_client.post(
            "/users",
            json={"email": "newbie@mentora.dev", "name": "New Bie", "photoURL": "https://img/x.png"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "User created successfully"
        assert body["data"]["acknowledged"] is True

        stored = await seeded_db.users.find_one({"email": "newbie@mentora.dev"})
        assert stored["role"] == "student"
        assert stored["createdAt"] is not None
        assert stored["photoURL"] == "https://img/x.png"

    @pytest.mark.asyncio
    async def test_second_creation_is_noop(self, async_client: AsyncClient, seeded_db):
        payload = {"email": "twice@mentora.dev", "name": "Twice"}
        first = await async_client.post("/users", json=payload)
        second = await async_client.post("/users", json={**payload, "name": "Changed"})

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json() == {"message": "User already exists"}
        assert await seeded_db.users.count_documents({"email": "twice@mentora.dev"}) == 1
        stored = await seeded_db.users.find_one({"email": "twice@mentora.dev"})
        assert stored["name"] == "Twice"

    @pytest.mark.asyncio
    async def test_client_cannot_choose_role(self, async_client: AsyncClient, seeded_db):
        await async_client.post("/users", json={"email": "sneaky@mentora.dev", "role": "admin"})

        stored = await seeded_db.users.find_one({"email": "sneaky@mentora.dev"})
        assert stored["role"] == "student"

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(self, async_client: AsyncClient):
        response = await async_client.post("/users", json={"email": "not-an-email"})
        assert response.status_code == 422


class TestGetUser:

    @pytest.mark.asyncio
    async def test_existing_user(self, async_client: AsyncClient):
        response = await async_client.get(f"/users/{STUDENT_EMAIL}")

        assert response.status_code == 200
        body = response.json()
        assert body["email"] == STUDENT_EMAIL
        assert body["role"] == "student"
        assert isinstance(body["_id"], str)

    @pytest.mark.asyncio
    async def test_missing_user(self, async_client: AsyncClient):
        response = await async_client.get("/users/nobody@mentora.dev")

        assert response.status_code == 404
        assert response.json() == {"message": "User not found", "status": "error"}


class TestSearchUsers:

    @pytest.mark.asyncio
    async def test_search_by_name_case_insensitive(self, async_client: AsyncClient):
        response = await async_client.get(
            "/users", params={"search": "TEACHER"}, headers=auth_header("admin-token")
        )

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "success"
        assert {u["email"] for u in body["users"]} == {"teacher@mentora.dev", "teacher2@mentora.dev"}
        assert body["totalUsers"] == 2

    @pytest.mark.asyncio
    async def test_search_by_email_substring(self, async_client: AsyncClient):
        response = await async_client.get(
            "/users", params={"search": "student@"}, headers=auth_header("admin-token")
        )

        assert [u["email"] for u in response.json()["users"]] == [STUDENT_EMAIL]

    @pytest.mark.asyncio
    async def test_search_term_is_literal(self, async_client: AsyncClient):
        """Regex metacharacters in the term do not widen the match."""
        response = await async_client.get(
            "/users", params={"search": ".*"}, headers=auth_header("admin-token")
        )

        body = response.json()
        assert response.status_code == 200
        assert body == {"status": "error", "message": "No users found", "users": []}

    @pytest.mark.asyncio
    async def test_pagination(self, async_client: AsyncClient):
        response = await async_client.get(
            "/users", params={"page": 2, "limit": 3}, headers=auth_header("admin-token")
        )

        body = response.json()
        assert len(body["users"]) == 1
        assert body["totalUsers"] == 4
        assert body["totalPages"] == 2
        assert body["currentPage"] == 2
        assert body["hasNextPage"] is False


class TestTeacherWorkflow:

    @pytest.mark.asyncio
    async def test_apply_sets_pending(self, async_client: AsyncClient, seeded_db):
        response = await async_client.post(
            f"/be-teacher/{STUDENT_EMAIL}",
            json={"experience": "5 years", "title": "Data Science", "role": "admin", "status": "approved"},
            headers=auth_header("student-token")
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Teacher created successfully"

        stored = await seeded_db.users.find_one({"email": STUDENT_EMAIL})
        assert stored["role"] == "teacher"
        assert stored["status"] == "pending"
        assert stored["experience"] == "5 years"

    @pytest.mark.asyncio
    async def test_apply_requires_token(self, async_client: AsyncClient):
        response = await async_client.post(f"/be-teacher/{STUDENT_EMAIL}", json={})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_listing_puts_pending_first(self, async_client: AsyncClient, seeded_db):
        await seeded_db.users.insert_many([
            {"email": "r@mentora.dev", "role": "teacher", "status": "rejected"},
            {"email": "p@mentora.dev", "role": "teacher", "status": "pending"},
        ])

        response = await async_client.get("/teachers", headers=auth_header("admin-token"))

        body = response.json()
        statuses = [t["status"] for t in body["teachers"]]
        assert statuses == ["pending", "approved", "approved", "rejected"]
        assert body["totalTeachers"] == 4
        assert body["status"] == "success"

    @pytest.mark.asyncio
    async def test_admin_approves_teacher(self, async_client: AsyncClient, seeded_db):
        result = await seeded_db.users.insert_one({"email": "p@mentora.dev", "role": "teacher", "status": "pending"})

        response = await async_client.patch(
            f"/change-teacher-status/{result.inserted_id}",
            json={"status": "approved"},
            headers=auth_header("admin-token")
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Teacher status updated successfully"
        stored = await seeded_db.users.find_one({"_id": result.inserted_id})
        assert stored["status"] == "approved"

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, async_client: AsyncClient):
        response = await async_client.patch(
            "/change-teacher-status/64b7f0c2a1b2c3d4e5f60718",
            json={"status": "promoted"},
            headers=auth_header("admin-token")
        )
        assert response.status_code == 422


class TestMakeAdmin:

    @pytest.mark.asyncio
    async def test_elevates_role(self, async_client: AsyncClient, seeded_db):
        student = await seeded_db.users.find_one({"email": STUDENT_EMAIL})

        response = await async_client.patch(
            f"/users/admin/{student['_id']}", headers=auth_header("admin-token")
        )

        assert response.status_code == 200
        assert response.json() == {"message": "User updated successfully"}
        stored = await seeded_db.users.find_one({"_id": student["_id"]})
        assert stored["role"] == "admin"

    @pytest.mark.asyncio
    async def test_malformed_id(self, async_client: AsyncClient):
        response = await async_client.patch("/users/admin/not-an-id", headers=auth_header("admin-token"))
        assert response.status_code == 400


class TestConcurrentSignUp:

    @pytest.mark.asyncio
    async def test_duplicate_key_on_insert_is_already_exists(self, seeded_db):
        """A sign-in that loses the insert race reports the user as existing."""
        await seeded_db.users.create_index("email", unique=True)
        service = UserService(seeded_db)
        service.users.find_one = AsyncMock(return_value=None)

        created, result = await service.create_user({"email": STUDENT_EMAIL, "name": "Second Tab"})

        assert created is False
        assert result is None
        assert await seeded_db.users.count_documents({"email": STUDENT_EMAIL}) == 1

    @pytest.mark.asyncio
    async def test_lost_race_answers_200(self, async_client: AsyncClient, seeded_db):
        await seeded_db.users.create_index("email", unique=True)
        original = UserService.__init__

        def lookup_misses(self, db):
            original(self, db)
            self.users.find_one = AsyncMock(return_value=None)

        with patch.object(UserService, "__init__", lookup_misses):
            response = await async_client.post("/users", json={"email": STUDENT_EMAIL})

        assert response.status_code == 200
        assert response.json() == {"message": "User already exists"}
