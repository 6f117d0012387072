"""
User management API endpoints.
This family reports outcome with `status: "success" | "error"`.
"""
from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from mentora.api.dependencies import get_current_user, object_id_or_400, require_admin
from mentora.api.responses import page_params, respond
from mentora.core.logging import audit_log
from mentora.db.mongodb import get_mongodb
from mentora.models.mongo_models import write_result
from mentora.schemas.api_schemas import (
    CurrentUser, StatusUpdateRequest, TeacherApplicationRequest, UserCreateRequest
)
from mentora.services.pagination import PageRequest
from mentora.services.user_service import UserService


router = APIRouter(tags=["Users"])


def _server_error():
    return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, status="error", message="Internal server error")


@router.post("/users")
async def create_user(
    request: UserCreateRequest,
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """
    Create the user on first sign-in.
    Idempotent: an existing email answers "User already exists" without writing.
    """
    service = UserService(db)
    try:
        created, result = await service.create_user(request.model_dump(exclude_none=True))
    except PyMongoError as e:
        audit_log.log_failure("user.create.failed", e, email=request.email)
        return _server_error()

    if not created:
        return respond(status.HTTP_200_OK, message="User already exists")

    if not result.acknowledged:
        return respond(status.HTTP_400_BAD_REQUEST, status="error", message="User creation failed")

    return respond(
        status.HTTP_201_CREATED,
        status="success",
        message="User created successfully",
        data=write_result(result)
    )


@router.get("/users/{email}")
async def get_user_by_email(
    email: str,
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Fetch one user profile."""
    try:
        user = await UserService(db).get_user_by_email(email)
    except PyMongoError as e:
        audit_log.log_failure("user.fetch.failed", e, email=email)
        return _server_error()

    if not user:
        return respond(status.HTTP_404_NOT_FOUND, message="User not found", status="error")
    return respond(status.HTTP_200_OK, user)


@router.get("/users")
async def search_users(
    search: str = Query(""),
    page: PageRequest = Depends(page_params(10)),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Paginated case-insensitive search over name and email."""
    try:
        users, total = await UserService(db).search_users(search, page)
    except PyMongoError as e:
        audit_log.log_failure("user.search.failed", e, search=search)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, message="Failed to fetch users", success=False)

    if not users:
        return respond(status.HTTP_200_OK, status="error", message="No users found", users=[])

    return respond(
        status.HTTP_200_OK,
        status="success",
        message="Users fetched successfully",
        users=users,
        totalUsers=total,
        **page.meta(total)
    )


@router.post("/be-teacher/{userEmail}")
async def apply_as_teacher(
    userEmail: str,
    request: TeacherApplicationRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Submit a teacher application; the user's status becomes pending."""
    try:
        result = await UserService(db).apply_as_teacher(
            userEmail,
            request.model_dump(exclude_none=True),
            actor_email=current_user.email
        )
    except PyMongoError as e:
        audit_log.log_failure("teacher.apply.failed", e, email=userEmail)
        return _server_error()

    if not result.acknowledged:
        return respond(status.HTTP_400_BAD_REQUEST, status="error", message="Teacher creation failed")

    return respond(
        status.HTTP_201_CREATED,
        status="success",
        message="Teacher created successfully",
        data=write_result(result)
    )


@router.get("/teachers")
async def list_teachers(
    page: PageRequest = Depends(page_params(10)),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Teachers with pending applications listed first."""
    try:
        teachers, total = await UserService(db).list_teachers(page)
    except PyMongoError as e:
        audit_log.log_failure("teacher.list.failed", e)
        return _server_error()

    return respond(
        status.HTTP_200_OK,
        status="success",
        message="Teachers fetched successfully",
        teachers=teachers,
        totalTeachers=total,
        **page.meta(total)
    )


@router.patch("/change-teacher-status/{id}")
async def change_teacher_status(
    id: str,
    request: StatusUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Approve or reject a teacher application."""
    user_id = object_id_or_400(id)
    try:
        result = await UserService(db).set_teacher_status(user_id, request.status, current_user.email)
    except PyMongoError as e:
        audit_log.log_failure("teacher.status.failed", e, user_id=id)
        return _server_error()

    if not result.acknowledged:
        return respond(status.HTTP_400_BAD_REQUEST, status="error", message="Teacher status update failed")

    return respond(
        status.HTTP_201_CREATED,
        status="success",
        message="Teacher status updated successfully",
        data=write_result(result)
    )


@router.patch("/users/admin/{id}")
async def make_admin(
    id: str,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Elevate a user to admin."""
    user_id = object_id_or_400(id)
    try:
        await UserService(db).make_admin(user_id, current_user.email)
    except PyMongoError as e:
        audit_log.log_failure("user.make_admin.failed", e, user_id=id)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, message="Failed to update user")

    return respond(status.HTTP_200_OK, message="User updated successfully")
