"""
Course API endpoints.
Static paths (/all, /popular, /new, /teacher, /enrolled, /add, /change-status)
are registered before /courses/{id} so they are not captured as ids.
"""
from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from mentora.api.dependencies import (
    get_current_user, object_id_or_400, require_admin, require_teacher
)
from mentora.api.responses import internal_error, page_params, respond
from mentora.core.logging import audit_log
from mentora.db.mongodb import get_mongodb
from mentora.models.mongo_models import write_result
from mentora.schemas.api_schemas import (
    CourseCreateRequest, CourseUpdateRequest, CurrentUser, StatusUpdateRequest
)
from mentora.services.course_service import CourseNotFound, CourseService, NotCourseOwner
from mentora.services.pagination import PageRequest


router = APIRouter(prefix="/courses", tags=["Courses"])


def _page(message: str, courses: list, total: int, page: PageRequest):
    return respond(
        status.HTTP_200_OK,
        success=True,
        message=message,
        courses=courses,
        totalCourses=total,
        **page.meta(total)
    )


# ============ Admin ============

@router.get("/all")
async def list_all_courses(
    page: PageRequest = Depends(page_params(10)),
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Every course, any status, newest first."""
    try:
        courses, total = await CourseService(db).list_all(page)
    except PyMongoError as e:
        audit_log.log_failure("course.list_all.failed", e)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, success=False, message="Failed to load courses")
    return _page("Courses fetched successfully", courses, total, page)


@router.patch("/change-status/{id}")
async def change_course_status(
    id: str,
    request: StatusUpdateRequest,
    current_user: CurrentUser = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Approve or reject a course."""
    course_id = object_id_or_400(id)
    try:
        result = await CourseService(db).change_status(course_id, request.status, current_user.email)
    except PyMongoError as e:
        audit_log.log_failure("course.status.failed", e, course_id=id)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(status.HTTP_400_BAD_REQUEST, success=False, message="Course status update failed")
    return respond(status.HTTP_200_OK, success=True, message="Course status updated", data=write_result(result))


# ============ Teacher ============

@router.get("/teacher/{email}")
async def list_teacher_courses(
    email: str,
    page: PageRequest = Depends(page_params(9)),
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Courses authored by a teacher, newest first."""
    try:
        courses, total = await CourseService(db).list_by_instructor(email, page)
    except PyMongoError as e:
        audit_log.log_failure("course.list_teacher.failed", e, email=email)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, success=False, message="Failed to load courses")
    return _page("Courses fetched successfully", courses, total, page)


@router.post("/add")
async def add_course(
    request: CourseCreateRequest,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Create a course; it stays pending until an admin reviews it."""
    try:
        result = await CourseService(db).add_course(request.model_dump(exclude_none=True), current_user.email)
    except PyMongoError as e:
        audit_log.log_failure("course.create.failed", e, title=request.title)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(status.HTTP_400_BAD_REQUEST, success=False, message="Failed to add course")
    return respond(status.HTTP_200_OK, success=True, message="Course added successfully", data=write_result(result))


# ============ Public ============

@router.get("")
async def list_approved_courses(
    searchTerm: str = Query(""),
    page: PageRequest = Depends(page_params(9)),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Approved courses with optional case-insensitive title search."""
    try:
        courses, total = await CourseService(db).list_approved(page, searchTerm)
    except PyMongoError as e:
        audit_log.log_failure("course.list_approved.failed", e, search=searchTerm)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, success=False, message="Failed to load approved courses")
    return _page("Courses fetched successfully", courses, total, page)


@router.get("/popular")
async def popular_courses(db: AsyncIOMotorDatabase = Depends(get_mongodb)):
    """Six approved courses with the most enrollments."""
    try:
        courses = await CourseService(db).popular()
    except PyMongoError as e:
        audit_log.log_failure("course.popular.failed", e)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, message="Failed to load popular courses")
    return respond(status.HTTP_200_OK, success=True, message="Popular courses fetched successfully", courses=courses)


@router.get("/new")
async def new_courses(db: AsyncIOMotorDatabase = Depends(get_mongodb)):
    """Six most recently created approved courses."""
    try:
        courses = await CourseService(db).newest()
    except PyMongoError as e:
        audit_log.log_failure("course.new.failed", e)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, message="Failed to load new courses")
    return respond(status.HTTP_200_OK, success=True, message="New courses fetched successfully", courses=courses)


@router.get("/enrolled/{email}")
async def enrolled_courses(
    email: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """A student's enrollments with course and instructor details."""
    try:
        enrolled = await CourseService(db).enrolled_courses(email)
    except PyMongoError as e:
        audit_log.log_failure("course.enrolled.failed", e, email=email)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, success=False, message="Failed to fetch enrolled courses")
    return respond(
        status.HTTP_200_OK,
        success=True,
        message="Enrolled courses fetched successfully",
        enrolledCourses=enrolled
    )


@router.get("/{id}")
async def get_course(id: str, db: AsyncIOMotorDatabase = Depends(get_mongodb)):
    """One course with its instructor profile and enrollment count."""
    course_id = object_id_or_400(id)
    try:
        course = await CourseService(db).get_course(course_id)
    except PyMongoError as e:
        audit_log.log_failure("course.fetch.failed", e, course_id=id)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, message="Failed to load course")

    if not course:
        return respond(status.HTTP_404_NOT_FOUND, success=False, message="Course not found")
    return respond(status.HTTP_200_OK, success=True, message="Course fetched successfully", course=course)


# ============ Owner ============

@router.patch("/{id}")
async def update_course(
    id: str,
    request: CourseUpdateRequest,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Merge-patch the content of a course the caller owns."""
    course_id = object_id_or_400(id)
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        return respond(status.HTTP_400_BAD_REQUEST, success=False, message="No fields to update")

    try:
        result = await CourseService(db).update_course(course_id, changes, current_user.email)
    except CourseNotFound:
        return respond(status.HTTP_404_NOT_FOUND, success=False, message="Course not found")
    except NotCourseOwner:
        return respond(status.HTTP_403_FORBIDDEN, success=False, message="You can only modify your own courses")
    except PyMongoError as e:
        audit_log.log_failure("course.update.failed", e, course_id=id)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(status.HTTP_400_BAD_REQUEST, success=False, message="Failed to update course")
    return respond(status.HTTP_200_OK, success=True, message="Course updated successfully", data=write_result(result))


@router.delete("/{id}")
async def delete_course(
    id: str,
    current_user: CurrentUser = Depends(require_teacher),
    db: AsyncIOMotorDatabase = Depends(get_mongodb)
):
    """Delete a course the caller owns."""
    course_id = object_id_or_400(id)
    try:
        result = await CourseService(db).delete_course(course_id, current_user.email)
    except CourseNotFound:
        return respond(status.HTTP_404_NOT_FOUND, success=False, message="Course not found")
    except NotCourseOwner:
        return respond(status.HTTP_403_FORBIDDEN, success=False, message="You can only modify your own courses")
    except PyMongoError as e:
        audit_log.log_failure("course.delete.failed", e, course_id=id)
        return internal_error(success=False)

    if not result.acknowledged:
        return respond(status.HTTP_400_BAD_REQUEST, success=False, message="Failed to delete course")
    return respond(status.HTTP_200_OK, success=True, message="Course deleted successfully", data=write_result(result))
