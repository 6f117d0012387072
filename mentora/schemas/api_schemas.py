"""
Pydantic schemas for API request validation.
Write endpoints accept only the fields listed here; unknown keys are dropped
so clients cannot inject server-owned fields such as role or status.
"""
from pydantic import BaseModel, Field, EmailStr
from typing import Optional

from mentora.models.mongo_models import ReviewStatus


OBJECT_ID_PATTERN = "^[0-9a-fA-F]{24}$"


# ============ Auth Schemas ============

class CurrentUser(BaseModel):
    """Identity attached to the request after token verification."""
    email: str
    uid: Optional[str] = None


# ============ User Schemas ============

class UserCreateRequest(BaseModel):
    """First sign-in profile."""
    email: EmailStr
    name: Optional[str] = None
    photoURL: Optional[str] = None


class TeacherApplicationRequest(BaseModel):
    """Fields a user submits when applying to teach."""
    name: Optional[str] = None
    image: Optional[str] = None
    experience: Optional[str] = None
    title: Optional[str] = None
    category: Optional[str] = None


class StatusUpdateRequest(BaseModel):
    """Admin review decision for a teacher or a course."""
    status: ReviewStatus


# ============ Course Schemas ============

class CourseCreateRequest(BaseModel):
    """New course submitted by a teacher."""
    title: str = Field(..., min_length=1)
    instructorName: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)


class CourseUpdateRequest(BaseModel):
    """Content fields a course owner may patch."""
    title: Optional[str] = Field(None, min_length=1)
    instructorName: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)


# ============ Enrollment Schemas ============

class EnrollmentCreateRequest(BaseModel):
    """Student enrollment in a course."""
    courseId: str = Field(..., pattern=OBJECT_ID_PATTERN)
    email: EmailStr
    studentName: Optional[str] = None
    courseTitle: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    paymentIntentId: Optional[str] = None


# ============ Assignment Schemas ============

class AssignmentCreateRequest(BaseModel):
    """Assignment posted by a teacher."""
    courseId: str = Field(..., pattern=OBJECT_ID_PATTERN)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    deadline: Optional[str] = None
    marks: Optional[float] = Field(None, ge=0)


class SubmissionCreateRequest(BaseModel):
    """Student submission for an assignment."""
    assignmentId: str = Field(..., pattern=OBJECT_ID_PATTERN)
    courseId: str = Field(..., pattern=OBJECT_ID_PATTERN)
    studentEmail: EmailStr
    studentName: Optional[str] = None
    submissionUrl: Optional[str] = None
    content: Optional[str] = None


# ============ Feedback Schemas ============

class FeedbackCreateRequest(BaseModel):
    """Course feedback left by a student."""
    courseId: str = Field(..., pattern=OBJECT_ID_PATTERN)
    studentEmail: EmailStr
    rating: float = Field(..., ge=0, le=5)
    comment: Optional[str] = None


class FeedbackUpdateRequest(BaseModel):
    """Merge-patch of a feedback; only rating and comment are patchable."""
    rating: Optional[float] = Field(None, ge=0, le=5)
    comment: Optional[str] = None
