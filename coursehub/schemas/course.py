from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from coursehub.roles import ApprovalStatus, CourseLevel
from coursehub.schemas.user import UserSummary


class CourseBase(BaseModel):
    title: str = Field(min_length=1)
    location: str = Field(min_length=1)
    description: str = Field(min_length=1)
    detailed_description: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    level: CourseLevel
    image_url: str = Field(min_length=1)
    price: float = Field(ge=0)
    category: str = Field(min_length=1)
    syllabus: List[str] = []
    requirements: List[str] = []
    instructor_certificate_url: Optional[str] = None


class CourseCreate(CourseBase):
    ### Declared owner, must match the caller when present ###
    instructor_id: Optional[int] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    detailed_description: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[str] = Field(default=None, min_length=1)
    level: Optional[CourseLevel] = None
    image_url: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, min_length=1)
    syllabus: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    instructor_certificate_url: Optional[str] = None

    @field_validator(
        "title",
        "location",
        "description",
        "detailed_description",
        "duration",
        "level",
        "image_url",
        "price",
        "category",
        "syllabus",
        "requirements",
        mode="before",
    )
    @classmethod
    def not_null(cls, value):
        # omit a field to keep it; only the certificate URL may be cleared
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class CourseResponse(BaseModel):
    id: int
    title: str
    instructor_id: int
    location: str
    description: str
    detailed_description: str
    duration: str
    level: str
    image_url: str
    price: float
    category: str
    syllabus: List[str] = []
    requirements: List[str] = []
    rating: float = 0.0
    instructor_certificate_url: Optional[str] = None
    instructor_certificate_status: Optional[str] = None
    published: bool
    approval_status: ApprovalStatus
    rejection_reason: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    instructor: Optional[UserSummary] = None
    students: List[UserSummary] = []

    model_config = ConfigDict(from_attributes=True)


class CourseWithUserRating(CourseResponse):
    user_rating: Optional[int] = None


class EnrolledCourseResponse(CourseResponse):
    enrollment_date: datetime
    progress: int
    status: str


class RejectCourseRequest(BaseModel):
    rejection_reason: Optional[str] = None


class CourseActionResponse(BaseModel):
    message: str
    course: CourseResponse


class CourseStatistics(BaseModel):
    total_courses: int
    pending_courses: int
    approved_courses: int
    rejected_courses: int
    total_instructors: int
    total_students: int


class AdminStatsResponse(BaseModel):
    statistics: CourseStatistics
    recent_courses: List[CourseResponse]
