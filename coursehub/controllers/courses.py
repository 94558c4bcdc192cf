from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette import status

from coursehub.dependencies.getdb import get_db
from coursehub.oauth2 import get_current_user_jwt, get_optional_user_jwt
from coursehub.roles import CourseLevel, UserRole
from coursehub.schemas.course import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    CourseWithUserRating,
    EnrolledCourseResponse,
)
from coursehub.schemas.enrollment import (
    CourseEnrollmentEntry,
    EnrollmentResponse,
    EnrollmentStatusResponse,
    EnrollmentUpdate,
    EnrollRequest,
    EnrollResponse,
)
from coursehub.schemas.rating import RatingCreate, RatingResponse, UserRatingResponse
from coursehub.security.permissions import require_ownership, require_role
from coursehub.services import course_service, enrollment_service, rating_service

router = APIRouter(prefix="/api/courses", tags=["courses"])


@router.get("", response_model=List[CourseResponse])
async def get_public_courses(
    category: Optional[str] = None,
    level: Optional[CourseLevel] = None,
    db: Session = Depends(get_db),
):
    return course_service.list_public(db, category, level.value if level else None)


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    create_course_request: CourseCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(require_role(UserRole.INSTRUCTOR)),
):
    return course_service.create_course(db, current_user, create_course_request)


### Static paths first, they would otherwise match /{course_id} ###
@router.get("/enrolled", response_model=List[EnrolledCourseResponse])
async def get_enrolled_courses(
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    """Get all courses the current user is enrolled in"""
    return enrollment_service.list_enrolled_courses(db, current_user)


@router.get("/student/{student_id}", response_model=List[EnrolledCourseResponse])
@router.get("/user/{student_id}/enrollments", response_model=List[EnrolledCourseResponse])
async def get_student_courses(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    require_ownership(student_id, current_user, "Access denied. You can only view your own enrollments.")
    return enrollment_service.list_enrolled_courses(db, current_user)


@router.get("/instructor/{instructor_id}", response_model=List[CourseResponse])
async def get_instructor_courses(
    instructor_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[dict] = Depends(get_optional_user_jwt),
):
    return course_service.list_by_instructor(db, current_user, instructor_id)


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course_by_id(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[dict] = Depends(get_optional_user_jwt),
):
    return course_service.get_visible_course(db, current_user, course_id)


@router.put("/{course_id}", response_model=CourseResponse)
@router.patch("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    update_course_request: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    return course_service.update_course(db, current_user, course_id, update_course_request)


@router.delete("/{course_id}", status_code=status.HTTP_200_OK)
async def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    course_service.delete_course(db, current_user, course_id)
    return {"message": "Course deleted"}


@router.post("/{course_id}/enroll", response_model=EnrollResponse, status_code=status.HTTP_201_CREATED)
async def enroll_in_course(
    course_id: int,
    enroll_request: EnrollRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    result = enrollment_service.enroll(db, current_user, course_id, enroll_request.payment_details)
    return {
        "course": result.course,
        "enrollment": result.enrollment,
        "side_effect_failures": [
            {"effect": failure.effect, "error": failure.error}
            for failure in result.side_effect_failures
        ],
    }


@router.get("/{course_id}/enrollments", response_model=List[CourseEnrollmentEntry])
async def get_course_enrollments(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    return enrollment_service.list_course_enrollments(db, current_user, course_id)


@router.get("/{course_id}/enrollment-status", response_model=EnrollmentStatusResponse)
async def check_enrollment_status(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    """Check if the current user is enrolled in (or teaches) a specific course"""
    access = enrollment_service.check_enrollment_status(db, current_user, course_id)
    return {"is_enrolled": access.is_enrolled, "is_instructor": access.is_instructor}


@router.patch("/{course_id}/enrollment/{user_id}", response_model=EnrollmentResponse)
async def update_enrollment(
    course_id: int,
    user_id: int,
    update_request: EnrollmentUpdate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    return enrollment_service.update_enrollment(db, current_user, course_id, user_id, update_request)


@router.post("/{course_id}/rate", response_model=CourseWithUserRating)
async def rate_course(
    course_id: int,
    rating_data: RatingCreate,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user_jwt),
):
    return rating_service.rate_course(db, current_user, course_id, rating_data.rating)


@router.get("/{course_id}/ratings", response_model=List[RatingResponse])
async def get_course_ratings(course_id: int, db: Session = Depends(get_db)):
    return rating_service.list_ratings(db, course_id)


@router.get("/{course_id}/rating/{user_id}", response_model=UserRatingResponse)
async def get_user_rating(course_id: int, user_id: int, db: Session = Depends(get_db)):
    return {"rating": rating_service.get_user_rating(db, course_id, user_id)}
