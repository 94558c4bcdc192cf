from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from coursehub.errors import AuthorizationError
from coursehub.models import Course, CourseRating
from coursehub.services.course_service import get_course_or_404


def rate_course(db: Session, identity: dict, course_id: int, rating: int) -> dict:
    course = get_course_or_404(db, course_id)
    user_id = identity["user_id"]
    if not any(student.id == user_id for student in course.students):
        raise AuthorizationError("You must be enrolled in the course to rate it")

    course_rating = (
        db.query(CourseRating)
        .filter(CourseRating.course_id == course_id, CourseRating.user_id == user_id)
        .first()
    )
    if course_rating:
        course_rating.rating = rating
        course_rating.last_updated = datetime.now(timezone.utc)
    else:
        db.add(CourseRating(course_id=course_id, user_id=user_id, rating=rating))
    db.flush()

    # Update course rating
    average = (
        db.query(func.avg(CourseRating.rating))
        .filter(CourseRating.course_id == course_id)
        .scalar()
    )
    course.rating = float(average or 0.0)
    db.commit()

    course = get_course_or_404(db, course_id)
    course_dict = course.to_dict()
    course_dict["instructor"] = course.instructor
    course_dict["students"] = course.students
    course_dict["user_rating"] = rating
    return course_dict


def get_user_rating(db: Session, course_id: int, user_id: int) -> Optional[int]:
    course_rating = (
        db.query(CourseRating)
        .filter(CourseRating.course_id == course_id, CourseRating.user_id == user_id)
        .first()
    )
    return course_rating.rating if course_rating else None


def list_ratings(db: Session, course_id: int) -> List[CourseRating]:
    get_course_or_404(db, course_id)
    return (
        db.query(CourseRating)
        .options(selectinload(CourseRating.user))
        .filter(CourseRating.course_id == course_id)
        .order_by(CourseRating.created_at.desc(), CourseRating.id.desc())
        .all()
    )
