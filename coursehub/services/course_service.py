"""
Course lifecycle: instructor-owned CRUD plus the admin approval workflow.

A course is created ``pending``/unpublished, and only an admin can move it
to ``approved`` (which publishes it) or ``rejected``. The public catalog only
ever shows approved and published courses.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from coursehub.errors import NotFoundError, ValidationError
from coursehub.models import Course, CourseRating, Enrollment, Message, User, user_favorites
from coursehub.roles import ApprovalStatus, CertificateStatus, UserRole
from coursehub.schemas.course import CourseCreate, CourseUpdate
from coursehub.security.permissions import ensure_role, is_admin, require_ownership
from coursehub.services import notification_service

logger = logging.getLogger(__name__)

RECENT_COURSES_LIMIT = 5


def _course_query(db: Session):
    return db.query(Course).options(
        selectinload(Course.instructor), selectinload(Course.students)
    )


def get_course_or_404(db: Session, course_id: int) -> Course:
    course = _course_query(db).filter(Course.id == course_id).first()
    if not course:
        raise NotFoundError("Course not found")
    return course


def create_course(db: Session, identity: dict, payload: CourseCreate) -> Course:
    ensure_role(identity, UserRole.INSTRUCTOR)
    if payload.instructor_id is not None:
        require_ownership(
            payload.instructor_id,
            identity,
            "Access denied. You can only create courses for yourself.",
        )

    fields = payload.model_dump(mode="json", exclude={"instructor_id"})
    course = Course(
        **fields,
        instructor_id=identity["user_id"],
        rating=0.0,
        published=False,
        approval_status=ApprovalStatus.PENDING.value,
        instructor_certificate_status=(
            CertificateStatus.PENDING.value
            if payload.instructor_certificate_url
            else CertificateStatus.NOT_PROVIDED.value
        ),
    )
    db.add(course)
    db.commit()
    logger.info("Course %s created by instructor %s", course.id, identity["user_id"])
    return get_course_or_404(db, course.id)


def update_course(db: Session, identity: dict, course_id: int, payload: CourseUpdate) -> Course:
    course = get_course_or_404(db, course_id)
    require_ownership(course.instructor_id, identity, "Access denied. You do not own this course.")

    update_data = payload.model_dump(mode="json", exclude_unset=True)
    for key, value in update_data.items():
        setattr(course, key, value)
    if "instructor_certificate_url" in update_data:
        course.instructor_certificate_status = (
            CertificateStatus.PENDING.value
            if update_data["instructor_certificate_url"]
            else CertificateStatus.NOT_PROVIDED.value
        )

    db.commit()
    return get_course_or_404(db, course_id)


def delete_course(db: Session, identity: dict, course_id: int) -> None:
    course = get_course_or_404(db, course_id)
    require_ownership(course.instructor_id, identity, "Access denied. You do not own this course.")

    # Rows that only make sense while the course exists go with it
    db.query(Enrollment).filter(Enrollment.course_id == course_id).delete(synchronize_session=False)
    db.query(CourseRating).filter(CourseRating.course_id == course_id).delete(synchronize_session=False)
    db.query(Message).filter(Message.course_id == course_id).delete(synchronize_session=False)
    db.execute(user_favorites.delete().where(user_favorites.c.course_id == course_id))
    db.delete(course)
    db.commit()
    logger.info("Course %s deleted by instructor %s", course_id, identity["user_id"])


def approve_course(db: Session, identity: dict, course_id: int) -> Course:
    ensure_role(identity, UserRole.ADMIN)
    course = get_course_or_404(db, course_id)
    if course.approval_status != ApprovalStatus.PENDING.value:
        raise ValidationError(f"Course is already {course.approval_status}")

    course.approval_status = ApprovalStatus.APPROVED.value
    course.published = True
    course.approved_by = identity["user_id"]
    course.approved_at = datetime.now(timezone.utc)
    course.rejection_reason = None
    db.commit()

    try:
        notification_service.create_course_approval_notification(db, course.instructor_id, course)
    except Exception:
        logger.exception("Could not notify instructor about approval of course %s", course_id)

    return get_course_or_404(db, course_id)


def reject_course(db: Session, identity: dict, course_id: int, reason: Optional[str]) -> Course:
    ensure_role(identity, UserRole.ADMIN)
    course = get_course_or_404(db, course_id)
    if not reason or not reason.strip():
        raise ValidationError("Rejection reason is required")
    if course.approval_status != ApprovalStatus.PENDING.value:
        raise ValidationError(f"Course is already {course.approval_status}")

    reason = reason.strip()
    course.approval_status = ApprovalStatus.REJECTED.value
    course.published = False
    course.rejection_reason = reason
    db.commit()

    try:
        notification_service.create_course_rejection_notification(
            db, course.instructor_id, course, reason
        )
    except Exception:
        logger.exception("Could not notify instructor about rejection of course %s", course_id)

    return get_course_or_404(db, course_id)


def list_public(
    db: Session, category: Optional[str] = None, level: Optional[str] = None
) -> List[Course]:
    query = _course_query(db).filter(
        Course.approval_status == ApprovalStatus.APPROVED.value,
        Course.published.is_(True),
    )
    if category:
        query = query.filter(Course.category == category)
    if level:
        query = query.filter(Course.level == level)
    return query.order_by(Course.created_at.desc(), Course.id.desc()).all()


def list_by_status(db: Session, identity: dict, status: Optional[ApprovalStatus] = None) -> List[Course]:
    ensure_role(identity, UserRole.ADMIN)
    query = _course_query(db)
    if status is not None:
        query = query.filter(Course.approval_status == status.value)
    return query.order_by(Course.created_at.desc(), Course.id.desc()).all()


def list_pending(db: Session, identity: dict) -> List[Course]:
    return list_by_status(db, identity, ApprovalStatus.PENDING)


def get_visible_course(db: Session, identity: Optional[dict], course_id: int) -> Course:
    course = get_course_or_404(db, course_id)
    if course.is_public or is_admin(identity):
        return course
    if identity is not None and course.instructor_id == identity["user_id"]:
        return course
    # unpublished courses do not exist for anyone else
    raise NotFoundError("Course not found")


def list_by_instructor(db: Session, identity: Optional[dict], instructor_id: int) -> List[Course]:
    query = _course_query(db).filter(Course.instructor_id == instructor_id)
    owner = identity is not None and identity["user_id"] == instructor_id
    if not owner and not is_admin(identity):
        query = query.filter(
            Course.approval_status == ApprovalStatus.APPROVED.value,
            Course.published.is_(True),
        )
    return query.order_by(Course.created_at.desc(), Course.id.desc()).all()


def admin_stats(db: Session, identity: dict) -> dict:
    ensure_role(identity, UserRole.ADMIN)

    def count_status(status: ApprovalStatus) -> int:
        return db.query(Course).filter(Course.approval_status == status.value).count()

    recent_courses = (
        _course_query(db)
        .order_by(Course.created_at.desc(), Course.id.desc())
        .limit(RECENT_COURSES_LIMIT)
        .all()
    )
    return {
        "statistics": {
            "total_courses": db.query(Course).count(),
            "pending_courses": count_status(ApprovalStatus.PENDING),
            "approved_courses": count_status(ApprovalStatus.APPROVED),
            "rejected_courses": count_status(ApprovalStatus.REJECTED),
            "total_instructors": db.query(User).filter(User.role == UserRole.INSTRUCTOR.value).count(),
            "total_students": db.query(User).filter(User.role == UserRole.STUDENT.value).count(),
        },
        "recent_courses": recent_courses,
    }
