"""
Enrollment workflow.

``enroll`` records the purchase and links the student to the course. The
notifications and the email receipt that follow are best-effort: a failure
there is logged and reported in ``EnrollmentResult.side_effect_failures`` but
never undoes the enrollment.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from coursehub.celery_app import send_enrollment_email_task
from coursehub.errors import AlreadyEnrolledError, AuthorizationError, NotFoundError, ValidationError
from coursehub.models import Course, Enrollment, User
from coursehub.roles import EnrollmentStatus, PaymentStatus, UserRole
from coursehub.schemas.enrollment import EnrollmentUpdate, PaymentDetails
from coursehub.security.permissions import CourseAccess, course_access, ensure_role, is_admin
from coursehub.services import notification_service
from coursehub.services.course_service import get_course_or_404

logger = logging.getLogger(__name__)


@dataclass
class SideEffectFailure:
    effect: str
    error: str


@dataclass
class EnrollmentResult:
    course: Course
    enrollment: Enrollment
    side_effect_failures: List[SideEffectFailure] = field(default_factory=list)

    @property
    def fully_succeeded(self) -> bool:
        return not self.side_effect_failures


def _run_side_effect(result: EnrollmentResult, effect: str, action: Callable[[], object]) -> None:
    try:
        action()
    except Exception as exc:
        logger.warning(
            "Side effect %s failed for enrollment %s: %s",
            effect,
            result.enrollment.id,
            exc,
            exc_info=True,
        )
        result.side_effect_failures.append(SideEffectFailure(effect=effect, error=str(exc)))


def _find_enrollment(db: Session, course_id: int, user_id: int):
    return (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.user_id == user_id)
        .first()
    )


def enroll(
    db: Session, identity: dict, course_id: int, payment_details: PaymentDetails
) -> EnrollmentResult:
    ensure_role(identity, UserRole.STUDENT, message="Access denied. Only students can enroll in courses.")
    user_id = identity["user_id"]

    course = get_course_or_404(db, course_id)
    if not course.is_public:
        raise ValidationError("Course is not available for enrollment")

    if _find_enrollment(db, course_id, user_id) is not None:
        raise AlreadyEnrolledError()

    if not payment_details.transaction_id or not payment_details.transaction_id.strip():
        raise ValidationError("Invalid payment details")

    student = db.query(User).filter(User.id == user_id).first()
    if student is None:
        raise NotFoundError("User not found")

    enrollment = Enrollment(
        course_id=course_id,
        user_id=user_id,
        payment_status=PaymentStatus.COMPLETED.value,
        payment_id=payment_details.payment_id,
        transaction_id=payment_details.transaction_id.strip(),
        amount_paid=course.price,
        payment_method=payment_details.payment_method,
        status=EnrollmentStatus.ACTIVE.value,
        progress=0,
    )
    db.add(enrollment)
    try:
        db.flush()
    except IntegrityError:
        # a concurrent request for the same pair committed first
        db.rollback()
        raise AlreadyEnrolledError()

    if student not in course.students:
        course.students.append(student)
    db.commit()
    db.refresh(enrollment)
    logger.info("User %s enrolled in course %s (transaction %s)", user_id, course_id, enrollment.transaction_id)

    course = get_course_or_404(db, course_id)
    result = EnrollmentResult(course=course, enrollment=enrollment)

    payment = {
        "amount": course.price,
        "currency": payment_details.currency,
        "transaction_id": enrollment.transaction_id,
        "payment_method": enrollment.payment_method,
    }
    _run_side_effect(
        result,
        "purchase_notification",
        lambda: notification_service.create_course_purchase_notification(db, user_id, course, payment),
    )
    _run_side_effect(
        result,
        "payment_notification",
        lambda: notification_service.create_payment_confirmation_notification(db, user_id, payment),
    )
    if student.email_notifications:
        _run_side_effect(
            result,
            "enrollment_email",
            lambda: send_enrollment_email_task.delay(
                student.email,
                student.username,
                {
                    "title": course.title,
                    "instructor_name": course.instructor.username if course.instructor else None,
                    "duration": course.duration,
                    "level": course.level,
                    "price": course.price,
                },
            ),
        )
    return result


def update_enrollment(
    db: Session, identity: dict, course_id: int, user_id: int, payload: EnrollmentUpdate
) -> Enrollment:
    enrollment = _find_enrollment(db, course_id, user_id)
    if enrollment is None:
        raise NotFoundError("Enrollment not found")

    course = get_course_or_404(db, course_id)
    caller = identity["user_id"]
    if caller != user_id and caller != course.instructor_id and not is_admin(identity):
        raise AuthorizationError("Access denied")

    if payload.status is not None:
        enrollment.status = payload.status.value
    if payload.progress is not None:
        enrollment.progress = payload.progress
    if payload.completion_date is not None:
        enrollment.completion_date = payload.completion_date

    db.commit()
    db.refresh(enrollment)
    return enrollment


def list_enrolled_courses(db: Session, identity: dict) -> List[dict]:
    enrollments = (
        db.query(Enrollment)
        .filter(Enrollment.user_id == identity["user_id"])
        .order_by(Enrollment.enrollment_date.desc())
        .all()
    )
    courses = {
        course.id: course
        for course in db.query(Course)
        .options(selectinload(Course.instructor), selectinload(Course.students))
        .filter(Course.id.in_([e.course_id for e in enrollments]))
        .all()
    }

    enrolled = []
    for enrollment in enrollments:
        course = courses.get(enrollment.course_id)
        if course is None:
            continue
        entry = course.to_dict()
        entry["instructor"] = course.instructor
        entry["students"] = course.students
        entry["enrollment_date"] = enrollment.enrollment_date
        entry["progress"] = enrollment.progress
        entry["status"] = enrollment.status
        enrolled.append(entry)
    return enrolled


def check_enrollment_status(db: Session, identity: dict, course_id: int) -> CourseAccess:
    course = get_course_or_404(db, course_id)
    return course_access(db, course, identity["user_id"])


def list_course_enrollments(db: Session, identity: dict, course_id: int) -> List[Enrollment]:
    course = get_course_or_404(db, course_id)
    if course.instructor_id != identity["user_id"] and not is_admin(identity):
        raise AuthorizationError("Access denied. Only the course instructor can view enrollments.")
    return (
        db.query(Enrollment)
        .options(selectinload(Enrollment.user))
        .filter(Enrollment.course_id == course_id)
        .order_by(Enrollment.enrollment_date.desc(), Enrollment.id.desc())
        .all()
    )
