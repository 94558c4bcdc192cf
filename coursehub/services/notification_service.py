"""
Notification dispatcher.

``create_notification`` is a plain append used by the course lifecycle and
enrollment workflows; the remaining functions back the owner-only REST
routes under ``/api/notifications``.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from coursehub.errors import NotFoundError
from coursehub.models import Course, Notification
from coursehub.roles import NotificationType
from coursehub.security.permissions import require_ownership

logger = logging.getLogger(__name__)

NOTIFICATION_LIST_LIMIT = 50


def create_notification(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    type: NotificationType,
    data: Optional[Dict[str, Any]] = None,
) -> Notification:
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type.value,
        data=data or {},
        read=False,
    )
    db.add(notification)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(notification)
    logger.info("Notification created for user %s: %s", user_id, title)
    return notification


def create_course_purchase_notification(
    db: Session, user_id: int, course: Course, payment_details: Dict[str, Any]
) -> Notification:
    return create_notification(
        db,
        user_id,
        title="Course Enrollment Successful",
        message=f'You have successfully enrolled in "{course.title}"',
        type=NotificationType.COURSE_PURCHASE,
        data={
            "course_id": course.id,
            "course_title": course.title,
            "instructor_name": course.instructor.username if course.instructor else None,
            "payment_details": payment_details,
        },
    )


def create_payment_confirmation_notification(
    db: Session, user_id: int, payment_details: Dict[str, Any]
) -> Notification:
    return create_notification(
        db,
        user_id,
        title="Payment Successful",
        message=f"Your payment of ₹{payment_details['amount']} has been successfully processed",
        type=NotificationType.PAYMENT_CONFIRMATION,
        data={
            "amount": payment_details["amount"],
            "currency": payment_details.get("currency") or "INR",
            "transaction_id": payment_details.get("transaction_id"),
            "payment_method": payment_details.get("payment_method"),
        },
    )


def create_course_rejection_notification(
    db: Session, instructor_id: int, course: Course, rejection_reason: str
) -> Notification:
    return create_notification(
        db,
        instructor_id,
        title="Course Rejected",
        message=f'Your course "{course.title}" has been rejected by admin',
        type=NotificationType.COURSE_UPDATE,
        data={
            "course_id": course.id,
            "course_title": course.title,
            "rejection_reason": rejection_reason,
            "status": "rejected",
        },
    )


def create_course_approval_notification(
    db: Session, instructor_id: int, course: Course
) -> Notification:
    return create_notification(
        db,
        instructor_id,
        title="Course Approved",
        message=f'Your course "{course.title}" has been approved and is now published',
        type=NotificationType.COURSE_UPDATE,
        data={
            "course_id": course.id,
            "course_title": course.title,
            "status": "approved",
        },
    )


def list_for_user(db: Session, identity: dict, user_id: int) -> dict:
    require_ownership(user_id, identity)
    notifications = (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(NOTIFICATION_LIST_LIMIT)
        .all()
    )
    unread_count = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .count()
    )
    return {"notifications": notifications, "unread_count": unread_count}


def _get_owned_notification(db: Session, identity: dict, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    require_ownership(notification.user_id, identity)
    return notification


def mark_read(db: Session, identity: dict, notification_id: int) -> Notification:
    notification = _get_owned_notification(db, identity, notification_id)
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, identity: dict, user_id: int) -> int:
    require_ownership(user_id, identity)
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, identity: dict, notification_id: int) -> None:
    notification = _get_owned_notification(db, identity, notification_id)
    db.delete(notification)
    db.commit()


def clear_all(db: Session, identity: dict, user_id: int) -> int:
    require_ownership(user_id, identity)
    deleted = (
        db.query(Notification)
        .filter(Notification.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
