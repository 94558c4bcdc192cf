from typing import List

from sqlalchemy.orm import Session, selectinload

from coursehub.errors import ValidationError
from coursehub.models import Message
from coursehub.security.permissions import ensure_course_member
from coursehub.services.course_service import get_course_or_404

CHAT_HISTORY_LIMIT = 100


def get_history(db: Session, identity: dict, course_id: int) -> List[dict]:
    """Most recent messages of a course, oldest first."""
    course = get_course_or_404(db, course_id)
    ensure_course_member(
        db,
        course,
        identity["user_id"],
        "Access denied. You must be enrolled in this course to view messages.",
    )

    latest = (
        db.query(Message)
        .options(selectinload(Message.sender))
        .filter(Message.course_id == course_id)
        .order_by(Message.timestamp.desc(), Message.id.desc())
        .limit(CHAT_HISTORY_LIMIT)
        .all()
    )
    return [message.to_dict() for message in reversed(latest)]


def post_message(db: Session, user_id: int, course_id: int, text) -> dict:
    if not isinstance(text, str) or not text.strip():
        raise ValidationError("Course ID and message text are required")

    course = get_course_or_404(db, course_id)
    ensure_course_member(
        db,
        course,
        user_id,
        "Access denied. You must be enrolled in this course to send messages.",
    )

    message = Message(course_id=course_id, sender_id=user_id, text=text.strip())
    db.add(message)
    db.commit()
    db.refresh(message)
    return message.to_dict()
