import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from coursehub.config import settings
from coursehub.errors import NotFoundError, ValidationError
from coursehub.models import Course, User
from coursehub.oauth2 import bcrypt_context
from coursehub.roles import UserRole
from coursehub.security.permissions import require_ownership
from coursehub.services.course_service import get_course_or_404

logger = logging.getLogger(__name__)


def check_if_user_exists(
    db: Session, email: Optional[str] = None, username: Optional[str] = None, exclude_id: Optional[int] = None
):
    filters = []
    if email:
        filters.append(User.email == email)
    if username:
        filters.append(User.username == username)
    if not filters:
        return
    query = db.query(User).filter(or_(*filters))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ValidationError("User already exists")


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


def list_favorites(db: Session, identity: dict, user_id: int) -> List[Course]:
    require_ownership(user_id, identity)
    return get_user_or_404(db, user_id).favorites


def add_favorite(db: Session, identity: dict, user_id: int, course_id: int) -> None:
    require_ownership(user_id, identity)
    user = get_user_or_404(db, user_id)
    course = get_course_or_404(db, course_id)
    if course in user.favorites:
        raise ValidationError("Course already in favorites")
    user.favorites.append(course)
    db.commit()


def remove_favorite(db: Session, identity: dict, user_id: int, course_id: int) -> None:
    require_ownership(user_id, identity)
    user = get_user_or_404(db, user_id)
    course = next((c for c in user.favorites if c.id == course_id), None)
    if course is None:
        raise ValidationError("Course not in favorites")
    user.favorites.remove(course)
    db.commit()


def create_admin_user(db: Session) -> Optional[User]:
    """
    Create the bootstrap admin user if it doesn't exist yet

    Returns:
        The admin user (if created or found)
    """
    admin_user = db.query(User).filter(User.email == settings.ADMIN_EMAIL).first()
    if admin_user:
        logger.info("Admin user %s already exists.", settings.ADMIN_EMAIL)
        return admin_user

    new_admin = User(
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL,
        hashed_password=bcrypt_context.hash(settings.ADMIN_PASSWORD),
        is_active=True,
        role=UserRole.ADMIN.value,
    )
    try:
        db.add(new_admin)
        db.commit()
        db.refresh(new_admin)
    except Exception:
        db.rollback()
        logger.exception("Error creating admin user")
        return None
    logger.info("Created admin user with email: %s", settings.ADMIN_EMAIL)
    return new_admin
