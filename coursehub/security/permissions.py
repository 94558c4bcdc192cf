"""
Capability checks used by every course, chat and notification operation.

Role checks, ownership checks and the course membership rule (instructor of
the course or enrolled student) live here so the REST routes and the live
chat channel apply exactly the same logic.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from coursehub.errors import AuthorizationError
from coursehub.models import Course, Enrollment
from coursehub.oauth2 import get_current_user_jwt
from coursehub.roles import EnrollmentStatus, UserRole


@dataclass(frozen=True)
class CourseAccess:
    is_enrolled: bool
    is_instructor: bool

    @property
    def allowed(self) -> bool:
        return self.is_enrolled or self.is_instructor


def ensure_role(identity: dict, *roles: UserRole, message: Optional[str] = None) -> dict:
    allowed = {role.value for role in roles}
    if identity.get("role") not in allowed:
        names = " or ".join(sorted(allowed))
        raise AuthorizationError(
            message or f"Access denied. Only {names} users can perform this action."
        )
    return identity


def require_role(*roles: UserRole) -> Callable:
    """Dependency factory: ``Depends(require_role(UserRole.ADMIN))``."""

    async def dependency(current_user: dict = Depends(get_current_user_jwt)) -> dict:
        return ensure_role(current_user, *roles)

    return dependency


def require_ownership(owner_id: int, identity: dict, message: str = "Access denied") -> None:
    if owner_id != identity.get("user_id"):
        raise AuthorizationError(message)


def is_admin(identity: Optional[dict]) -> bool:
    return identity is not None and identity.get("role") == UserRole.ADMIN.value


def course_access(db: Session, course: Course, user_id: int) -> CourseAccess:
    is_instructor = course.instructor_id == user_id
    is_enrolled = False
    if not is_instructor:
        is_enrolled = (
            db.query(Enrollment.id)
            .filter(
                Enrollment.course_id == course.id,
                Enrollment.user_id == user_id,
                Enrollment.status != EnrollmentStatus.DROPPED.value,
            )
            .first()
            is not None
        )
    return CourseAccess(is_enrolled=is_enrolled, is_instructor=is_instructor)


def ensure_course_member(
    db: Session,
    course: Course,
    user_id: int,
    message: str = "Access denied. You must be enrolled in this course.",
) -> CourseAccess:
    access = course_access(db, course, user_id)
    if not access.allowed:
        raise AuthorizationError(message)
    return access
