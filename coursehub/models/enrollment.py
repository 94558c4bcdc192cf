from datetime import datetime, timezone
from typing import Optional

import sqlalchemy
from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehub.models.basemodel import BaseModel
from coursehub.roles import EnrollmentStatus, PaymentStatus


def _utcnow():
    return datetime.now(timezone.utc)


class Enrollment(BaseModel):
    __tablename__ = "course_enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    payment_status: Mapped[str] = mapped_column(String, default=PaymentStatus.PENDING.value)
    payment_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    transaction_id: Mapped[str] = mapped_column(String, nullable=False)
    amount_paid: Mapped[float] = mapped_column(Float, nullable=False)
    payment_method: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    enrollment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    status: Mapped[str] = mapped_column(String, default=EnrollmentStatus.ACTIVE.value)
    completion_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)

    course = relationship("Course")
    user = relationship("User")

    ### Preventing Duplicate Course Enrollment ###
    __table_args__ = (
        sqlalchemy.UniqueConstraint("course_id", "user_id", name="_course_user_enrollment_uc"),
    )
