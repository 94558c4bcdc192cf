from datetime import datetime, timezone

import sqlalchemy
from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehub.models.basemodel import BaseModel


class CourseRating(BaseModel):
    __tablename__ = "course_ratings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    user = relationship("User")
    course = relationship("Course")

    __table_args__ = (
        sqlalchemy.UniqueConstraint("course_id", "user_id", name="_course_user_rating_uc"),
    )
