from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehub.models.basemodel import BaseModel


class Message(BaseModel):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False)
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    sender = relationship("User")

    __table_args__ = (Index("ix_messages_course_timestamp", "course_id", "timestamp"),)

    def to_dict(self):
        return {
            "id": self.id,
            "course_id": self.course_id,
            "sender": {
                "id": self.sender_id,
                "username": self.sender.username if self.sender else None,
                "profile_picture": self.sender.profile_picture if self.sender else None,
            },
            "text": self.text,
            "timestamp": self.timestamp,
        }
