from sqlalchemy import Boolean, Column, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehub.models.associations import course_students, user_favorites
from coursehub.models.basemodel import BaseModel
from coursehub.roles import UserRole


class User(BaseModel):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        index=True,
        autoincrement=True,
    )
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    role = Column(String, nullable=False, default=UserRole.STUDENT.value)
    location = Column(String, default="")
    age = Column(Integer, nullable=True)
    bio = Column(Text, default="")
    profile_picture = Column(String, default="")
    email_notifications = Column(Boolean, default=True, nullable=False)

    enrolled_courses = relationship(
        "Course",
        secondary=course_students,
        back_populates="students",
    )
    created_courses = relationship(
        "Course", back_populates="instructor", foreign_keys="Course.instructor_id"
    )
    favorites = relationship("Course", secondary=user_favorites)

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "location": self.location,
            "age": self.age,
            "bio": self.bio,
            "profile_picture": self.profile_picture,
            "email_notifications": self.email_notifications,
        }
