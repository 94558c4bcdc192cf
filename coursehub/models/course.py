from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coursehub.models.associations import course_students
from coursehub.models.basemodel import BaseModel
from coursehub.roles import ApprovalStatus, CertificateStatus


class Course(BaseModel):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, index=True, autoincrement=True
    )
    title = Column(String, nullable=False)
    location = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    detailed_description = Column(Text, nullable=False)
    duration = Column(String, nullable=False)
    level = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(String, nullable=False, index=True)
    syllabus = Column(JSON, default=list)
    requirements = Column(JSON, default=list)
    rating: Mapped[float] = mapped_column(Float, default=0.0)

    instructor_certificate_url = Column(String, nullable=True)
    instructor_certificate_status = Column(
        String, default=CertificateStatus.NOT_PROVIDED.value
    )

    ### Approval workflow ###
    published: Mapped[bool] = mapped_column(Boolean, default=False)
    approval_status: Mapped[str] = mapped_column(
        String, default=ApprovalStatus.PENDING.value, index=True
    )
    rejection_reason = Column(Text, nullable=True)
    approved_by: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    instructor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )

    instructor = relationship(
        "User", back_populates="created_courses", foreign_keys=[instructor_id]
    )
    approver = relationship("User", foreign_keys=[approved_by])
    students = relationship(
        "User", secondary=course_students, back_populates="enrolled_courses"
    )

    @property
    def is_public(self) -> bool:
        return (
            self.approval_status == ApprovalStatus.APPROVED.value
            and bool(self.published)
        )

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "instructor_id": self.instructor_id,
            "location": self.location,
            "description": self.description,
            "detailed_description": self.detailed_description,
            "duration": self.duration,
            "level": self.level,
            "image_url": self.image_url,
            "price": self.price,
            "category": self.category,
            "syllabus": self.syllabus or [],
            "requirements": self.requirements or [],
            "rating": self.rating or 0.0,
            "instructor_certificate_url": self.instructor_certificate_url,
            "instructor_certificate_status": self.instructor_certificate_status,
            "published": self.published,
            "approval_status": self.approval_status,
            "rejection_reason": self.rejection_reason,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at,
            "created_at": self.created_at,
        }
