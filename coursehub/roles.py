from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CertificateStatus(str, Enum):
    NOT_PROVIDED = "not_provided"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CourseLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DROPPED = "dropped"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class NotificationType(str, Enum):
    COURSE_PURCHASE = "course_purchase"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    COURSE_UPDATE = "course_update"
    SYSTEM = "system"
