from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from coursehub.roles import EnrollmentStatus
from coursehub.schemas.course import CourseResponse
from coursehub.schemas.user import UserContact


class PaymentDetails(BaseModel):
    transaction_id: Optional[str] = None
    payment_id: Optional[str] = None
    payment_method: Optional[str] = None
    currency: str = "INR"


class EnrollRequest(BaseModel):
    payment_details: PaymentDetails


class EnrollmentResponse(BaseModel):
    id: int
    course_id: int
    user_id: int
    payment_status: str
    payment_id: Optional[str] = None
    transaction_id: str
    amount_paid: float
    payment_method: Optional[str] = None
    enrollment_date: datetime
    status: EnrollmentStatus
    progress: int
    completion_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CourseEnrollmentEntry(EnrollmentResponse):
    user: UserContact


class EnrollmentUpdate(BaseModel):
    status: Optional[EnrollmentStatus] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    completion_date: Optional[datetime] = None


class SideEffectFailureResponse(BaseModel):
    effect: str
    error: str


class EnrollResponse(BaseModel):
    course: CourseResponse
    enrollment: EnrollmentResponse
    side_effect_failures: List[SideEffectFailureResponse] = []


class EnrollmentStatusResponse(BaseModel):
    is_enrolled: bool
    is_instructor: bool
