from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from coursehub.schemas.user import UserSummary


class RatingCreate(BaseModel):
    rating: int = Field(ge=1, le=5)


class RatingResponse(BaseModel):
    id: int
    user_id: int
    course_id: int
    rating: int
    last_updated: Optional[datetime] = None
    user: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class UserRatingResponse(BaseModel):
    # None means the user has not rated the course yet
    rating: Optional[int] = None
