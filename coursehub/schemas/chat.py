from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MessageCreate(BaseModel):
    course_id: int
    text: str


class MessageSender(BaseModel):
    id: int
    username: Optional[str] = None
    profile_picture: Optional[str] = None


class MessageResponse(BaseModel):
    id: int
    course_id: int
    sender: MessageSender
    text: str
    timestamp: datetime
