"""
Shared Pydantic Schemas
"""
from pydantic import BaseModel
from typing import Optional


class MessageResponse(BaseModel):
    """Plain acknowledgement"""
    message: str


class UserSummary(BaseModel):
    """Actor shown next to notes and history entries"""
    id: int
    email: str
    full_name: Optional[str] = None

    model_config = {"from_attributes": True}
