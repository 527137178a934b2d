"""
Notification Domain Model

Messages queued for a user. Insert-only from the backend's perspective.
"""
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class Notification(BaseModel):
    id: Optional[str] = None
    user_id: str
    message: str
    read: Optional[bool] = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
