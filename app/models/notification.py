# app/models/notification.py
from pydantic import BaseModel, Field

from .enum import NotificationType


class Notification(BaseModel):
    """Ephemeral message handed to the notification-service; never stored here."""
    user_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType
