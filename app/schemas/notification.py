from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel


class Notification(BaseModel):
    id: str
    type: str
    title: str
    message: str
    link: Optional[str] = None
    created_at: datetime
    read: bool = False
    metadata: Dict[str, Any] = {}


class NotificationListResponse(BaseModel):
    success: bool = True
    notifications: List[Notification]
    unread_count: int
    total: int
