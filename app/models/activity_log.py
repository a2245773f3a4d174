from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON


class UserActivityLog(SQLModel, table=True):
    __tablename__ = "user_activity_log"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    activity_type: str = Field(index=True)
    activity_description: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
