from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class OrderTimelineEvent(SQLModel, table=True):
    __tablename__ = "order_timeline"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    stage: str = Field(index=True)
    description: str = ""
    is_completed: bool = Field(default=True)
    timestamp: datetime = Field(default_factory=datetime.utcnow)
