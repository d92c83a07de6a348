from sqlmodel import SQLModel, Field, Column
from typing import Optional
from enum import Enum
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone

def utc_now():
    return datetime.now(timezone.utc)

class MarketerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"

class Marketer(SQLModel, table=True):
    __tablename__ = "marketers"

    marketer_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.user_id", index=True)
    contact_number: Optional[str] = None
    status: MarketerStatus = Field(default=MarketerStatus.ACTIVE, index=True)

    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.user_id")
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
