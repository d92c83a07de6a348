from sqlmodel import SQLModel, Field, Column
from typing import Optional
from enum import Enum
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone

def utc_now():
    return datetime.now(timezone.utc)

class CustomerStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"

class Customer(SQLModel, table=True):
    __tablename__ = "customers"

    customer_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    # Login account of the customer; name and email live on the user row
    user_id: uuid.UUID = Field(foreign_key="users.user_id", index=True)

    contact_number: Optional[str] = None
    cnic: Optional[str] = Field(default=None, index=True)
    city: Optional[str] = None
    address: Optional[str] = None
    status: CustomerStatus = Field(default=CustomerStatus.ACTIVE, index=True)

    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.user_id")
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
