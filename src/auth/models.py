from sqlmodel import SQLModel, Field, Column
import uuid
from datetime import datetime, timezone
import sqlalchemy.dialects.postgresql as pg

from enum import Enum


def utc_now():
    return datetime.now(timezone.utc)

class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"
    MARKETER = "marketer"
    USER = "user"

class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"

# Roles allowed to run the closing / payout back-office workflow
BACK_OFFICE_ROLES = [Role.ADMIN.value, Role.STAFF.value]

class User(SQLModel, table=True):
    __tablename__ = "users"

    user_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    full_name: str = Field(index=True)
    email: str = Field(unique=True, index=True)
    password_hash: str = Field(exclude=True)
    role: Role = Field(default=Role.USER)
    status: UserStatus = Field(default=UserStatus.ACTIVE, index=True)
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
