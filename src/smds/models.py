from sqlmodel import SQLModel, Field, Column
from typing import Optional
from decimal import Decimal
from enum import Enum
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone

def utc_now():
    return datetime.now(timezone.utc)

class SmdStatus(str, Enum):
    ACTIVE = "active"
    REMOVED = "removed"

class Smd(SQLModel, table=True):
    """A leasable device. Soft-deleted with is_active=False, status=removed."""
    __tablename__ = "smds"

    smd_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    smd_code: str = Field(unique=True, index=True)
    title: Optional[str] = None
    city: Optional[str] = Field(default=None, index=True)
    area: Optional[str] = None
    address: Optional[str] = None

    purchase_price: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    sell_price: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    monthly_payout: Decimal = Field(default=Decimal("0.00"), decimal_places=2)

    is_active: bool = Field(default=True)
    status: SmdStatus = Field(default=SmdStatus.ACTIVE, index=True)

    owner_user_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.user_id", index=True)
    added_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.user_id")

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
