from sqlmodel import SQLModel, Field, Column
from sqlalchemy import UniqueConstraint
from typing import Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, date, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class PayoutStatus(str, Enum):
    PAID = "paid"


class SmdRentPayout(SQLModel, table=True):
    __tablename__ = "smd_rent_payouts"
    # One payout per closing per month. Duplicate inserts must fail here,
    # the recorder relies on it instead of a lock.
    __table_args__ = (
        UniqueConstraint("smd_closing_id", "payout_month", name="uq_payout_closing_month"),
    )

    payout_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    smd_closing_id: uuid.UUID = Field(foreign_key="smd_closings.smd_closing_id", index=True)
    # First day of the month being paid out
    payout_month: date = Field(index=True)
    amount: Decimal = Field(decimal_places=2)
    status: PayoutStatus = Field(default=PayoutStatus.PAID, index=True)

    paid_by: uuid.UUID = Field(foreign_key="users.user_id")
    paid_at: Optional[datetime] = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
