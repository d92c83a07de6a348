from sqlmodel import SQLModel, Field, Column
from typing import Optional
from decimal import Decimal
import uuid
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone
from enum import Enum

def utc_now():
    return datetime.now(timezone.utc)

class ClosingStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHEQUE = "cheque"
    ONLINE = "online"


class SmdClosing(SQLModel, table=True):
    """Contract assigning share_percentage of one SMD to one customer."""
    __tablename__ = "smd_closings"

    smd_closing_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    smd_id: uuid.UUID = Field(foreign_key="smds.smd_id", index=True)
    customer_id: uuid.UUID = Field(foreign_key="customers.customer_id", index=True)
    marketer_id: Optional[uuid.UUID] = Field(default=None, foreign_key="marketers.marketer_id", index=True)

    sell_price: Decimal = Field(decimal_places=2)
    monthly_rent: Decimal = Field(decimal_places=2)
    share_percentage: Decimal = Field(decimal_places=2)
    status: ClosingStatus = Field(default=ClosingStatus.ACTIVE, index=True)

    total_amount_due: Decimal = Field(default=Decimal("0.00"), decimal_places=2)
    # Only ever changed by a single UPDATE ... SET amount_paid = amount_paid + :amount
    amount_paid: Decimal = Field(default=Decimal("0.00"), decimal_places=2)

    closed_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.user_id")
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True), index=True)
    )
    closed_at: Optional[datetime] = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )


class SmdClosingPayment(SQLModel, table=True):
    __tablename__ = "smd_closing_payments"

    payment_id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    smd_closing_id: uuid.UUID = Field(foreign_key="smd_closings.smd_closing_id", index=True)
    amount: Decimal = Field(decimal_places=2)
    payment_method: Optional[PaymentMethod] = Field(default=None)
    reference_no: Optional[str] = None
    notes: Optional[str] = None

    recorded_by: uuid.UUID = Field(foreign_key="users.user_id")
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(pg.TIMESTAMP(timezone=True))
    )
