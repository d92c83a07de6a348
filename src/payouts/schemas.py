from pydantic import BaseModel, Field, field_validator, model_validator
import uuid
from decimal import Decimal
from datetime import date, datetime
from typing import Optional, List, Union
from src.payouts.models import PayoutStatus
from src.utils.pagination import PaginationMeta


def parse_payout_month(value: Union[str, date, datetime]) -> date:
    """Normalise ``YYYY-MM``, ``YYYY-MM-DD`` or a date to the first of its month."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.replace(day=1)

    if isinstance(value, str):
        text = value.strip()
        for fmt in ("%Y-%m", "%Y-%m-%d"):
            try:
                return datetime.strptime(text, fmt).date().replace(day=1)
            except ValueError:
                continue

    raise ValueError("payout_month must be a calendar month (YYYY-MM)")


class PayoutInput(BaseModel):
    """Target a closing by ``smd_closing_id`` or by ``smd_id`` + ``customer_id``; never both."""
    smd_closing_id: Optional[uuid.UUID] = None
    smd_id: Optional[uuid.UUID] = None
    customer_id: Optional[uuid.UUID] = None
    payout_month: date
    amount: Decimal = Field(gt=0, decimal_places=2)

    @field_validator("payout_month", mode="before")
    @classmethod
    def normalise_month(cls, value):
        return parse_payout_month(value)

    @model_validator(mode="after")
    def check_target(self):
        by_pair = self.smd_id is not None or self.customer_id is not None

        if self.smd_closing_id is not None and by_pair:
            raise ValueError("Provide either smd_closing_id or smd_id with customer_id, not both")

        if self.smd_closing_id is None and (self.smd_id is None or self.customer_id is None):
            raise ValueError("smd_closing_id, or both smd_id and customer_id, are required")

        return self


class Payout(BaseModel):
    payout_id: uuid.UUID
    smd_closing_id: uuid.UUID
    payout_month: date
    amount: Decimal
    status: PayoutStatus
    paid_by: uuid.UUID
    paid_at: Optional[datetime] = None

class PayoutCreateResponse(BaseModel):
    success: bool
    message: str
    data: Payout


class PayoutRow(BaseModel):
    payout_id: uuid.UUID
    smd_closing_id: uuid.UUID
    payout_month: date
    amount: Decimal
    status: PayoutStatus
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    customer_id: uuid.UUID
    customer_name: str
    customer_email: str

    smd_id: uuid.UUID
    smd_code: str
    smd_title: Optional[str] = None
    city: Optional[str] = None

    paid_by_id: Optional[uuid.UUID] = None
    paid_by_name: Optional[str] = None

class PayoutListResponse(BaseModel):
    success: bool
    message: str
    meta: PaginationMeta
    data: List[PayoutRow]
