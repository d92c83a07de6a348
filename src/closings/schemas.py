from pydantic import BaseModel, Field, computed_field
import uuid
from decimal import Decimal
from datetime import datetime, date
from typing import Optional, List
from src.closings.models import ClosingStatus, PaymentMethod
from src.payouts.models import PayoutStatus
from src.utils.pagination import PaginationMeta


# --- CREATE CLOSING ---

class ClosingSmdInput(BaseModel):
    smd_id: uuid.UUID
    sell_price: Decimal = Field(gt=0, decimal_places=2)
    monthly_rent: Decimal = Field(gt=0, decimal_places=2)
    share_percentage: Decimal = Field(gt=0, le=100, decimal_places=2)

class ClosingInput(BaseModel):
    """One customer closing on one or more SMDs; the batch commits or fails as a whole."""
    customer_id: uuid.UUID
    marketer_id: Optional[uuid.UUID] = None
    smds: List[ClosingSmdInput] = Field(min_length=1)

class ClosingCreated(BaseModel):
    smd_closing_ids: List[uuid.UUID]

class ClosingCreateResponse(BaseModel):
    success: bool
    message: str
    data: ClosingCreated


# --- LIST / DETAIL ---

class ClosingRow(BaseModel):
    smd_closing_id: uuid.UUID
    closing_status: ClosingStatus
    sell_price: Decimal
    monthly_rent: Decimal
    share_percentage: Decimal
    total_amount_due: Decimal
    amount_paid: Decimal
    created_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None

    smd_id: uuid.UUID
    smd_code: str
    city: Optional[str] = None
    area: Optional[str] = None

    customer_id: uuid.UUID
    customer_name: str
    customer_email: str
    contact_number: Optional[str] = None

    marketer_id: Optional[uuid.UUID] = None
    marketer_name: Optional[str] = None
    marketer_email: Optional[str] = None

    closed_by: Optional[uuid.UUID] = None
    closed_by_name: Optional[str] = None

    @computed_field
    @property
    def remaining_balance(self) -> Decimal:
        return self.total_amount_due - self.amount_paid

class ClosingListResponse(BaseModel):
    success: bool
    message: str
    meta: PaginationMeta
    data: List[ClosingRow]


class ClosingPayment(BaseModel):
    payment_id: uuid.UUID
    smd_closing_id: uuid.UUID
    amount: Decimal
    payment_method: Optional[PaymentMethod] = None
    reference_no: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: uuid.UUID
    created_at: Optional[datetime] = None

class ClosingPayout(BaseModel):
    payout_id: uuid.UUID
    payout_month: date
    amount: Decimal
    status: PayoutStatus
    paid_by: uuid.UUID
    paid_at: Optional[datetime] = None

class ClosingDetail(ClosingRow):
    payments: List[ClosingPayment] = []
    payouts: List[ClosingPayout] = []

class ClosingDetailResponse(BaseModel):
    success: bool
    message: str
    data: ClosingDetail


# --- PAYMENTS ---

class ClosingPaymentInput(BaseModel):
    amount: Decimal = Field(gt=0, decimal_places=2)
    payment_method: Optional[PaymentMethod] = None
    reference_no: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None

class ClosingPaymentResponse(BaseModel):
    success: bool
    message: str
    data: ClosingPayment
