from pydantic import BaseModel, computed_field
from typing import Optional, List
from decimal import Decimal
from datetime import datetime, date
import uuid
from src.closings.models import ClosingStatus
from src.smds.models import SmdStatus
from src.customers.models import CustomerStatus
from src.utils.pagination import PaginationMeta


class CustomerSmd(BaseModel):
    """One closing of a customer with the SMD it covers and its payout totals."""
    smd_closing_id: uuid.UUID
    closing_status: ClosingStatus
    share_percentage: Decimal
    monthly_rent: Decimal
    total_amount_due: Decimal
    amount_paid: Decimal
    created_at: Optional[datetime] = None

    smd_id: uuid.UUID
    smd_code: str
    title: Optional[str] = None
    smd_status: SmdStatus
    city: Optional[str] = None
    area: Optional[str] = None
    monthly_payout: Decimal
    is_active: bool

    payout_count: int
    total_paid_out: Decimal
    last_payout_month: Optional[date] = None

    @computed_field
    @property
    def remaining_balance(self) -> Decimal:
        return self.total_amount_due - self.amount_paid

class CustomerSmdListResponse(BaseModel):
    success: bool
    message: str
    meta: PaginationMeta
    data: List[CustomerSmd]


class LinkedSmdCustomer(BaseModel):
    smd_closing_id: uuid.UUID
    share_percentage: Decimal

    smd_id: uuid.UUID
    smd_code: str
    smd_title: Optional[str] = None
    smd_status: SmdStatus
    smd_city: Optional[str] = None

    customer_id: uuid.UUID
    customer_status: CustomerStatus
    user_id: uuid.UUID
    customer_name: str
    customer_email: str
    contact_number: Optional[str] = None
    cnic: Optional[str] = None

class LinkedSmdCustomerListResponse(BaseModel):
    success: bool
    message: str
    meta: PaginationMeta
    data: List[LinkedSmdCustomer]
