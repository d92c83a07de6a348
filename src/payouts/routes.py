from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import Optional
import uuid

from src.utils.auth import role_required
from src.auth.models import BACK_OFFICE_ROLES
from src.payouts.schemas import (
    PayoutInput, PayoutCreateResponse, PayoutListResponse, parse_payout_month,
)
from src.payouts.models import PayoutStatus
from src.payouts.services import PayoutServices
from src.db.main import get_Session
from src.errors import ValidationError
from src.utils.pagination import PaginationParameters, pagination_parameters
from src.utils.limiter import limiter
from src.config import Config


payout_router = APIRouter()
payout_services = PayoutServices()


@payout_router.post("", response_model=PayoutCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(Config.RATE_LIMIT_WRITE)
async def create_monthly_payout(
    request: Request,
    response: Response,
    payout: PayoutInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    user_id = user_details.get("user_id")

    new_payout = await payout_services.create_payout(payout, session, user_id)

    return {
        "success": True,
        "message": "Monthly payout recorded successfully",
        "data": new_payout
    }


@payout_router.get("", response_model=PayoutListResponse, status_code=status.HTTP_200_OK)
@limiter.limit(Config.RATE_LIMIT_DEFAULT)
async def get_monthly_payouts(
    request: Request,
    response: Response,
    status: Optional[PayoutStatus] = None,
    smd_closing_id: Optional[uuid.UUID] = None,
    customer_id: Optional[uuid.UUID] = None,
    smd_id: Optional[uuid.UUID] = None,
    payout_month: Optional[str] = None,
    params: PaginationParameters = Depends(pagination_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    month = None
    if payout_month:
        try:
            month = parse_payout_month(payout_month)
        except ValueError as e:
            raise ValidationError(str(e))

    payouts, meta = await payout_services.get_all_payouts(
        session, params,
        payout_status=status,
        smd_closing_id=smd_closing_id,
        customer_id=customer_id,
        smd_id=smd_id,
        payout_month=month
    )

    return {
        "success": True,
        "message": "Monthly payouts fetched successfully",
        "meta": meta,
        "data": payouts
    }
