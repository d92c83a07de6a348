from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import Optional
import uuid

from src.utils.auth import role_required
from src.auth.models import BACK_OFFICE_ROLES
from src.closings.schemas import (
    ClosingInput, ClosingCreateResponse, ClosingListResponse,
    ClosingDetailResponse, ClosingPaymentInput, ClosingPaymentResponse,
)
from src.closings.models import ClosingStatus
from src.closings.services import ClosingServices
from src.db.main import get_Session
from src.utils.pagination import PaginationParameters, pagination_parameters
from src.utils.limiter import limiter
from src.config import Config


closing_router = APIRouter()
closing_services = ClosingServices()


@closing_router.post("", response_model=ClosingCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(Config.RATE_LIMIT_WRITE)
async def create_smd_closing(
    request: Request,
    response: Response,
    closing: ClosingInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    user_id = user_details.get("user_id")

    new_closings = await closing_services.create_closing(closing, session, user_id)

    return {
        "success": True,
        "message": "SMD deals closed successfully",
        "data": new_closings
    }


@closing_router.get("", response_model=ClosingListResponse, status_code=status.HTTP_200_OK)
@limiter.limit(Config.RATE_LIMIT_DEFAULT)
async def get_smd_closings(
    request: Request,
    response: Response,
    search: Optional[str] = None,
    smd_id: Optional[uuid.UUID] = None,
    customer_id: Optional[uuid.UUID] = None,
    marketer_id: Optional[uuid.UUID] = None,
    status: Optional[ClosingStatus] = None,
    params: PaginationParameters = Depends(pagination_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    closings, meta = await closing_services.get_all_closings(
        session, params,
        search=search,
        smd_id=smd_id,
        customer_id=customer_id,
        marketer_id=marketer_id,
        closing_status=status
    )

    return {
        "success": True,
        "message": "SMD closings fetched successfully",
        "meta": meta,
        "data": closings
    }


@closing_router.get("/{smd_closing_id}", response_model=ClosingDetailResponse, status_code=status.HTTP_200_OK)
@limiter.limit(Config.RATE_LIMIT_DEFAULT)
async def get_smd_closing(
    request: Request,
    response: Response,
    smd_closing_id: uuid.UUID,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    closing = await closing_services.get_closing_by_id(smd_closing_id, session)

    return {
        "success": True,
        "message": "SMD closing fetched successfully",
        "data": closing
    }


@closing_router.post("/{smd_closing_id}/smd-payment", response_model=ClosingPaymentResponse, status_code=status.HTTP_200_OK)
@limiter.limit(Config.RATE_LIMIT_WRITE)
async def record_closing_payment(
    request: Request,
    response: Response,
    smd_closing_id: uuid.UUID,
    payment: ClosingPaymentInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    user_id = user_details.get("user_id")

    new_payment = await closing_services.record_payment(smd_closing_id, payment, session, user_id)

    return {
        "success": True,
        "message": "Payment recorded successfully",
        "data": new_payment
    }
