from fastapi import APIRouter, Depends, Request, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import Optional
import uuid

from src.utils.auth import role_required
from src.auth.models import BACK_OFFICE_ROLES
from src.customers.schemas import CustomerSmdListResponse, LinkedSmdCustomerListResponse
from src.customers.services import CustomerServices
from src.db.main import get_Session
from src.utils.pagination import PaginationParameters, pagination_parameters
from src.utils.limiter import limiter
from src.config import Config


customer_router = APIRouter()
customer_services = CustomerServices()


@customer_router.get("/linked-smd-customers", response_model=LinkedSmdCustomerListResponse, status_code=status.HTTP_200_OK)
@limiter.limit(Config.RATE_LIMIT_DEFAULT)
async def get_linked_smd_customers(
    request: Request,
    response: Response,
    search: Optional[str] = None,
    params: PaginationParameters = Depends(pagination_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    links, meta = await customer_services.get_linked_smd_customers(session, params, search=search)

    return {
        "success": True,
        "message": "linked SMD customers fetched successfully",
        "meta": meta,
        "data": links
    }


@customer_router.get("/customers/{customer_id}/smds", response_model=CustomerSmdListResponse, status_code=status.HTTP_200_OK)
@limiter.limit(Config.RATE_LIMIT_DEFAULT)
async def get_customer_smds(
    request: Request,
    response: Response,
    customer_id: uuid.UUID,
    search: Optional[str] = None,
    params: PaginationParameters = Depends(pagination_parameters),
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(BACK_OFFICE_ROLES))
):
    smds, meta = await customer_services.get_customer_smds(customer_id, session, params, search=search)

    return {
        "success": True,
        "message": "customer SMDs fetched successfully",
        "meta": meta,
        "data": smds
    }
