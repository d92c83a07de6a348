from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select, func
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import uuid

from src.customers.models import Customer, CustomerStatus
from src.auth.models import User, UserStatus
from src.smds.models import Smd
from src.closings.models import SmdClosing, ClosingStatus
from src.payouts.models import SmdRentPayout
from src.errors import NotFoundError, IneligibleError, InternalError
from src.utils.pagination import PaginationParameters, paginate
from src.utils.logger import app_logger


class CustomerServices():

    async def get_customer(self, customer_id: uuid.UUID, session: AsyncSession):
        """Return ``(customer, user)`` or raise NotFoundError."""
        statement = (
            select(Customer, User)
            .join(User, User.user_id == Customer.user_id)
            .where(Customer.customer_id == customer_id)
        )
        row = (await session.exec(statement)).first()

        if not row:
            raise NotFoundError("Customer not found")
        return row

    async def get_eligible_customer(self, customer_id: uuid.UUID, session: AsyncSession) -> Customer:
        """A customer may close or be paid only while both the profile and
        the login account are active."""
        customer, user = await self.get_customer(customer_id, session)

        if customer.status != CustomerStatus.ACTIVE or user.status != UserStatus.ACTIVE:
            raise IneligibleError()
        return customer

    async def get_customer_smds(
            self,
            customer_id: uuid.UUID,
            session: AsyncSession,
            params: PaginationParameters,
            search: Optional[str] = None):

        await self.get_customer(customer_id, session)

        payout_totals = (
            select(
                SmdRentPayout.smd_closing_id,
                func.count(SmdRentPayout.payout_id).label("payout_count"),
                func.sum(SmdRentPayout.amount).label("total_paid_out"),
                func.max(SmdRentPayout.payout_month).label("last_payout_month"),
            )
            .group_by(SmdRentPayout.smd_closing_id)
            .subquery()
        )

        statement = (
            select(
                SmdClosing.smd_closing_id,
                SmdClosing.status.label("closing_status"),
                SmdClosing.share_percentage,
                SmdClosing.monthly_rent,
                SmdClosing.total_amount_due,
                SmdClosing.amount_paid,
                SmdClosing.created_at,

                Smd.smd_id,
                Smd.smd_code,
                Smd.title,
                Smd.status.label("smd_status"),
                Smd.city,
                Smd.area,
                Smd.monthly_payout,
                Smd.is_active,

                func.coalesce(payout_totals.c.payout_count, 0).label("payout_count"),
                func.coalesce(payout_totals.c.total_paid_out, 0).label("total_paid_out"),
                payout_totals.c.last_payout_month,
            )
            .select_from(SmdClosing)
            .join(Smd, Smd.smd_id == SmdClosing.smd_id)
            .outerjoin(payout_totals, payout_totals.c.smd_closing_id == SmdClosing.smd_closing_id)
            .where(SmdClosing.customer_id == customer_id)
        )

        if search:
            pattern = f"%{search}%"
            statement = statement.where(or_(
                Smd.smd_code.ilike(pattern),
                Smd.title.ilike(pattern)
            ))

        try:
            return await paginate(session, statement, params, SmdClosing.created_at.desc())
        except SQLAlchemyError:
            await session.rollback()
            app_logger.exception(f"failed to fetch SMDs for customer {customer_id}")
            raise InternalError("internal server error")

    async def get_linked_smd_customers(
            self,
            session: AsyncSession,
            params: PaginationParameters,
            search: Optional[str] = None):

        statement = (
            select(
                SmdClosing.smd_closing_id,
                SmdClosing.share_percentage,

                Smd.smd_id,
                Smd.smd_code,
                Smd.title.label("smd_title"),
                Smd.status.label("smd_status"),
                Smd.city.label("smd_city"),

                Customer.customer_id,
                Customer.status.label("customer_status"),
                User.user_id,
                User.full_name.label("customer_name"),
                User.email.label("customer_email"),
                Customer.contact_number,
                Customer.cnic,
            )
            .select_from(SmdClosing)
            .join(Smd, Smd.smd_id == SmdClosing.smd_id)
            .join(Customer, Customer.customer_id == SmdClosing.customer_id)
            .join(User, User.user_id == Customer.user_id)
            .where(SmdClosing.status == ClosingStatus.ACTIVE)
        )

        if search:
            pattern = f"%{search}%"
            statement = statement.where(or_(
                Smd.smd_code.ilike(pattern),
                User.full_name.ilike(pattern),
                Customer.cnic.ilike(pattern)
            ))

        try:
            return await paginate(session, statement, params, SmdClosing.created_at.desc())
        except SQLAlchemyError:
            await session.rollback()
            app_logger.exception("failed to fetch linked SMD customers")
            raise InternalError("internal server error")
