from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import aliased
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fastapi import HTTPException
from datetime import date
from typing import Optional
import uuid

from src.payouts.models import SmdRentPayout, PayoutStatus, utc_now
from src.payouts.schemas import PayoutInput
from src.closings.models import SmdClosing, ClosingStatus
from src.customers.models import Customer
from src.smds.models import Smd
from src.auth.models import User
from src.auth.services import AuthServices
from src.customers.services import CustomerServices
from src.errors import (
    NotFoundError, ConflictError, DuplicatePayoutError, InternalError, is_unique_violation
)
from src.utils.pagination import PaginationParameters, paginate
from src.utils.logger import ledger_logger

authServices = AuthServices()
customerServices = CustomerServices()


class PayoutServices:

    async def create_payout(self, payout_input: PayoutInput, session: AsyncSession, user_id: str):
        """Record one month of rent for an active closing.

        No lock is taken: a second payout for the same closing and month is
        rejected by the uq_payout_closing_month constraint at flush time.
        """
        actor = await authServices.check_user_exists(user_id, session)

        try:
            closing = await self.resolve_active_closing(payout_input, session)
            closing_id = closing.smd_closing_id

            await customerServices.get_eligible_customer(closing.customer_id, session)

            new_payout = SmdRentPayout(
                smd_closing_id=closing_id,
                payout_month=payout_input.payout_month,
                amount=payout_input.amount,
                status=PayoutStatus.PAID,
                paid_by=actor.user_id,
                paid_at=utc_now()
            )
            session.add(new_payout)
            await session.flush()

            await session.commit()

        except HTTPException as e:
            await session.rollback()
            ledger_logger.warning(f"payout rejected: {e.detail}")
            raise

        except IntegrityError as e:
            await session.rollback()
            if is_unique_violation(e):
                ledger_logger.warning(
                    f"duplicate payout for closing {closing_id} month {payout_input.payout_month:%Y-%m}"
                )
                raise DuplicatePayoutError()
            ledger_logger.exception("failed to insert monthly payout")
            raise InternalError("Failed to record monthly payout")

        except SQLAlchemyError:
            await session.rollback()
            ledger_logger.exception("failed to record monthly payout")
            raise InternalError("Failed to record monthly payout")

        ledger_logger.info(
            f"payout {new_payout.payout_id} for closing {closing_id} month {payout_input.payout_month:%Y-%m} recorded"
        )
        return new_payout

    async def resolve_active_closing(self, payout_input: PayoutInput, session: AsyncSession) -> SmdClosing:
        if payout_input.smd_closing_id is not None:
            statement = select(SmdClosing).where(
                SmdClosing.smd_closing_id == payout_input.smd_closing_id,
                SmdClosing.status == ClosingStatus.ACTIVE
            )
            closing = (await session.exec(statement)).first()

            if not closing:
                raise NotFoundError("No active contract found for this SMD closing")
            return closing

        statement = select(SmdClosing).where(
            SmdClosing.smd_id == payout_input.smd_id,
            SmdClosing.customer_id == payout_input.customer_id,
            SmdClosing.status == ClosingStatus.ACTIVE
        )
        closings = (await session.exec(statement)).all()

        if not closings:
            raise NotFoundError("No active contract found for this SMD and Customer")
        if len(closings) > 1:
            raise ConflictError("Multiple active contracts found for this SMD and Customer")
        return closings[0]

    async def get_all_payouts(
            self,
            session: AsyncSession,
            params: PaginationParameters,
            payout_status: Optional[PayoutStatus] = None,
            smd_closing_id: Optional[uuid.UUID] = None,
            customer_id: Optional[uuid.UUID] = None,
            smd_id: Optional[uuid.UUID] = None,
            payout_month: Optional[date] = None):

        customer_user = aliased(User)
        staff = aliased(User)

        statement = (
            select(
                SmdRentPayout.payout_id,
                SmdRentPayout.smd_closing_id,
                SmdRentPayout.payout_month,
                SmdRentPayout.amount,
                SmdRentPayout.status,
                SmdRentPayout.paid_at,
                SmdRentPayout.created_at,

                Customer.customer_id,
                customer_user.full_name.label("customer_name"),
                customer_user.email.label("customer_email"),

                Smd.smd_id,
                Smd.smd_code,
                Smd.title.label("smd_title"),
                Smd.city,

                staff.user_id.label("paid_by_id"),
                staff.full_name.label("paid_by_name"),
            )
            .select_from(SmdRentPayout)
            .join(SmdClosing, SmdClosing.smd_closing_id == SmdRentPayout.smd_closing_id)
            .join(Customer, Customer.customer_id == SmdClosing.customer_id)
            .join(customer_user, customer_user.user_id == Customer.user_id)
            .join(Smd, Smd.smd_id == SmdClosing.smd_id)
            .outerjoin(staff, staff.user_id == SmdRentPayout.paid_by)
        )

        if payout_status:
            statement = statement.where(SmdRentPayout.status == payout_status)
        if smd_closing_id:
            statement = statement.where(SmdRentPayout.smd_closing_id == smd_closing_id)
        if customer_id:
            statement = statement.where(SmdClosing.customer_id == customer_id)
        if smd_id:
            statement = statement.where(SmdClosing.smd_id == smd_id)
        if payout_month:
            statement = statement.where(SmdRentPayout.payout_month == payout_month)

        try:
            return await paginate(
                session, statement, params,
                SmdRentPayout.payout_month.desc(), SmdRentPayout.paid_at.desc()
            )
        except SQLAlchemyError:
            await session.rollback()
            ledger_logger.exception("failed to fetch monthly payouts")
            raise InternalError("Failed to fetch monthly payouts")
