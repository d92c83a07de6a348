from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import or_, update
from sqlalchemy.orm import aliased
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException
from decimal import Decimal
from typing import Optional
import uuid

from src.closings.models import SmdClosing, SmdClosingPayment, ClosingStatus, utc_now
from src.closings.schemas import ClosingInput, ClosingSmdInput, ClosingPaymentInput
from src.smds.models import Smd, SmdStatus
from src.customers.models import Customer
from src.marketers.models import Marketer, MarketerStatus
from src.payouts.models import SmdRentPayout
from src.auth.models import User
from src.auth.services import AuthServices
from src.customers.services import CustomerServices
from src.errors import (
    NotFoundError, ConflictError, ShareExceededError, InvalidMarketerError,
    InternalError
)
from src.utils.pagination import PaginationParameters, paginate
from src.utils.logger import ledger_logger

authServices = AuthServices()
customerServices = CustomerServices()

MAX_SHARE = Decimal("100")


def smd_lock_statement(smd_id: uuid.UUID):
    """Exclusive lock on the SMD row, held until the transaction ends.

    Every closing on a device takes this lock before reading the device's
    share total, so two closings on the same SMD are serialized. SQLite
    drops FOR UPDATE; there the BEGIN IMMEDIATE set up in src/db/main.py
    serializes the transactions instead.
    """
    return select(Smd).where(Smd.smd_id == smd_id).with_for_update()


def active_share_statement(smd_id: uuid.UUID):
    return select(func.coalesce(func.sum(SmdClosing.share_percentage), 0)).where(
        SmdClosing.smd_id == smd_id,
        SmdClosing.status == ClosingStatus.ACTIVE
    )


def amount_paid_increment_statement(closing_id: uuid.UUID, amount: Decimal):
    # Evaluated by the database so concurrent payments cannot lose updates.
    return (
        update(SmdClosing)
        .where(SmdClosing.smd_closing_id == closing_id)
        .values(amount_paid=SmdClosing.amount_paid + amount, updated_at=utc_now())
    )


def closing_rows_statement():
    """Closings joined with SMD, customer, marketer and closer identity."""
    customer_user = aliased(User)
    marketer_user = aliased(User)
    closer = aliased(User)

    statement = (
        select(
            SmdClosing.smd_closing_id,
            SmdClosing.status.label("closing_status"),
            SmdClosing.sell_price,
            SmdClosing.monthly_rent,
            SmdClosing.share_percentage,
            SmdClosing.total_amount_due,
            SmdClosing.amount_paid,
            SmdClosing.created_at,
            SmdClosing.closed_at,

            Smd.smd_id,
            Smd.smd_code,
            Smd.city,
            Smd.area,

            Customer.customer_id,
            customer_user.full_name.label("customer_name"),
            customer_user.email.label("customer_email"),
            Customer.contact_number,

            Marketer.marketer_id,
            marketer_user.full_name.label("marketer_name"),
            marketer_user.email.label("marketer_email"),

            SmdClosing.closed_by,
            closer.full_name.label("closed_by_name"),
        )
        .select_from(SmdClosing)
        .join(Smd, Smd.smd_id == SmdClosing.smd_id)
        .join(Customer, Customer.customer_id == SmdClosing.customer_id)
        .join(customer_user, customer_user.user_id == Customer.user_id)
        .outerjoin(Marketer, Marketer.marketer_id == SmdClosing.marketer_id)
        .outerjoin(marketer_user, marketer_user.user_id == Marketer.user_id)
        .outerjoin(closer, closer.user_id == SmdClosing.closed_by)
    )
    return statement, customer_user, marketer_user


class ClosingServices:

    async def create_closing(self, closing_input: ClosingInput, session: AsyncSession, user_id: str):
        """Close one customer on every SMD in the batch, or on none of them."""
        actor = await authServices.check_user_exists(user_id, session)

        try:
            customer = await customerServices.get_eligible_customer(closing_input.customer_id, session)

            if closing_input.marketer_id:
                await self.check_marketer_active(closing_input.marketer_id, session)

            closing_ids = []
            for smd_input in closing_input.smds:
                new_closing = await self.close_smd(
                    smd_input, customer.customer_id, closing_input.marketer_id, actor.user_id, session
                )
                closing_ids.append(new_closing.smd_closing_id)

            await session.commit()

        except HTTPException as e:
            await session.rollback()
            ledger_logger.warning(f"closing rejected for customer {closing_input.customer_id}: {e.detail}")
            raise

        except SQLAlchemyError:
            await session.rollback()
            ledger_logger.exception("failed to close SMD deals")
            raise InternalError("Failed to close SMD deals")

        ledger_logger.info(
            f"customer {customer.customer_id} closed on {len(closing_ids)} SMD(s) by {actor.user_id}"
        )
        return {"smd_closing_ids": closing_ids}

    async def close_smd(
            self,
            smd_input: ClosingSmdInput,
            customer_id: uuid.UUID,
            marketer_id: Optional[uuid.UUID],
            closed_by: uuid.UUID,
            session: AsyncSession):
        """Lock the SMD, check its share headroom and stage one closing.

        Must run inside the caller's transaction; the lock is only released
        by the caller's commit or rollback.
        """
        smd = (await session.exec(smd_lock_statement(smd_input.smd_id))).first()

        if not smd or smd.status == SmdStatus.REMOVED or not smd.is_active:
            raise NotFoundError(f"SMD not found: {smd_input.smd_id}")

        existing = (await session.exec(
            select(SmdClosing.smd_closing_id).where(
                SmdClosing.smd_id == smd.smd_id,
                SmdClosing.customer_id == customer_id,
                SmdClosing.status == ClosingStatus.ACTIVE
            )
        )).first()

        if existing:
            raise ConflictError(f"Customer already has an active closing on SMD {smd.smd_code}")

        current_share = Decimal(str((await session.exec(active_share_statement(smd.smd_id))).one()))

        if current_share + smd_input.share_percentage > MAX_SHARE:
            raise ShareExceededError(smd.smd_id, MAX_SHARE - current_share)

        new_closing = SmdClosing(
            smd_id=smd.smd_id,
            customer_id=customer_id,
            marketer_id=marketer_id,
            sell_price=smd_input.sell_price,
            monthly_rent=smd_input.monthly_rent,
            share_percentage=smd_input.share_percentage,
            total_amount_due=smd_input.sell_price,
            status=ClosingStatus.ACTIVE,
            closed_by=closed_by
        )
        session.add(new_closing)
        # Flush so the next SMD in the batch sees this closing in its share sum
        await session.flush()

        return new_closing

    async def check_marketer_active(self, marketer_id: uuid.UUID, session: AsyncSession):
        statement = select(Marketer).where(Marketer.marketer_id == marketer_id)
        marketer = (await session.exec(statement)).first()

        if not marketer or marketer.status != MarketerStatus.ACTIVE:
            raise InvalidMarketerError()
        return marketer

    async def get_all_closings(
            self,
            session: AsyncSession,
            params: PaginationParameters,
            search: Optional[str] = None,
            smd_id: Optional[uuid.UUID] = None,
            customer_id: Optional[uuid.UUID] = None,
            marketer_id: Optional[uuid.UUID] = None,
            closing_status: Optional[ClosingStatus] = None):

        statement, customer_user, marketer_user = closing_rows_statement()

        if search:
            pattern = f"%{search}%"
            statement = statement.where(or_(
                Smd.smd_code.ilike(pattern),
                customer_user.full_name.ilike(pattern),
                marketer_user.full_name.ilike(pattern)
            ))
        if smd_id:
            statement = statement.where(SmdClosing.smd_id == smd_id)
        if customer_id:
            statement = statement.where(SmdClosing.customer_id == customer_id)
        if marketer_id:
            statement = statement.where(SmdClosing.marketer_id == marketer_id)
        if closing_status:
            statement = statement.where(SmdClosing.status == closing_status)

        try:
            return await paginate(session, statement, params, SmdClosing.created_at.desc())
        except SQLAlchemyError:
            await session.rollback()
            ledger_logger.exception("failed to fetch SMD closings")
            raise InternalError("Failed to fetch SMD closings")

    async def get_closing_by_id(self, closing_id: uuid.UUID, session: AsyncSession):
        statement, _, _ = closing_rows_statement()
        statement = statement.where(SmdClosing.smd_closing_id == closing_id)

        try:
            row = (await session.exec(statement)).mappings().first()

            if not row:
                raise NotFoundError("SMD closing not found")

            payments = (await session.exec(
                select(SmdClosingPayment)
                .where(SmdClosingPayment.smd_closing_id == closing_id)
                .order_by(SmdClosingPayment.created_at.desc())
            )).all()

            payouts = (await session.exec(
                select(SmdRentPayout)
                .where(SmdRentPayout.smd_closing_id == closing_id)
                .order_by(SmdRentPayout.payout_month.desc())
            )).all()

        except SQLAlchemyError:
            await session.rollback()
            ledger_logger.exception(f"failed to fetch SMD closing {closing_id}")
            raise InternalError("Failed to fetch SMD closing")

        return {
            **dict(row),
            "payments": [payment.model_dump() for payment in payments],
            "payouts": [payout.model_dump() for payout in payouts],
        }

    async def record_payment(
            self,
            closing_id: uuid.UUID,
            payment_input: ClosingPaymentInput,
            session: AsyncSession,
            user_id: str):
        """Insert the payment and bump the closing's amount_paid in one transaction."""
        actor = await authServices.check_user_exists(user_id, session)

        try:
            closing = (await session.exec(
                select(SmdClosing.smd_closing_id).where(SmdClosing.smd_closing_id == closing_id)
            )).first()

            if not closing:
                raise NotFoundError("SMD closing not found")

            new_payment = SmdClosingPayment(
                **payment_input.model_dump(),
                smd_closing_id=closing_id,
                recorded_by=actor.user_id
            )
            session.add(new_payment)
            await session.flush()

            await session.exec(amount_paid_increment_statement(closing_id, payment_input.amount))

            await session.commit()

        except HTTPException:
            await session.rollback()
            raise

        except SQLAlchemyError:
            await session.rollback()
            ledger_logger.exception(f"failed to record payment on closing {closing_id}")
            raise InternalError("Failed to record payment")

        ledger_logger.info(
            f"payment {new_payment.payment_id} of {payment_input.amount} recorded on closing {closing_id}"
        )
        return new_payment
