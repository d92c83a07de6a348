import asyncio
from decimal import Decimal

import pytest
from sqlmodel import select

from src.closings.models import SmdClosing, SmdClosingPayment, ClosingStatus
from src.closings.schemas import ClosingInput, ClosingPaymentInput
from src.closings.services import ClosingServices
from src.errors import ShareExceededError
from helpers import Seeder, closing_payload, active_closings_for

closing_services = ClosingServices()


@pytest.fixture
def file_seed(file_session_maker):
    return Seeder(file_session_maker)


async def close_concurrently(session_maker, staff, payloads):
    async def close(payload):
        async with session_maker() as session:
            return await closing_services.create_closing(
                ClosingInput(**payload), session, str(staff.user_id)
            )

    return await asyncio.gather(*(close(p) for p in payloads), return_exceptions=True)


async def test_concurrent_closings_cannot_oversell_an_smd(file_session_maker, file_seed):
    staff = await file_seed.user(full_name="Sara Staff")
    smd = await file_seed.smd()
    customers = [await file_seed.customer(full_name=f"Buyer {i}") for i in range(4)]

    results = await close_concurrently(
        file_session_maker, staff, [closing_payload(c, smd, share="60") for c in customers]
    )

    created = [r for r in results if isinstance(r, dict)]
    rejected = [r for r in results if isinstance(r, ShareExceededError)]
    assert len(created) == 1
    assert len(rejected) == 3
    assert all(r.remaining_share == Decimal("40") for r in rejected)

    closings = await active_closings_for(file_seed, smd)
    assert sum(c.share_percentage for c in closings) == Decimal("60")


async def test_concurrent_closings_fill_an_smd_exactly(file_session_maker, file_seed):
    staff = await file_seed.user(full_name="Sara Staff")
    smd = await file_seed.smd()
    customers = [await file_seed.customer(full_name=f"Buyer {i}") for i in range(6)]

    results = await close_concurrently(
        file_session_maker, staff, [closing_payload(c, smd, share="25") for c in customers]
    )

    assert len([r for r in results if isinstance(r, dict)]) == 4
    assert len([r for r in results if isinstance(r, ShareExceededError)]) == 2

    closings = await active_closings_for(file_seed, smd)
    assert sum(c.share_percentage for c in closings) == Decimal("100")


async def test_concurrent_payments_add_up_exactly(file_session_maker, file_seed):
    staff = await file_seed.user(full_name="Sara Staff")
    closing = await file_seed.closing(await file_seed.smd(), await file_seed.customer())
    amounts = [Decimal("100.25"), Decimal("250"), Decimal("75.75"), Decimal("500"), Decimal("1000"),
               Decimal("0.50"), Decimal("49.50"), Decimal("300"), Decimal("24"), Decimal("1")]

    async def pay(amount):
        async with file_session_maker() as session:
            return await closing_services.record_payment(
                closing.smd_closing_id, ClosingPaymentInput(amount=amount), session, str(staff.user_id)
            )

    await asyncio.gather(*(pay(a) for a in amounts))

    refreshed = await file_seed.get(SmdClosing, closing.smd_closing_id)
    assert refreshed.amount_paid == sum(amounts)
    assert refreshed.status == ClosingStatus.ACTIVE
    payments = await file_seed.all(
        select(SmdClosingPayment).where(SmdClosingPayment.smd_closing_id == closing.smd_closing_id)
    )
    assert len(payments) == len(amounts)
