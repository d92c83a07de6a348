import uuid
from decimal import Decimal

from sqlmodel import select

from src.closings.models import SmdClosing, SmdClosingPayment


async def payments_for(seed, closing):
    return await seed.all(
        select(SmdClosingPayment).where(SmdClosingPayment.smd_closing_id == closing.smd_closing_id)
    )


async def test_payments_accumulate_amount_paid(client, seed, staff):
    closing = await seed.closing(await seed.smd(), await seed.customer(), sell_price="12000")

    first = await client.post(
        f"/api/smd-closings/{closing.smd_closing_id}/smd-payment",
        json={"amount": "3000", "payment_method": "cash", "reference_no": "RCPT-1"}
    )
    second = await client.post(
        f"/api/smd-closings/{closing.smd_closing_id}/smd-payment",
        json={"amount": "2000", "payment_method": "bank_transfer", "notes": "second instalment"}
    )

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["message"] == "Payment recorded successfully"
    assert first.json()["data"]["recorded_by"] == str(staff.user_id)

    refreshed = await seed.get(SmdClosing, closing.smd_closing_id)
    assert refreshed.amount_paid == Decimal("5000")
    assert refreshed.total_amount_due - refreshed.amount_paid == Decimal("7000")
    assert len(await payments_for(seed, closing)) == 2


async def test_many_payments_add_up_exactly(client, seed):
    closing = await seed.closing(await seed.smd(), await seed.customer())
    amounts = [Decimal("125.50"), Decimal("74.50"), Decimal("300"), Decimal("0.25"), Decimal("999.75")]

    for amount in amounts:
        response = await client.post(
            f"/api/smd-closings/{closing.smd_closing_id}/smd-payment", json={"amount": str(amount)}
        )
        assert response.status_code == 200

    refreshed = await seed.get(SmdClosing, closing.smd_closing_id)
    assert refreshed.amount_paid == sum(amounts)


async def test_non_positive_amount_is_rejected(client, seed):
    closing = await seed.closing(await seed.smd(), await seed.customer())

    for amount in ["0", "-100"]:
        response = await client.post(
            f"/api/smd-closings/{closing.smd_closing_id}/smd-payment", json={"amount": amount}
        )
        assert response.status_code == 400

    response = await client.post(f"/api/smd-closings/{closing.smd_closing_id}/smd-payment", json={})
    assert response.status_code == 400

    refreshed = await seed.get(SmdClosing, closing.smd_closing_id)
    assert refreshed.amount_paid == Decimal("0")
    assert await payments_for(seed, closing) == []


async def test_unknown_payment_method_is_rejected(client, seed):
    closing = await seed.closing(await seed.smd(), await seed.customer())

    response = await client.post(
        f"/api/smd-closings/{closing.smd_closing_id}/smd-payment",
        json={"amount": "100", "payment_method": "barter"}
    )

    assert response.status_code == 400


async def test_payment_on_unknown_closing_is_not_found(client, seed):
    closing_id = uuid.uuid4()

    response = await client.post(f"/api/smd-closings/{closing_id}/smd-payment", json={"amount": "100"})

    assert response.status_code == 404
    assert await seed.all(select(SmdClosingPayment)) == []
