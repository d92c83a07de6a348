import uuid
from decimal import Decimal
from typing import Optional

from sqlmodel import select

from src.auth.models import User, Role, UserStatus
from src.customers.models import Customer, CustomerStatus
from src.marketers.models import Marketer, MarketerStatus
from src.smds.models import Smd, SmdStatus
from src.closings.models import SmdClosing, ClosingStatus


class Seeder:
    """Inserts rows owned by the external CRUD services straight into the store."""

    def __init__(self, session_maker):
        self.session_maker = session_maker

    async def _save(self, obj):
        async with self.session_maker() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def user(self, full_name="Staff Member", role=Role.STAFF, status=UserStatus.ACTIVE):
        return await self._save(User(
            full_name=full_name,
            email=f"{uuid.uuid4().hex[:10]}@example.com",
            password_hash="not-a-real-hash",
            role=role,
            status=status
        ))

    async def customer(
            self,
            full_name="Ali Raza",
            status=CustomerStatus.ACTIVE,
            user_status=UserStatus.ACTIVE,
            cnic="35202-1234567-1"):
        user = await self.user(full_name=full_name, role=Role.CUSTOMER, status=user_status)
        return await self._save(Customer(
            user_id=user.user_id,
            contact_number="0300-1234567",
            cnic=cnic,
            city="Lahore",
            status=status
        ))

    async def marketer(self, full_name="Bilal Marketer", status=MarketerStatus.ACTIVE):
        user = await self.user(full_name=full_name, role=Role.MARKETER)
        return await self._save(Marketer(user_id=user.user_id, status=status))

    async def smd(self, smd_code=None, title="Mall Road LED", status=SmdStatus.ACTIVE, is_active=True):
        return await self._save(Smd(
            smd_code=smd_code or f"SMD-{uuid.uuid4().hex[:6]}",
            title=title,
            city="Lahore",
            area="Gulberg",
            sell_price=Decimal("12000"),
            monthly_payout=Decimal("1000"),
            status=status,
            is_active=is_active
        ))

    async def closing(
            self,
            smd: Smd,
            customer: Customer,
            share_percentage="60",
            sell_price="12000",
            status=ClosingStatus.ACTIVE,
            closed_by: Optional[uuid.UUID] = None):
        return await self._save(SmdClosing(
            smd_id=smd.smd_id,
            customer_id=customer.customer_id,
            sell_price=Decimal(sell_price),
            monthly_rent=Decimal("1000"),
            share_percentage=Decimal(share_percentage),
            total_amount_due=Decimal(sell_price),
            status=status,
            closed_by=closed_by
        ))

    async def get(self, model, pk):
        async with self.session_maker() as session:
            return await session.get(model, pk)

    async def all(self, statement):
        async with self.session_maker() as session:
            return (await session.exec(statement)).all()


def closing_payload(customer, *smds, share="60", sell_price="12000", marketer=None):
    payload = {
        "customer_id": str(customer.customer_id),
        "smds": [
            {
                "smd_id": str(smd.smd_id),
                "sell_price": sell_price,
                "monthly_rent": "1000",
                "share_percentage": share,
            }
            for smd in smds
        ],
    }
    if marketer is not None:
        payload["marketer_id"] = str(marketer.marketer_id)
    return payload


async def active_closings_for(seed, smd):
    return await seed.all(
        select(SmdClosing).where(
            SmdClosing.smd_id == smd.smd_id,
            SmdClosing.status == ClosingStatus.ACTIVE
        )
    )
