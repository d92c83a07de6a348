import asyncio
import uuid
from decimal import Decimal
from sqlmodel import select
from src.db.main import async_session_maker, init_db
from src.smds.models import Smd

# (smd_code, title, city, area, purchase_price, sell_price, monthly_payout)
DEMO_SMDS = [
    ("SMD-001", "Mall Road LED 12x8", "Lahore", "Gulberg", "1200000", "1500000", "60000"),
    ("SMD-002", "Canal View LED 10x6", "Lahore", "DHA", "900000", "1100000", "45000"),
    ("SMD-003", "Clifton Bridge LED 16x9", "Karachi", "Clifton", "1800000", "2200000", "90000"),
]

async def seed_smds(owner_user_id: str):
    owner_uuid = uuid.UUID(owner_user_id)

    await init_db()

    async with async_session_maker() as session:
        existing = (await session.exec(select(Smd.smd_code))).all()

        created = 0
        for code, title, city, area, purchase, sell, payout in DEMO_SMDS:
            if code in existing:
                continue
            session.add(Smd(
                smd_code=code,
                title=title,
                city=city,
                area=area,
                purchase_price=Decimal(purchase),
                sell_price=Decimal(sell),
                monthly_payout=Decimal(payout),
                owner_user_id=owner_uuid,
                added_by=owner_uuid
            ))
            created += 1

        try:
            await session.commit()
            print(f"Seeded {created} SMD(s) for owner {owner_user_id}")
        except Exception as e:
            await session.rollback()
            print(f"Failed to seed SMDs: {e}")

if __name__ == "__main__":
    import sys
    if len(sys.argv) != 2:
        print("Usage: python seed_smds.py <owner_user_id>")
        sys.exit(1)

    asyncio.run(seed_smds(sys.argv[1]))
