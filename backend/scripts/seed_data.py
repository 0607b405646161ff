"""Seed the database with a small Bahia building for demos and manual testing.

Creates two owners, six units on three floors, a handful of guests and a mix
of past, current and upcoming bookings (one in USD, one maintenance block).
Every booking goes through the booking service, so totals and payment
statuses come out of the pricing engine exactly as they would at the desk.

Run from the backend directory:
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from app.database import async_session_factory, create_all
from app.models.apartment import Apartment
from app.models.booking import Booking
from app.models.catalog_service import CatalogService
from app.models.customer import Customer
from app.models.expense import Expense
from app.models.owner import Owner
from app.models.user import User
from app.pricing.status import CHECKED_OUT, CONFIRMED
from app.schemas.booking import BookingCreate, StayServiceCreate
from app.services.booking_service import create_booking, settle_booking
from app.services.bootstrap import bootstrap

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

OWNERS = [
    {"name": "Mona El-Sayed", "phone": "+201001112223", "contract_type": "Percentage", "contract_value": Decimal("25")},
    {"name": "Karim Fouad", "phone": "+201004445556", "contract_type": "Fixed", "contract_value": Decimal("18000")},
]

# (unit, floor, rooms, view, daily EGP, monthly EGP, owner index)
APARTMENTS = [
    ("A-101", 1, 2, "Sea View", Decimal("1800"), Decimal("42000"), 0),
    ("A-102", 1, 1, "Garden View", Decimal("1100"), Decimal("26000"), 0),
    ("B-201", 2, 3, "Sea View", Decimal("2600"), Decimal("60000"), 1),
    ("B-202", 2, 2, "Pool View", Decimal("1500"), Decimal("0"), 1),
    ("C-301", 3, 2, "Street View", Decimal("950"), Decimal("22000"), None),
    ("C-302", 3, 1, "Pool View", Decimal("1000"), Decimal("0"), None),
]

CUSTOMERS = [
    {"name": "Ahmed Hassan", "phone": "+201112223334", "email": "ahmed.hassan@example.com", "nationality": "Egyptian"},
    {"name": "Sara Nabil", "phone": "+201223334445", "email": "sara.nabil@example.com", "nationality": "Egyptian"},
    {"name": "Lukas Brandt", "phone": "+4915112345678", "email": "lukas.brandt@example.de", "nationality": "German"},
    {"name": "Olivia Carter", "phone": "+447700900123", "email": "olivia.carter@example.co.uk", "nationality": "British"},
    {"name": "Youssef Adel", "phone": "+201009998887", "email": None, "nationality": "Egyptian"},
]


def _build_bookings(today: date) -> list[dict]:
    """Bookings relative to today, so the dashboard always has something to show."""
    return [
        # Past, fully paid, checked out
        {"unit": "A-101", "guest": 0, "start": today - timedelta(days=20), "nights": 5,
         "status": "checked_out", "paid": "full", "platform": "Booking.com", "commission": "450"},
        # In house now
        {"unit": "B-201", "guest": 2, "start": today - timedelta(days=2), "nights": 6,
         "status": "stay", "paid": Decimal("8000"), "platform": "Airbnb",
         "catalog": ["Standard Cleaning", "Airport Transfer"]},
        # Arrives today, partially paid, extra service ordered
        {"unit": "A-102", "guest": 1, "start": today, "nights": 3,
         "status": "confirmed", "paid": Decimal("1000"), "platform": "WhatsApp",
         "extras": [{"name": "Fruit basket", "price": Decimal("150")}]},
        # Upcoming USD booking for a long stay (monthly tier)
        {"unit": "C-301", "guest": 3, "start": today + timedelta(days=7), "nights": 35,
         "status": "confirmed", "paid": Decimal("200"), "platform": "Direct", "currency": "USD",
         "commission": "20"},
        # Upcoming, unpaid, discounted
        {"unit": "B-202", "guest": 4, "start": today + timedelta(days=3), "nights": 4,
         "status": "pending", "paid": Decimal("0"), "platform": "Direct", "discount": Decimal("500")},
        # Maintenance block
        {"unit": "C-302", "guest": None, "start": today + timedelta(days=1), "nights": 2,
         "status": "maintenance"},
    ]


# ---------------------------------------------------------------------------
# Main seed function
# ---------------------------------------------------------------------------


async def seed() -> None:
    """Populate the database with sample Bahia data.

    Idempotent: demo units, owners, guests and their bookings are deleted and
    re-created on every run. Staff accounts and the catalog are left alone.
    """
    await create_all()

    async with async_session_factory() as session:
        await bootstrap(session)

        unit_numbers = [row[0] for row in APARTMENTS]
        existing = (await session.execute(select(Apartment.id).where(Apartment.unit_number.in_(unit_numbers)))).scalars().all()
        if existing:
            print("⚠️  Demo units already exist. Deleting and re-seeding...")
            await session.execute(delete(Booking).where(Booking.apartment_id.in_(existing)))
            await session.execute(delete(Expense).where(Expense.apartment_id.in_(existing)))
            await session.execute(delete(Apartment).where(Apartment.id.in_(existing)))
        await session.execute(delete(Owner).where(Owner.name.in_([o["name"] for o in OWNERS])))
        await session.execute(delete(Customer).where(Customer.phone.in_([c["phone"] for c in CUSTOMERS])))
        await session.flush()

        admin = (await session.execute(select(User).where(User.role == "admin").limit(1))).scalar_one()
        catalog = {s.name: s for s in (await session.execute(select(CatalogService))).scalars().all()}

        # ------------------------------------------------------------------
        # 1. Owners and units
        # ------------------------------------------------------------------
        owners = [Owner(**data) for data in OWNERS]
        session.add_all(owners)
        await session.flush()

        apartments: dict[str, Apartment] = {}
        for unit, floor, rooms, view, daily, monthly, owner_index in APARTMENTS:
            apartment = Apartment(
                unit_number=unit,
                floor=floor,
                rooms=rooms,
                view=view,
                daily_price=daily,
                monthly_price=monthly,
                status="active",
                owner_id=owners[owner_index].id if owner_index is not None else None,
            )
            session.add(apartment)
            apartments[unit] = apartment
        await session.flush()
        print(f"✅ Created {len(owners)} owners and {len(apartments)} units")

        # ------------------------------------------------------------------
        # 2. Guests
        # ------------------------------------------------------------------
        customers = [Customer(**data) for data in CUSTOMERS]
        session.add_all(customers)
        await session.flush()
        print(f"✅ Created {len(customers)} guests")

        # ------------------------------------------------------------------
        # 3. Bookings
        # ------------------------------------------------------------------
        for data in _build_bookings(date.today()):
            apartment = apartments[data["unit"]]
            settled = data.get("paid") == "full"
            body = BookingCreate(
                apartment_id=apartment.id,
                customer_id=customers[data["guest"]].id if data["guest"] is not None else None,
                start_date=data["start"],
                end_date=data["start"] + timedelta(days=data["nights"]),
                status=CONFIRMED if data["status"] == CHECKED_OUT else data["status"],
                platform=data.get("platform", "Direct"),
                currency=data.get("currency", "EGP"),
                discount=data.get("discount", Decimal("0")),
                paid_amount=Decimal("0") if settled else data.get("paid", Decimal("0")),
                commission_amount=Decimal(data.get("commission", "0")),
                services=[catalog[name].id for name in data.get("catalog", []) if name in catalog],
                extra_services=[StayServiceCreate(**extra) for extra in data.get("extras", [])],
            )
            booking = await create_booking(session, body, admin)
            if settled:
                booking = await settle_booking(session, booking)
            if data["status"] == CHECKED_OUT:
                booking.status = CHECKED_OUT
                await session.flush()

            print(
                f"   📅 {booking.display_id} {apartment.unit_number} "
                f"{booking.start_date}→{booking.end_date} {booking.total_amount} {booking.currency} "
                f"({booking.payment_status})"
            )

        # ------------------------------------------------------------------
        # 4. Expenses
        # ------------------------------------------------------------------
        session.add_all(
            [
                Expense(date=date.today() - timedelta(days=5), apartment_id=apartments["C-302"].id,
                        category="maintenance", description="AC compressor replacement", amount=Decimal("4200")),
                Expense(date=date.today() - timedelta(days=3), apartment_id=None,
                        category="utility", description="Building electricity", amount=Decimal("6100")),
            ]
        )
        await session.commit()

        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        print(f"   Owners:    {len(owners)}")
        print(f"   Units:     {len(apartments)}")
        print(f"   Guests:    {len(customers)}")
        print(f"   Bookings:  {len(_build_bookings(date.today()))}")
        print("=" * 60)
        print(f"🎉 Done! Log in as {admin.username!r} at /api/v1/auth/login")


if __name__ == "__main__":
    asyncio.run(seed())
