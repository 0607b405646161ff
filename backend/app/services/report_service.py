"""Report service: dashboard figures, the finance report and the commission ledger.

Booking amounts are converted to EGP with the exchange rate stored on the
booking at its last commit; expenses (which carry no rate) use the current
configured rate.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.apartment import Apartment
from app.models.booking import Booking
from app.models.customer import Customer
from app.models.expense import Expense
from app.pricing.currency import EGP, USD, ZERO, convert_to_egp, round2, to_money
from app.pricing.status import CONFIRMED, NON_REVENUE_STATUSES, STAY
from app.services.booking_service import current_usd_rate

logger = logging.getLogger(__name__)

PLATFORMS: tuple[str, ...] = ("None", "Direct", "Booking.com", "Airbnb", "Agoda", "Expedia", "WhatsApp")
PAYMENT_METHODS: tuple[str, ...] = ("Cash", "Bank Transfer", "Credit Card", "Vodafone Cash")

_EXCLUDED_STATUSES = tuple(sorted(NON_REVENUE_STATUSES))


def booking_amount_egp(booking: Booking, amount: Decimal) -> Decimal:
    """Convert an amount held in the booking's currency using its stored rate."""
    rate = to_money(booking.exchange_rate) or current_usd_rate()
    return convert_to_egp(to_money(amount), booking.currency, rate)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def dashboard(db: AsyncSession, today: date | None = None) -> dict:
    """Occupancy, today's movements, units under maintenance and open service orders."""
    today = today or date.today()

    apartments = list((await db.execute(select(Apartment))).scalars().all())
    units = {a.id: a.unit_number for a in apartments}
    total_units = len(apartments)

    occupied = await db.scalar(select(func.count()).select_from(Booking).where(Booking.status == STAY))
    arrivals = await db.scalar(
        select(func.count())
        .select_from(Booking)
        .where(Booking.start_date == today, Booking.status.not_in(_EXCLUDED_STATUSES))
    )
    departures = await db.scalar(
        select(func.count())
        .select_from(Booking)
        .where(Booking.end_date == today, Booking.status.not_in(_EXCLUDED_STATUSES))
    )
    in_maintenance = sum(1 for a in apartments if a.status == "maintenance")

    occupancy_rate = round2(to_money(occupied or 0) / to_money(max(total_units, 1)) * 100)

    recent = (
        await db.execute(select(Booking).order_by(Booking.start_date.desc(), Booking.created_at.desc()).limit(6))
    ).scalars().all()

    active = (await db.execute(select(Booking).where(Booking.status.in_((STAY, CONFIRMED))))).scalars().all()
    customer_ids = {b.customer_id for b in active if b.customer_id is not None}
    names: dict = {}
    if customer_ids:
        rows = await db.execute(select(Customer.id, Customer.name).where(Customer.id.in_(customer_ids)))
        names = dict(rows.all())

    pending_services = [
        {
            "booking_id": booking.id,
            "service_id": service.id,
            "unit_number": units.get(booking.apartment_id, "?"),
            "customer_name": names.get(booking.customer_id),
            "name": service.name,
            "price": service.price,
            "currency": booking.currency,
            "is_paid": service.is_paid,
        }
        for booking in active
        for service in booking.extra_services
        if not service.is_fulfilled
    ]

    return {
        "today": today,
        "total_units": total_units,
        "occupied_units": occupied or 0,
        "occupancy_rate": occupancy_rate,
        "arrivals_today": arrivals or 0,
        "departures_today": departures or 0,
        "units_in_maintenance": in_maintenance,
        "usd_to_egp_rate": current_usd_rate(),
        "recent_bookings": list(recent),
        "pending_services": pending_services,
    }


# ---------------------------------------------------------------------------
# Finance report
# ---------------------------------------------------------------------------


async def finance_report(db: AsyncSession, period_start: date, period_end: date) -> dict:
    """Revenue by unit and channel, treasury by payment method, and expenses.

    Bookings count when they start inside the period; cancelled bookings and
    maintenance blocks are left out. Unit stay revenue is the booking total
    minus its service charges, floored at zero.
    """
    apartments = list((await db.execute(select(Apartment).order_by(Apartment.unit_number))).scalars().all())
    unit_stats = {
        a.id: {
            "apartment_id": a.id,
            "unit_number": a.unit_number,
            "bookings": 0,
            "nights": 0,
            "stay_revenue_egp": ZERO,
            "expenses_egp": ZERO,
        }
        for a in apartments
    }
    channels = {p: {"platform": p, "bookings": 0, "revenue_egp": ZERO} for p in PLATFORMS}
    treasury = {m: {"payment_method": m, "egp": ZERO, "usd": ZERO} for m in PAYMENT_METHODS}

    bookings = (
        await db.execute(
            select(Booking).where(
                Booking.start_date >= period_start,
                Booking.start_date <= period_end,
                Booking.status.not_in(_EXCLUDED_STATUSES),
            )
        )
    ).scalars().all()

    revenue = ZERO
    for booking in bookings:
        total_egp = booking_amount_egp(booking, booking.total_amount)
        services_egp = booking_amount_egp(booking, sum((to_money(s.price) for s in booking.extra_services), ZERO))
        revenue += total_egp

        unit = unit_stats.get(booking.apartment_id)
        if unit is not None:
            unit["bookings"] += 1
            unit["nights"] += booking.nights
            unit["stay_revenue_egp"] += max(ZERO, total_egp - services_egp)

        channel = channels.setdefault(booking.platform, {"platform": booking.platform, "bookings": 0, "revenue_egp": ZERO})
        channel["bookings"] += 1
        channel["revenue_egp"] += total_egp

        till = treasury.setdefault(
            booking.payment_method,
            {"payment_method": booking.payment_method, "egp": ZERO, "usd": ZERO},
        )
        if booking.currency == USD:
            till["usd"] += to_money(booking.paid_amount)
        else:
            till["egp"] += to_money(booking.paid_amount)

    expenses = (
        await db.execute(select(Expense).where(Expense.date >= period_start, Expense.date <= period_end))
    ).scalars().all()
    rate = current_usd_rate()
    expense_total = ZERO
    for expense in expenses:
        amount_egp = convert_to_egp(to_money(expense.amount), expense.currency, rate)
        expense_total += amount_egp
        if expense.apartment_id in unit_stats:
            unit_stats[expense.apartment_id]["expenses_egp"] += amount_egp

    for unit in unit_stats.values():
        unit["stay_revenue_egp"] = round2(unit["stay_revenue_egp"])
        unit["expenses_egp"] = round2(unit["expenses_egp"])
    for channel in channels.values():
        channel["revenue_egp"] = round2(channel["revenue_egp"])
    for till in treasury.values():
        till["egp"] = round2(till["egp"])
        till["usd"] = round2(till["usd"])

    logger.info(
        "Finance report %s..%s: %d booking(s), %d expense(s)",
        period_start,
        period_end,
        len(bookings),
        len(expenses),
    )
    return {
        "period_start": period_start,
        "period_end": period_end,
        "units": list(unit_stats.values()),
        "channels": list(channels.values()),
        "treasury": list(treasury.values()),
        "revenue_egp": round2(revenue),
        "expenses_egp": round2(expense_total),
        "net_egp": round2(revenue - expense_total),
    }


# ---------------------------------------------------------------------------
# Commissions
# ---------------------------------------------------------------------------


async def commission_ledger(db: AsyncSession, paid: bool | None = None) -> dict:
    """Bookings owing a sales commission, with per-currency totals.

    Totals always cover the whole ledger; ``paid`` only filters the items.
    """
    result = await db.execute(
        select(Booking, Apartment.unit_number, Customer.name)
        .join(Apartment, Booking.apartment_id == Apartment.id)
        .outerjoin(Customer, Booking.customer_id == Customer.id)
        .where(Booking.commission_amount > 0, Booking.status.not_in(_EXCLUDED_STATUSES))
        .order_by(Booking.start_date.desc())
    )

    totals: dict[str, dict[str, Decimal]] = defaultdict(lambda: {"total": ZERO, "paid": ZERO})
    items = []
    for booking, unit_number, customer_name in result.all():
        amount = to_money(booking.commission_amount)
        bucket = totals[booking.currency]
        bucket["total"] += amount
        if booking.commission_paid:
            bucket["paid"] += amount

        if paid is not None and booking.commission_paid != paid:
            continue
        items.append(
            {
                "booking_id": booking.id,
                "display_id": booking.display_id,
                "unit_number": unit_number,
                "customer_name": customer_name,
                "receptionist_name": booking.receptionist_name,
                "start_date": booking.start_date,
                "end_date": booking.end_date,
                "currency": booking.currency,
                "commission_amount": amount,
                "commission_paid": booking.commission_paid,
            }
        )

    egp = totals[EGP]
    usd = totals[USD]
    return {
        "items": items,
        "totals": {
            "total_egp": round2(egp["total"]),
            "paid_egp": round2(egp["paid"]),
            "unpaid_egp": round2(egp["total"] - egp["paid"]),
            "total_usd": round2(usd["total"]),
            "paid_usd": round2(usd["paid"]),
            "unpaid_usd": round2(usd["total"] - usd["paid"]),
        },
    }
