"""Booking service: compute-then-commit persistence around the pricing engine.

Routers hand a validated request and a session to these functions; the
functions load the rate card and catalog, run the engine, write the derived
fields back onto the ORM row and flush. They never commit: ``get_db`` owns the
transaction.
"""

import logging
import secrets
import string
import uuid
from dataclasses import asdict, replace
from datetime import date, datetime, timedelta
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.apartment import Apartment
from app.models.booking import Booking, StayService
from app.models.catalog_service import CatalogService
from app.models.customer import Customer
from app.models.user import User
from app.pricing.currency import convert_from_egp, convert_to_egp, round2, to_money
from app.pricing.engine import (
    AdHocService,
    BookingDraft,
    CatalogItem,
    FinanceResult,
    RateCard,
    compute_finance,
    is_overpaid,
    materialize_catalog_selections,
)
from app.pricing.status import CANCELLED, CONFIRMED, MAINTENANCE, PENDING, STAY, advance_status
from app.schemas.booking import BookingCreate, BookingQuoteRequest, BookingUpdate, StayServiceCreate

logger = logging.getLogger(__name__)

DISPLAY_ID_PREFIX = "BH-"
_DISPLAY_ID_ALPHABET = string.ascii_uppercase + string.digits
_DISPLAY_ID_ATTEMPTS = 20

# Fields a partial update may clear by sending null.
_NULLABLE_FIELDS = frozenset({"customer_id", "receptionist_name", "notes"})

# Folio amounts held in the booking currency, re-expressed when it changes.
_CURRENCY_FIELDS = ("discount", "paid_amount", "commission_amount")


# ---------------------------------------------------------------------------
# ORM <-> engine adapters
# ---------------------------------------------------------------------------


def current_usd_rate() -> Decimal:
    """The configured EGP-per-USD rate as a Decimal."""
    return to_money(settings.usd_to_egp_rate)


def rate_card_for(apartment: Apartment | None) -> RateCard | None:
    if apartment is None:
        return None
    return RateCard(daily_price=to_money(apartment.daily_price), monthly_price=to_money(apartment.monthly_price))


def booking_usd_rate(booking: Booking) -> Decimal:
    """The EGP-per-USD rate a booking was committed at; today's rate if it has none yet."""
    if booking.exchange_rate is None:
        return current_usd_rate()
    return to_money(booking.exchange_rate)


def booking_rate_card(booking: Booking, apartment: Apartment | None) -> RateCard | None:
    """The rate card captured on the booking, or the unit's current one before capture."""
    if booking.daily_rate is None:
        return rate_card_for(apartment)
    return RateCard(daily_price=to_money(booking.daily_rate), monthly_price=to_money(booking.monthly_rate))


def catalog_item(service: CatalogService) -> CatalogItem:
    return CatalogItem(id=str(service.id), name=service.name, price=to_money(service.price), is_free=service.is_free)


async def load_catalog(db: AsyncSession) -> list[CatalogItem]:
    """Read the whole service catalog into engine items."""
    result = await db.execute(select(CatalogService).order_by(CatalogService.name))
    return [catalog_item(s) for s in result.scalars().all()]


def ad_hoc_from_stay_service(service: StayService) -> AdHocService:
    return AdHocService(
        id=str(service.id),
        name=service.name,
        price=to_money(service.price),
        source_service_id=service.source_service_id,
        date=service.date,
        payment_method=service.payment_method or "Cash",
        is_paid=bool(service.is_paid),
        is_fulfilled=bool(service.is_fulfilled),
    )


def draft_from_booking(booking: Booking) -> BookingDraft:
    """Snapshot a persisted (or pending) booking as engine input."""
    return BookingDraft(
        start_date=booking.start_date,
        end_date=booking.end_date,
        currency=booking.currency,
        discount=to_money(booking.discount),
        paid_amount=to_money(booking.paid_amount),
        selected_catalog_service_ids=frozenset(str(sid) for sid in (booking.services or [])),
        ad_hoc_services=tuple(ad_hoc_from_stay_service(s) for s in booking.extra_services),
        status=booking.status,
        payment_method=booking.payment_method,
        commission_amount=to_money(booking.commission_amount),
        commission_paid=bool(booking.commission_paid),
    )


def draft_from_quote(body: BookingQuoteRequest) -> BookingDraft:
    """Build engine input from an unsaved booking form."""
    return BookingDraft(
        start_date=body.start_date,
        end_date=body.end_date,
        currency=body.currency,
        discount=body.discount,
        paid_amount=body.paid_amount,
        selected_catalog_service_ids=frozenset(str(sid) for sid in body.services),
        ad_hoc_services=tuple(
            AdHocService(
                id=f"draft-{index}",
                name=item.name,
                price=item.price,
                source_service_id=str(item.source_service_id) if item.source_service_id else None,
                is_paid=item.is_paid,
            )
            for index, item in enumerate(body.extra_services)
        ),
        status=body.status,
    )


def finance_payload(draft: BookingDraft, finance: FinanceResult) -> dict:
    """Flatten a FinanceResult for ``FinanceResponse``."""
    payload = asdict(finance)
    payload.pop("catalog_breakdown", None)
    payload["is_overpaid"] = is_overpaid(draft, finance)
    return payload


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_booking_or_404(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if booking is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


async def get_apartment_or_404(db: AsyncSession, apartment_id: uuid.UUID) -> Apartment:
    apartment = await db.get(Apartment, apartment_id)
    if apartment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Apartment not found")
    return apartment


async def _ensure_customer_exists(db: AsyncSession, customer_id: uuid.UUID) -> None:
    if await db.get(Customer, customer_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")


async def generate_display_id(db: AsyncSession) -> str:
    """Allocate a short human-facing reference such as ``BH-7K2Q``."""
    for _ in range(_DISPLAY_ID_ATTEMPTS):
        candidate = DISPLAY_ID_PREFIX + "".join(secrets.choice(_DISPLAY_ID_ALPHABET) for _ in range(4))
        taken = await db.scalar(select(Booking.id).where(Booking.display_id == candidate))
        if taken is None:
            return candidate
    raise RuntimeError("Could not allocate a unique booking reference")


async def check_date_conflict(
    db: AsyncSession,
    apartment_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_booking_id: uuid.UUID | None = None,
) -> None:
    """Raise 409 if the range overlaps a non-cancelled booking on the same unit.

    A same-day booking occupies its start date, i.e. it ends the next day.
    """
    effective_end = end_date if end_date > start_date else start_date + timedelta(days=1)
    query = select(Booking).where(
        Booking.apartment_id == apartment_id,
        Booking.status != CANCELLED,
        Booking.start_date < effective_end,
        or_(
            Booking.end_date > start_date,
            and_(Booking.end_date == Booking.start_date, Booking.start_date == start_date),
        ),
    )
    if exclude_booking_id is not None:
        query = query.where(Booking.id != exclude_booking_id)

    result = await db.execute(query.limit(1))
    clash = result.scalar_one_or_none()
    if clash is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Dates conflict with booking {clash.display_id}",
        )


# ---------------------------------------------------------------------------
# Stay services
# ---------------------------------------------------------------------------


async def build_stay_service(
    db: AsyncSession,
    body: StayServiceCreate,
    currency: str,
    rate: Decimal | None = None,
) -> StayService:
    """Turn a request into a StayService priced in the booking currency.

    Catalog copies default to the catalog name and converted price; an explicit
    ``name``/``price`` on the request overrides them.
    """
    name = body.name
    price = body.price
    source_id: str | None = None

    if body.source_service_id is not None:
        template = await db.get(CatalogService, body.source_service_id)
        if template is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
        source_id = str(template.id)
        name = name or template.name
        if price is None:
            price = round2(convert_from_egp(to_money(template.price), currency, rate or current_usd_rate()))

    return StayService(
        source_service_id=source_id,
        name=name,
        price=to_money(price),
        date=body.date or date.today(),
        payment_method=body.payment_method,
        is_paid=body.is_paid,
        is_fulfilled=False,
    )


def convert_folio_currency(booking: Booking, currency: str, keep: frozenset[str] = frozenset()) -> None:
    """Re-express the booking's money in ``currency`` at the booking's own rate.

    Stay-service prices, discount, payment and commission are converted and
    rounded to cents. Fields named in ``keep`` are left alone because the
    caller is about to set them in the new currency.
    """
    rate = booking_usd_rate(booking)

    def convert(amount: Decimal | None) -> Decimal:
        return round2(convert_from_egp(convert_to_egp(to_money(amount), booking.currency, rate), currency, rate))

    for field in _CURRENCY_FIELDS:
        if field not in keep:
            setattr(booking, field, convert(getattr(booking, field)))
    for service in booking.extra_services:
        service.price = convert(service.price)

    logger.info("Booking %s converted from %s to %s at %s", booking.display_id, booking.currency, currency, rate)
    booking.currency = currency


def _find_stay_service(booking: Booking, service_id: uuid.UUID) -> StayService:
    for service in booking.extra_services:
        if service.id == service_id:
            return service
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Stay service not found")


# ---------------------------------------------------------------------------
# Finance
# ---------------------------------------------------------------------------


async def quote(db: AsyncSession, body: BookingQuoteRequest) -> dict:
    """Price an uncommitted draft. Unknown apartments price as 'no unit yet'."""
    apartment = await db.get(Apartment, body.apartment_id) if body.apartment_id else None
    draft = draft_from_quote(body)
    finance = compute_finance(draft, rate_card_for(apartment), await load_catalog(db), current_usd_rate())
    return finance_payload(draft, finance)


async def folio(db: AsyncSession, booking: Booking) -> dict:
    """Recompute a saved booking's figures without writing anything."""
    apartment = await db.get(Apartment, booking.apartment_id) if booking.daily_rate is None else None
    draft = draft_from_booking(booking)
    finance = compute_finance(
        draft, booking_rate_card(booking, apartment), await load_catalog(db), booking_usd_rate(booking)
    )
    return finance_payload(draft, finance)


async def apply_finance(
    db: AsyncSession,
    booking: Booking,
    apartment: Apartment | None = None,
) -> FinanceResult:
    """Re-derive and store a booking's financial fields.

    Prices with the booking's captured rate card and exchange rate (capturing
    them from ``apartment`` and the settings on first commit). Newly selected
    catalog services are snapshotted as stay services at their rounded price,
    and the total stored is the one computed from those snapshots. A payment
    above that total is rejected with 422 before anything is written, except
    on a cancelled booking, which is never blocked from being cancelled.
    """
    rate = booking_usd_rate(booking)
    if apartment is None and booking.daily_rate is None:
        apartment = await db.get(Apartment, booking.apartment_id)
    card = booking_rate_card(booking, apartment)
    catalog = await load_catalog(db)

    draft = draft_from_booking(booking)
    finance = compute_finance(draft, card, catalog, rate)
    snapshots = materialize_catalog_selections(draft, catalog, finance, rate)
    if snapshots:
        finance = compute_finance(
            replace(draft, ad_hoc_services=draft.ad_hoc_services + tuple(snapshots)), card, catalog, rate
        )
        settled = draft.paid_amount >= finance.total
        snapshots = [replace(snapshot, is_paid=settled) for snapshot in snapshots]

    if booking.status != CANCELLED and is_overpaid(draft, finance):
        logger.info(
            "Rejected overpaid booking %s: paid %s > total %s %s",
            booking.display_id,
            draft.paid_amount,
            finance.total,
            finance.currency,
        )
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=(
                f"Paid amount {draft.paid_amount} exceeds the booking total "
                f"{finance.total} {finance.currency}"
            ),
        )

    for snapshot in snapshots:
        booking.extra_services.append(
            StayService(
                id=uuid.UUID(snapshot.id),
                source_service_id=snapshot.source_service_id,
                name=snapshot.name,
                price=snapshot.price,
                date=snapshot.date,
                payment_method=snapshot.payment_method,
                is_paid=snapshot.is_paid,
                is_fulfilled=snapshot.is_fulfilled,
            )
        )

    if card is not None and booking.daily_rate is None:
        booking.daily_rate = card.daily_price
        booking.monthly_rate = card.monthly_price
    booking.total_amount = finance.total
    booking.payment_status = finance.payment_status
    booking.exchange_rate = rate

    if finance.total < 0:
        logger.warning(
            "Booking %s has a negative total %s %s (discount exceeds charges)",
            booking.display_id,
            finance.total,
            finance.currency,
        )
    return finance


async def _refreshed(db: AsyncSession, booking: Booking) -> Booking:
    await db.flush()
    await db.refresh(booking)
    return booking


# ---------------------------------------------------------------------------
# Commit operations
# ---------------------------------------------------------------------------


async def create_booking(db: AsyncSession, body: BookingCreate, user: User) -> Booking:
    """Validate references, create an inline customer if given, price and persist."""
    apartment = await get_apartment_or_404(db, body.apartment_id)

    customer_id = body.customer_id
    if customer_id is not None:
        await _ensure_customer_exists(db, customer_id)
    elif body.new_customer is not None:
        customer = Customer(**body.new_customer.model_dump())
        db.add(customer)
        await db.flush()
        customer_id = customer.id
        logger.info("Created customer %s from booking form", customer.id)

    await check_date_conflict(db, apartment.id, body.start_date, body.end_date)

    extra_services = [await build_stay_service(db, item, body.currency) for item in body.extra_services]

    booking = Booking(
        display_id=await generate_display_id(db),
        apartment_id=apartment.id,
        customer_id=customer_id,
        start_date=body.start_date,
        end_date=body.end_date,
        check_in_time=body.check_in_time,
        check_out_time=body.check_out_time,
        booking_date=date.today(),
        receptionist_name=body.receptionist_name or user.name,
        platform=body.platform,
        payment_method=body.payment_method,
        currency=body.currency,
        status=body.status,
        services=[str(sid) for sid in body.services],
        discount=body.discount,
        paid_amount=body.paid_amount,
        commission_amount=body.commission_amount,
        commission_paid=body.commission_paid,
        notes=body.notes,
        extra_services=extra_services,
    )
    finance = await apply_finance(db, booking, apartment)

    db.add(booking)
    booking = await _refreshed(db, booking)
    logger.info(
        "Booking %s saved on unit %s: %s night(s), total %s %s, %s",
        booking.display_id,
        apartment.unit_number,
        finance.nights,
        finance.total,
        finance.currency,
        finance.payment_status,
    )
    return booking


async def update_booking(db: AsyncSession, booking: Booking, body: BookingUpdate) -> Booking:
    """Apply a partial update and re-run the full derivation.

    A new ``services`` selection replaces the old one; snapshots of deselected
    catalog services are dropped unless already paid or fulfilled.
    ``extra_services`` entries are appended.
    """
    update_data = body.model_dump(exclude_unset=True)
    selected = update_data.pop("services", None)
    extra = update_data.pop("extra_services", None)

    apartment = None
    if "apartment_id" in update_data and update_data["apartment_id"] != booking.apartment_id:
        if update_data["apartment_id"] is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_CONTENT, detail="apartment_id cannot be empty")
        apartment = await get_apartment_or_404(db, update_data["apartment_id"])

    if update_data.get("customer_id") is not None and update_data["customer_id"] != booking.customer_id:
        await _ensure_customer_exists(db, update_data["customer_id"])

    effective_start = update_data.get("start_date") or booking.start_date
    effective_end = update_data.get("end_date") or booking.end_date
    effective_apartment = update_data.get("apartment_id") or booking.apartment_id
    effective_status = update_data.get("status") or booking.status

    if effective_end < effective_start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="end_date must not be before start_date",
        )

    moved = (
        "start_date" in update_data
        or "end_date" in update_data
        or effective_apartment != booking.apartment_id
        or (booking.status == CANCELLED and effective_status != CANCELLED)
    )
    if moved and effective_status != CANCELLED:
        await check_date_conflict(
            db,
            effective_apartment,
            effective_start,
            effective_end,
            exclude_booking_id=booking.id,
        )

    currency = update_data.get("currency") or booking.currency
    new_services = [
        await build_stay_service(db, item, currency, booking_usd_rate(booking)) for item in (extra or [])
    ]

    if currency != booking.currency:
        convert_folio_currency(booking, currency, keep=frozenset(update_data) & frozenset(_CURRENCY_FIELDS))
    if apartment is not None:
        # A new unit brings its own prices.
        booking.daily_rate = None
        booking.monthly_rate = None

    for field, value in update_data.items():
        if value is None and field not in _NULLABLE_FIELDS:
            continue
        setattr(booking, field, value)

    if selected is not None:
        selection = [str(sid) for sid in selected]
        dropped = set(booking.services or []) - set(selection)
        for service in list(booking.extra_services):
            if service.source_service_id in dropped and not service.is_paid and not service.is_fulfilled:
                booking.extra_services.remove(service)
        booking.services = selection

    booking.extra_services.extend(new_services)

    await apply_finance(db, booking, apartment)
    booking = await _refreshed(db, booking)
    logger.info("Booking %s updated: total %s %s, %s", booking.display_id, booking.total_amount, booking.currency, booking.payment_status)
    return booking


async def cancel_booking(db: AsyncSession, booking: Booking) -> Booking:
    booking.status = CANCELLED
    await apply_finance(db, booking)
    logger.info("Booking %s cancelled", booking.display_id)
    return await _refreshed(db, booking)


async def settle_booking(db: AsyncSession, booking: Booking) -> Booking:
    """Record full payment of the outstanding balance."""
    await apply_finance(db, booking)
    if booking.status != MAINTENANCE and to_money(booking.total_amount) > to_money(booking.paid_amount):
        booking.paid_amount = booking.total_amount
        await apply_finance(db, booking)
    logger.info("Booking %s settled at %s %s", booking.display_id, booking.paid_amount, booking.currency)
    return await _refreshed(db, booking)


async def add_stay_service(db: AsyncSession, booking: Booking, body: StayServiceCreate) -> Booking:
    """Attach an extra service; a service paid on the spot also raises ``paid_amount``."""
    if booking.status == MAINTENANCE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Maintenance blocks cannot carry services",
        )
    service = await build_stay_service(db, body, booking.currency, booking_usd_rate(booking))
    booking.extra_services.append(service)
    if service.is_paid:
        booking.paid_amount = to_money(booking.paid_amount) + to_money(service.price)
    await apply_finance(db, booking)
    logger.info("Added %s (%s %s) to booking %s", service.name, service.price, booking.currency, booking.display_id)
    return await _refreshed(db, booking)


async def fulfil_stay_service(db: AsyncSession, booking: Booking, service_id: uuid.UUID) -> Booking:
    service = _find_stay_service(booking, service_id)
    service.is_fulfilled = True
    logger.info("Service %s delivered on booking %s", service.name, booking.display_id)
    return await _refreshed(db, booking)


async def remove_stay_service(db: AsyncSession, booking: Booking, service_id: uuid.UUID) -> Booking:
    """Delete a service record; a paid one is refunded from ``paid_amount``."""
    service = _find_stay_service(booking, service_id)
    if service.is_paid:
        booking.paid_amount = max(to_money(booking.paid_amount) - to_money(service.price), to_money(0))
    if service.source_service_id in set(booking.services or []):
        booking.services = [sid for sid in booking.services if sid != service.source_service_id]
    booking.extra_services.remove(service)
    await apply_finance(db, booking)
    logger.info("Removed service %s from booking %s", service.name, booking.display_id)
    return await _refreshed(db, booking)


# ---------------------------------------------------------------------------
# Status automation
# ---------------------------------------------------------------------------


async def run_auto_status(db: AsyncSession, now: datetime | None = None) -> list[dict]:
    """Move every active booking as far along as the clock allows."""
    now = now or datetime.now()
    result = await db.execute(select(Booking).where(Booking.status.in_((PENDING, CONFIRMED, STAY))))

    transitions: list[dict] = []
    for booking in result.scalars().all():
        previous = booking.status
        current = previous
        while True:
            following = advance_status(
                current,
                booking.start_date,
                booking.end_date,
                now,
                booking.check_in_time,
                booking.check_out_time,
            )
            if following == current:
                break
            current = following

        if current != previous:
            booking.status = current
            transitions.append(
                {
                    "booking_id": booking.id,
                    "display_id": booking.display_id,
                    "from_status": previous,
                    "to_status": current,
                }
            )
            logger.info("Auto-status: %s %s -> %s", booking.display_id, previous, current)

    await db.flush()
    return transitions


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


async def calendar(db: AsyncSession, window_start: date, window_end: date) -> list[dict]:
    """Non-cancelled bookings touching the window, grouped per apartment."""
    apartments = (await db.execute(select(Apartment).order_by(Apartment.unit_number))).scalars().all()
    result = await db.execute(
        select(Booking)
        .where(
            Booking.status != CANCELLED,
            Booking.start_date <= window_end,
            Booking.end_date >= window_start,
        )
        .order_by(Booking.start_date)
    )
    by_apartment: dict[uuid.UUID, list[Booking]] = {}
    for booking in result.scalars().all():
        by_apartment.setdefault(booking.apartment_id, []).append(booking)

    return [
        {
            "apartment_id": apartment.id,
            "unit_number": apartment.unit_number,
            "bookings": by_apartment.get(apartment.id, []),
        }
        for apartment in apartments
    ]
