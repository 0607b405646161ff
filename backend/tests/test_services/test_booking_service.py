"""Tests for booking_service functions called directly against the session."""

from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.apartment import Apartment
from app.models.booking import Booking, StayService
from app.models.catalog_service import CatalogService
from app.services import booking_service

pytestmark = pytest.mark.asyncio


async def _apartment(db: AsyncSession, unit_number: str = "A-101") -> Apartment:
    apartment = Apartment(unit_number=unit_number, daily_price=Decimal("1000"), monthly_price=Decimal("0"))
    db.add(apartment)
    await db.flush()
    return apartment


async def _booking(db: AsyncSession, apartment: Apartment, start: date, end: date, **fields) -> Booking:
    booking = Booking(
        display_id=await booking_service.generate_display_id(db),
        apartment_id=apartment.id,
        start_date=start,
        end_date=end,
        services=[],
        **fields,
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)
    return booking


class TestDisplayId:
    async def test_format_and_uniqueness(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        first = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 2))
        second_id = await booking_service.generate_display_id(db_session)
        assert first.display_id.startswith("BH-")
        assert len(first.display_id) == 7
        assert second_id != first.display_id


class TestCheckDateConflict:
    async def test_excludes_itself(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 5))
        await booking_service.check_date_conflict(
            db_session, apartment.id, date(2030, 1, 2), date(2030, 1, 6), exclude_booking_id=booking.id
        )

    async def test_overlap_raises_409(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 5))
        with pytest.raises(HTTPException) as exc_info:
            await booking_service.check_date_conflict(db_session, apartment.id, date(2030, 1, 4), date(2030, 1, 8))
        assert exc_info.value.status_code == 409
        assert booking.display_id in exc_info.value.detail

    async def test_cancelled_ignored(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 5), status="cancelled")
        await booking_service.check_date_conflict(db_session, apartment.id, date(2030, 1, 2), date(2030, 1, 3))

    async def test_maintenance_blocks(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 5), status="maintenance")
        with pytest.raises(HTTPException):
            await booking_service.check_date_conflict(db_session, apartment.id, date(2030, 1, 2), date(2030, 1, 3))


class TestApplyFinance:
    async def test_stores_derived_fields(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(
            db_session, apartment, date(2030, 1, 1), date(2030, 1, 4), paid_amount=Decimal("1500")
        )
        finance = await booking_service.apply_finance(db_session, booking)
        assert finance.total == Decimal("3000.00")
        assert booking.total_amount == Decimal("3000.00")
        assert booking.payment_status == "Partial"
        assert booking.exchange_rate == Decimal("50")

    async def test_overpaid_raises_422(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(
            db_session, apartment, date(2030, 1, 1), date(2030, 1, 2), paid_amount=Decimal("1000.01")
        )
        with pytest.raises(HTTPException) as exc_info:
            await booking_service.apply_finance(db_session, booking)
        assert exc_info.value.status_code == 422

    async def test_materializes_once(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        cleaning = CatalogService(name="Standard Cleaning", price=Decimal("200"))
        db_session.add(cleaning)
        await db_session.flush()
        booking = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 2))
        booking.services = [str(cleaning.id)]

        await booking_service.apply_finance(db_session, booking)
        await booking_service.apply_finance(db_session, booking)

        assert len(booking.extra_services) == 1
        assert booking.total_amount == Decimal("1200.00")

    async def test_cancel_ignores_overpayment(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(
            db_session, apartment, date(2030, 1, 1), date(2030, 1, 2), paid_amount=Decimal("1200")
        )
        booking = await booking_service.cancel_booking(db_session, booking)
        assert booking.status == "cancelled"
        assert booking.total_amount == Decimal("1000.00")

    async def test_captures_rate_card_once(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 3))
        await booking_service.apply_finance(db_session, booking)
        assert booking.daily_rate == Decimal("1000")

        apartment.daily_price = Decimal("700")
        await db_session.flush()
        await booking_service.apply_finance(db_session, booking)
        assert booking.total_amount == Decimal("2000.00")

    async def test_negative_total_logged(self, db_session: AsyncSession, caplog) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 2), discount=Decimal("1500"))
        with caplog.at_level("WARNING", logger="app.services.booking_service"):
            await booking_service.apply_finance(db_session, booking)
        assert booking.total_amount == Decimal("-500.00")
        assert "negative total" in caplog.text


class TestRunAutoStatus:
    async def test_walks_to_final_status(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        past = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 3))
        current = await _booking(db_session, apartment, date(2030, 1, 10), date(2030, 1, 12))
        later = await _booking(db_session, apartment, date(2030, 1, 20), date(2030, 1, 22))
        blocked = await _booking(db_session, apartment, date(2030, 1, 4), date(2030, 1, 6), status="maintenance")

        transitions = await booking_service.run_auto_status(db_session, datetime(2030, 1, 10, 15, 0))

        assert past.status == "checked_out"
        assert current.status == "stay"
        assert later.status == "confirmed"
        assert blocked.status == "maintenance"
        assert {t["display_id"]: t["to_status"] for t in transitions} == {
            past.display_id: "checked_out",
            current.display_id: "stay",
        }

    async def test_respects_check_in_clock(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(
            db_session, apartment, date(2030, 1, 10), date(2030, 1, 12), check_in_time="16:00"
        )
        assert await booking_service.run_auto_status(db_session, datetime(2030, 1, 10, 15, 0)) == []
        assert booking.status == "confirmed"


class TestRemoveStayService:
    async def test_refund_floored_at_zero(self, db_session: AsyncSession) -> None:
        apartment = await _apartment(db_session)
        booking = await _booking(db_session, apartment, date(2030, 1, 1), date(2030, 1, 2), paid_amount=Decimal("50"))
        booking.extra_services.append(StayService(name="Minibar", price=Decimal("100"), is_paid=True))
        await db_session.flush()
        service_id = booking.extra_services[0].id

        booking = await booking_service.remove_stay_service(db_session, booking, service_id)
        assert booking.paid_amount == Decimal("0")
        assert booking.extra_services == []
