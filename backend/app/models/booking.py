"""Booking model: reservations, maintenance blocks, and their stay services."""

import datetime
import uuid
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.pricing.currency import round2, to_money
from app.pricing.engine import count_nights


class Booking(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A folio: one apartment, one guest, a date range and its money.

    ``total_amount`` and ``payment_status`` are derived by the pricing engine
    whenever the booking is saved; never write them directly. Re-derivation
    always prices with the booking's own ``daily_rate``/``monthly_rate`` and
    ``exchange_rate``, so later unit price or rate edits never move a saved folio.
    """

    __tablename__ = "bookings"

    display_id: Mapped[str] = mapped_column(String(16), unique=True, index=True)  # BH-XXXX
    apartment_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("apartments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    check_in_time: Mapped[str] = mapped_column(String(5), default="14:00")
    check_out_time: Mapped[str] = mapped_column(String(5), default="12:00")
    booking_date: Mapped[datetime.date] = mapped_column(Date, default=datetime.date.today)
    receptionist_name: Mapped[str | None] = mapped_column(String(255))
    platform: Mapped[str] = mapped_column(String(50), default="Direct")
    payment_method: Mapped[str] = mapped_column(String(50), default="Cash")
    currency: Mapped[str] = mapped_column(String(3), default="EGP")
    exchange_rate: Mapped[Decimal] = mapped_column(Numeric(10, 4), default=Decimal("50"))
    # Unit rate card (EGP) captured at commit; re-read only when the booking moves unit
    daily_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    monthly_rate: Mapped[Decimal | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(
        String(50),
        default="confirmed",
        index=True,
    )  # pending, confirmed, stay, checked_out, cancelled, maintenance

    # Catalog service ids picked on the booking form (stored as strings)
    services: Mapped[list] = mapped_column(JSON, default=list)

    discount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    paid_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    total_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    payment_status: Mapped[str] = mapped_column(String(20), default="Unpaid")
    commission_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    commission_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[str | None] = mapped_column(Text)

    # Relationships
    extra_services: Mapped[list["StayService"]] = relationship(
        back_populates="booking",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="StayService.created_at",
    )

    __table_args__ = (Index("ix_bookings_apartment_dates", "apartment_id", "start_date", "end_date"),)

    @property
    def nights(self) -> int:
        return count_nights(self.start_date, self.end_date) or 0

    @property
    def remaining(self) -> Decimal:
        """Balance still owed; negative when the folio is a credit."""
        return round2(to_money(self.total_amount) - to_money(self.paid_amount))

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, display_id={self.display_id}, apartment_id={self.apartment_id}, status={self.status})>"


class StayService(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """An extra service charged on one booking, priced in the booking's currency.

    ``source_service_id`` points at the catalog entry it was copied from, if
    any. It is deliberately not a foreign key: the snapshot outlives catalog
    edits and deletions.
    """

    __tablename__ = "stay_services"

    booking_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_service_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    date: Mapped[datetime.date] = mapped_column(Date, default=datetime.date.today)
    payment_method: Mapped[str] = mapped_column(String(50), default="Cash")
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False)
    is_fulfilled: Mapped[bool] = mapped_column(Boolean, default=False)

    booking: Mapped["Booking"] = relationship(back_populates="extra_services")

    def __repr__(self) -> str:
        return f"<StayService(id={self.id}, name={self.name!r}, price={self.price})>"
