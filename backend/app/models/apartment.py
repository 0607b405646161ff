"""Apartment model: rentable units and their rate cards."""

import uuid
from decimal import Decimal

from sqlalchemy import JSON, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Apartment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A unit in the building. Prices are always EGP."""

    __tablename__ = "apartments"

    unit_number: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    floor: Mapped[int] = mapped_column(Integer, default=0)
    rooms: Mapped[int] = mapped_column(Integer, default=1)
    view: Mapped[str | None] = mapped_column(String(50))  # Sea View, Pool View, Garden View, Street View
    daily_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    monthly_price: Mapped[Decimal] = mapped_column(default=Decimal("0"))  # 0 = no monthly tier
    max_discount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    images: Mapped[list] = mapped_column(JSON, default=list)
    status: Mapped[str] = mapped_column(String(50), default="active")  # active, maintenance, inactive
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("owners.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Relationships
    owner: Mapped["Owner | None"] = relationship(back_populates="apartments", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    # Loaded only when the unit is deleted, so its bookings go with it.
    bookings: Mapped[list["Booking"]] = relationship(cascade="all, delete-orphan")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<Apartment id={self.id} unit={self.unit_number!r} daily={self.daily_price}>"
