"""Expense model: maintenance and operating outflows."""

import datetime
import uuid
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Expense(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Money spent on a unit, or on the operation in general when ``apartment_id`` is empty."""

    __tablename__ = "expenses"

    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, index=True)
    apartment_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("apartments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    category: Mapped[str] = mapped_column(String(50), default="maintenance")  # maintenance, supplies, utility, other, commission
    description: Mapped[str] = mapped_column(Text, default="")
    amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), default="EGP")

    def __repr__(self) -> str:
        return f"<Expense id={self.id} {self.category} {self.amount} {self.currency}>"
