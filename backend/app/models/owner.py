"""Owner model: landlords whose units the operation manages."""

from decimal import Decimal

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Owner(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A unit owner and the management contract agreed with them."""

    __tablename__ = "owners"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    email: Mapped[str | None] = mapped_column(String(255))
    bank_account: Mapped[str | None] = mapped_column(String(255))
    contract_type: Mapped[str] = mapped_column(String(20), default="Percentage", nullable=False)  # Percentage, Fixed
    contract_value: Mapped[Decimal] = mapped_column(default=Decimal("20"))

    # Relationships
    apartments: Mapped[list["Apartment"]] = relationship(back_populates="owner", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    def __repr__(self) -> str:
        return f"<Owner id={self.id} name={self.name!r} contract={self.contract_type}:{self.contract_value}>"
