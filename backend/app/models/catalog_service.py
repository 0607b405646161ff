"""CatalogService model: the reusable add-on price list."""

from decimal import Decimal

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class CatalogService(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A named extra (cleaning, airport transfer, ...) with an EGP list price."""

    __tablename__ = "catalog_services"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    price: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    is_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<CatalogService id={self.id} name={self.name!r} price={self.price}>"
