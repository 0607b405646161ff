"""SQLAlchemy models for Bahia PMS.

All models are imported here so that ``Base.metadata.create_all`` sees every
table. If you add a new model, import it in this file.
"""

from app.models.apartment import Apartment
from app.models.booking import Booking, StayService
from app.models.catalog_service import CatalogService
from app.models.customer import Customer
from app.models.expense import Expense
from app.models.owner import Owner
from app.models.user import User

__all__ = [
    "Apartment",
    "Booking",
    "CatalogService",
    "Customer",
    "Expense",
    "Owner",
    "StayService",
    "User",
]
