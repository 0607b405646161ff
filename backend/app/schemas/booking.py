"""Pydantic v2 request/response schemas for booking endpoints."""

import datetime
import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.pricing.currency import CURRENCY_PATTERN
from app.pricing.status import BOOKING_STATUS_PATTERN, MAINTENANCE
from app.schemas.customer import CustomerCreate

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
PLATFORM_PATTERN = "^(None|Direct|Booking\\.com|Airbnb|Agoda|Expedia|WhatsApp)$"
PAYMENT_METHOD_PATTERN = "^(Cash|Bank Transfer|Credit Card|Vodafone Cash)$"

# ---------------------------------------------------------------------------
# Stay services
# ---------------------------------------------------------------------------


class StayServiceCreate(BaseModel):
    """An extra service to attach to a booking.

    Either copy a catalog entry (``source_service_id``; price defaults to the
    catalog price converted to the booking currency) or enter a free-form
    ``name`` and ``price`` already in the booking currency.
    """

    source_service_id: uuid.UUID | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    price: Decimal | None = Field(None, ge=0)
    date: datetime.date | None = None
    payment_method: str = Field("Cash", pattern=PAYMENT_METHOD_PATTERN)
    is_paid: bool = False

    @model_validator(mode="after")
    def check_source(self) -> "StayServiceCreate":
        """Free-form services need both a name and a price."""
        if self.source_service_id is None and (self.name is None or self.price is None):
            raise ValueError("name and price are required when source_service_id is not given")
        return self


class StayServiceDraft(BaseModel):
    """An extra service as it sits on an unsaved booking form (already priced)."""

    source_service_id: uuid.UUID | None = None
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    is_paid: bool = False


class StayServiceResponse(BaseModel):
    """An extra service charged on a booking."""

    id: uuid.UUID
    source_service_id: str | None = None
    name: str
    price: Decimal
    date: datetime.date
    payment_method: str
    is_paid: bool
    is_fulfilled: bool

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Quote (uncommitted draft)
# ---------------------------------------------------------------------------


class BookingQuoteRequest(BaseModel):
    """A booking form mid-fill. Apartment and dates may still be missing."""

    apartment_id: uuid.UUID | None = None
    start_date: str | None = None
    end_date: str | None = None
    currency: str = Field("EGP", pattern=CURRENCY_PATTERN)
    discount: Decimal = Field(Decimal("0"), ge=0)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    services: list[uuid.UUID] = []
    extra_services: list[StayServiceDraft] = []
    status: str = Field("confirmed", pattern=BOOKING_STATUS_PATTERN)


class FinanceResponse(BaseModel):
    """Derived folio figures in the requested currency."""

    currency: str
    nights: int
    base_price: Decimal
    catalog_total: Decimal
    ad_hoc_total: Decimal
    services_total: Decimal
    discount: Decimal
    total: Decimal
    paid_amount: Decimal
    remaining: Decimal
    payment_status: str
    is_complete: bool
    is_overpaid: bool


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingCreate(BaseModel):
    """Schema for committing a new booking."""

    apartment_id: uuid.UUID
    customer_id: uuid.UUID | None = None
    new_customer: CustomerCreate | None = None
    start_date: datetime.date
    end_date: datetime.date
    check_in_time: str = Field("14:00", pattern=CLOCK_PATTERN)
    check_out_time: str = Field("12:00", pattern=CLOCK_PATTERN)
    platform: str = Field("Direct", pattern=PLATFORM_PATTERN)
    payment_method: str = Field("Cash", pattern=PAYMENT_METHOD_PATTERN)
    currency: str = Field("EGP", pattern=CURRENCY_PATTERN)
    discount: Decimal = Field(Decimal("0"), ge=0)
    paid_amount: Decimal = Field(Decimal("0"), ge=0)
    commission_amount: Decimal = Field(Decimal("0"), ge=0)
    commission_paid: bool = False
    status: str = Field("confirmed", pattern="^(pending|confirmed|stay|maintenance)$")
    services: list[uuid.UUID] = []
    extra_services: list[StayServiceCreate] = []
    receptionist_name: str | None = Field(None, max_length=255)
    notes: str | None = None

    @model_validator(mode="after")
    def check_booking(self) -> "BookingCreate":
        """Validate the date order and that exactly one guest source is given."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.customer_id is not None and self.new_customer is not None:
            raise ValueError("Provide either customer_id or new_customer, not both")
        if self.status != MAINTENANCE and self.customer_id is None and self.new_customer is None:
            raise ValueError("A guest (customer_id or new_customer) is required")
        return self


class BookingUpdate(BaseModel):
    """Schema for partially updating a booking. All fields optional.

    ``extra_services`` entries are appended; existing stay services are
    managed through the ``/services`` sub-resource.
    """

    apartment_id: uuid.UUID | None = None
    customer_id: uuid.UUID | None = None
    start_date: datetime.date | None = None
    end_date: datetime.date | None = None
    check_in_time: str | None = Field(None, pattern=CLOCK_PATTERN)
    check_out_time: str | None = Field(None, pattern=CLOCK_PATTERN)
    platform: str | None = Field(None, pattern=PLATFORM_PATTERN)
    payment_method: str | None = Field(None, pattern=PAYMENT_METHOD_PATTERN)
    currency: str | None = Field(None, pattern=CURRENCY_PATTERN)
    discount: Decimal | None = Field(None, ge=0)
    paid_amount: Decimal | None = Field(None, ge=0)
    commission_amount: Decimal | None = Field(None, ge=0)
    commission_paid: bool | None = None
    status: str | None = Field(None, pattern=BOOKING_STATUS_PATTERN)
    services: list[uuid.UUID] | None = None
    extra_services: list[StayServiceCreate] | None = None
    receptionist_name: str | None = Field(None, max_length=255)
    notes: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "BookingUpdate":
        """If both dates are provided, validate end_date >= start_date."""
        if self.start_date is not None and self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response returned from CRUD operations."""

    id: uuid.UUID
    display_id: str
    apartment_id: uuid.UUID
    customer_id: uuid.UUID | None = None
    start_date: datetime.date
    end_date: datetime.date
    nights: int
    check_in_time: str
    check_out_time: str
    booking_date: datetime.date
    receptionist_name: str | None = None
    platform: str
    payment_method: str
    currency: str
    exchange_rate: Decimal
    status: str
    services: list[str] = []
    extra_services: list[StayServiceResponse] = []
    discount: Decimal
    paid_amount: Decimal
    total_amount: Decimal
    remaining: Decimal
    payment_status: str
    commission_amount: Decimal
    commission_paid: bool
    notes: str | None = None
    created_at: datetime.datetime
    updated_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)


class BookingListResponse(BaseModel):
    """Paginated list of bookings."""

    items: list[BookingResponse]
    total: int


class CalendarEntry(BaseModel):
    """A booking as drawn on the timeline."""

    id: uuid.UUID
    display_id: str
    customer_id: uuid.UUID | None = None
    start_date: datetime.date
    end_date: datetime.date
    status: str
    payment_status: str

    model_config = ConfigDict(from_attributes=True)


class CalendarRow(BaseModel):
    """One apartment's row on the timeline."""

    apartment_id: uuid.UUID
    unit_number: str
    bookings: list[CalendarEntry]


class CalendarResponse(BaseModel):
    """Timeline of all apartments over a window."""

    window_start: datetime.date
    window_end: datetime.date
    rows: list[CalendarRow]


class StatusTransition(BaseModel):
    """One booking moved by the auto-status run."""

    booking_id: uuid.UUID
    display_id: str
    from_status: str
    to_status: str


class AutoStatusResponse(BaseModel):
    """Result of an auto-status run."""

    checked_at: datetime.datetime
    transitions: list[StatusTransition]
