"""Booking pricing engine: the folio arithmetic behind every reservation.

Pure functions only: the caller hands in the draft, the apartment rate card,
the service catalog and the exchange rate, and gets back a ``FinanceResult``.
Nothing here touches the database or reads application settings, so the same
call can back a live quote on every form edit and the final commit.

Pricing rules:

- ``nights = max(1, ceil(end - start))`` in days; same-day and inverted ranges
  are charged as one night.
- Stays of 30+ nights on a unit with a monthly price are pro-rated from the
  monthly price (``nights / 30 * monthly``); everything else is
  ``nights * daily``.
- Rate cards and catalog prices are EGP and are divided by the USD rate for
  USD folios. Ad-hoc services are already in the folio currency.
- Only ``total`` and ``remaining`` are rounded (half-up, 2 places).
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from app.pricing.currency import EGP, USD_TO_EGP_RATE, ZERO, convert_from_egp, round2, to_money
from app.pricing.status import CONFIRMED, MAINTENANCE, NOT_APPLICABLE, PAID, PARTIAL, UNPAID

MONTHLY_TIER_NIGHTS = 30

DateInput = str | date | datetime | None


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateCard:
    """An apartment's price list, always in EGP. ``monthly_price == 0`` disables the monthly tier."""

    daily_price: Decimal
    monthly_price: Decimal = ZERO


@dataclass(frozen=True)
class CatalogItem:
    """A reusable add-on from the service catalog, priced in EGP."""

    id: str
    name: str
    price: Decimal
    is_free: bool = False


@dataclass(frozen=True)
class AdHocService:
    """A service instance attached to one booking, priced in the booking currency."""

    id: str
    name: str
    price: Decimal
    source_service_id: str | None = None
    date: date | None = None
    payment_method: str = "Cash"
    is_paid: bool = False
    is_fulfilled: bool = False


@dataclass(frozen=True)
class BookingDraft:
    """Everything the engine needs to price a reservation, committed or not."""

    start_date: DateInput = None
    end_date: DateInput = None
    currency: str = EGP
    discount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    selected_catalog_service_ids: frozenset[str] = frozenset()
    ad_hoc_services: tuple[AdHocService, ...] = ()
    status: str = CONFIRMED
    payment_method: str = "Cash"
    commission_amount: Decimal = ZERO
    commission_paid: bool = False


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FinanceResult:
    """Derived financial fields of a folio, all in the draft's currency."""

    currency: str = EGP
    nights: int = 0
    base_price: Decimal = ZERO
    catalog_total: Decimal = ZERO
    ad_hoc_total: Decimal = ZERO
    services_total: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO
    paid_amount: Decimal = ZERO
    remaining: Decimal = ZERO
    payment_status: str = UNPAID
    is_complete: bool = False
    catalog_breakdown: tuple[tuple[str, Decimal], ...] = ()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_naive_datetime(value: DateInput) -> datetime | None:
    """Parse a calendar date or timestamp; return ``None`` when it can't be read."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def count_nights(start: DateInput, end: DateInput) -> int | None:
    """Return billable nights for a range, or ``None`` if either end is unreadable."""
    start_at = _as_naive_datetime(start)
    end_at = _as_naive_datetime(end)
    if start_at is None or end_at is None:
        return None
    days = (end_at - start_at) / timedelta(days=1)
    return max(1, math.ceil(days))


def base_price_egp(nights: int, rate_card: RateCard) -> Decimal:
    """Price the stay itself in EGP, choosing the monthly tier where it applies."""
    monthly = to_money(rate_card.monthly_price)
    if nights >= MONTHLY_TIER_NIGHTS and monthly > 0:
        return Decimal(nights) / Decimal(MONTHLY_TIER_NIGHTS) * monthly
    return Decimal(nights) * to_money(rate_card.daily_price)


def derive_payment_status(paid_amount: Decimal, remaining: Decimal) -> str:
    """Map a folio balance to Paid / Partial / Unpaid."""
    if remaining <= 0:
        return PAID
    if paid_amount > 0:
        return PARTIAL
    return UNPAID


def materialized_source_ids(ad_hoc_services: Iterable[AdHocService]) -> set[str]:
    """Catalog ids that already have a snapshot among the ad-hoc services."""
    return {str(s.source_service_id) for s in ad_hoc_services if s.source_service_id is not None}


def _index_catalog(catalog_services: Iterable[CatalogItem]) -> dict[str, CatalogItem]:
    return {str(item.id): item for item in catalog_services}


def _pending_catalog_selections(
    draft: BookingDraft,
    catalog_services: Iterable[CatalogItem],
) -> list[CatalogItem]:
    """Selected catalog items that still exist and are not yet snapshotted, in stable order."""
    catalog = _index_catalog(catalog_services)
    already = materialized_source_ids(draft.ad_hoc_services)
    selected = sorted({str(sid) for sid in draft.selected_catalog_service_ids})
    return [catalog[sid] for sid in selected if sid in catalog and sid not in already]


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def compute_finance(
    draft: BookingDraft,
    rate_card: RateCard | None,
    catalog_services: Iterable[CatalogItem] = (),
    usd_to_egp_rate: Decimal | float = USD_TO_EGP_RATE,
) -> FinanceResult:
    """Derive nights, subtotals, total, balance and payment status for a draft.

    Args:
        draft: The booking inputs. Never mutated.
        rate_card: The apartment's prices, or ``None`` if no unit is chosen yet.
        catalog_services: The service catalog used to resolve
            ``draft.selected_catalog_service_ids``. Unknown ids are ignored.
        usd_to_egp_rate: EGP per USD, applied to EGP-listed amounts on USD folios.

    Returns:
        A ``FinanceResult``. Maintenance blocks and drafts without a unit or
        readable dates get an all-zero result.
    """
    currency = draft.currency
    discount = to_money(draft.discount)
    paid_amount = to_money(draft.paid_amount)

    if draft.status == MAINTENANCE:
        return FinanceResult(currency=currency, payment_status=NOT_APPLICABLE)

    nights = count_nights(draft.start_date, draft.end_date)
    if rate_card is None or nights is None:
        return FinanceResult(currency=currency, paid_amount=paid_amount)

    base_price = convert_from_egp(base_price_egp(nights, rate_card), currency, usd_to_egp_rate)

    breakdown = tuple(
        (item.name, convert_from_egp(to_money(item.price), currency, usd_to_egp_rate))
        for item in _pending_catalog_selections(draft, catalog_services)
    )
    catalog_total = sum((price for _, price in breakdown), ZERO)
    ad_hoc_total = sum((to_money(s.price) for s in draft.ad_hoc_services), ZERO)
    services_total = catalog_total + ad_hoc_total

    total = round2(base_price + services_total - discount)
    remaining = round2(total - paid_amount)

    return FinanceResult(
        currency=currency,
        nights=nights,
        base_price=base_price,
        catalog_total=catalog_total,
        ad_hoc_total=ad_hoc_total,
        services_total=services_total,
        discount=discount,
        total=total,
        paid_amount=paid_amount,
        remaining=remaining,
        payment_status=derive_payment_status(paid_amount, remaining),
        is_complete=True,
        catalog_breakdown=breakdown,
    )


def is_overpaid(draft: BookingDraft, finance: FinanceResult) -> bool:
    """True when the guest has paid more than a positive total: commit must be blocked."""
    return finance.total > 0 and to_money(draft.paid_amount) > finance.total


def materialize_catalog_selections(
    draft: BookingDraft,
    catalog_services: Iterable[CatalogItem],
    finance: FinanceResult,
    usd_to_egp_rate: Decimal | float = USD_TO_EGP_RATE,
    created_on: date | None = None,
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> list[AdHocService]:
    """Snapshot each selected, not-yet-materialized catalog service into an ad-hoc record.

    Run once when a booking is saved; the snapshot keeps the price the guest
    was quoted even if the catalog changes later.
    """
    on = created_on or date.today()
    settled = to_money(draft.paid_amount) >= finance.total

    return [
        AdHocService(
            id=id_factory(),
            source_service_id=str(item.id),
            name=item.name,
            price=round2(convert_from_egp(to_money(item.price), draft.currency, usd_to_egp_rate)),
            date=on,
            payment_method=draft.payment_method,
            is_paid=settled,
            is_fulfilled=False,
        )
        for item in _pending_catalog_selections(draft, catalog_services)
    ]
