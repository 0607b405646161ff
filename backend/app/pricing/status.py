"""Booking and payment status vocabulary plus the time-driven status rule."""

from datetime import date, datetime, time

# Booking statuses
PENDING = "pending"
CONFIRMED = "confirmed"
STAY = "stay"
CHECKED_OUT = "checked_out"
CANCELLED = "cancelled"
MAINTENANCE = "maintenance"

BOOKING_STATUSES: tuple[str, ...] = (PENDING, CONFIRMED, STAY, CHECKED_OUT, CANCELLED, MAINTENANCE)
BOOKING_STATUS_PATTERN = "^(" + "|".join(BOOKING_STATUSES) + ")$"

# Documented flow. Nothing rejects a transition outside this table; finance
# only reacts to the current value.
TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({STAY, CANCELLED, MAINTENANCE}),
    STAY: frozenset({CHECKED_OUT}),
    CHECKED_OUT: frozenset(),
    CANCELLED: frozenset(),
    MAINTENANCE: frozenset(),
}

# Statuses that never produce revenue in commission and finance reports.
NON_REVENUE_STATUSES: frozenset[str] = frozenset({CANCELLED, MAINTENANCE})

# Payment statuses
PAID = "Paid"
PARTIAL = "Partial"
UNPAID = "Unpaid"
NOT_APPLICABLE = "NotApplicable"

PAYMENT_STATUSES: tuple[str, ...] = (PAID, PARTIAL, UNPAID, NOT_APPLICABLE)
PAYMENT_STATUS_PATTERN = "^(" + "|".join(PAYMENT_STATUSES) + ")$"

DEFAULT_CHECK_IN_TIME = "14:00"
DEFAULT_CHECK_OUT_TIME = "12:00"


def is_documented_transition(current: str, target: str) -> bool:
    """Return True if ``current -> target`` is part of the documented flow."""
    return current == target or target in TRANSITIONS.get(current, frozenset())


def _parse_clock(value: str | None, fallback: str) -> time:
    try:
        return time.fromisoformat(value or fallback)
    except ValueError:
        return time.fromisoformat(fallback)


def advance_status(
    status: str,
    start_date: date,
    end_date: date,
    now: datetime,
    check_in_time: str | None = None,
    check_out_time: str | None = None,
) -> str:
    """Return the status a booking should have at ``now``.

    A pending or confirmed booking turns into ``stay`` once its check-in
    moment has passed; a ``stay`` turns into ``checked_out`` once its
    check-out moment has passed. One step per call, so a confirmed booking
    whose whole range lies in the past needs two calls to reach checked_out.
    """
    today = now.date()
    clock = now.time().replace(second=0, microsecond=0)

    if status in (PENDING, CONFIRMED):
        arrival = _parse_clock(check_in_time, DEFAULT_CHECK_IN_TIME)
        if start_date < today or (start_date == today and clock >= arrival):
            return STAY
    elif status == STAY:
        departure = _parse_clock(check_out_time, DEFAULT_CHECK_OUT_TIME)
        if end_date < today or (end_date == today and clock >= departure):
            return CHECKED_OUT

    return status
