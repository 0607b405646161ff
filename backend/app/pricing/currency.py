"""Money helpers: Decimal coercion, 2-place rounding, and EGP/USD conversion.

All rate cards and catalog prices are listed in EGP. USD folios are priced by
dividing EGP amounts by a single fixed rate that callers pass in explicitly.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

EGP = "EGP"
USD = "USD"
CURRENCIES: tuple[str, ...] = (EGP, USD)
CURRENCY_PATTERN = "^(" + "|".join(CURRENCIES) + ")$"

# Fallback when the caller has no configured rate.
USD_TO_EGP_RATE = Decimal("50.0")

ZERO = Decimal("0")
TWO_PLACES = Decimal("0.01")


def to_money(value: Decimal | float | int | str | None) -> Decimal:
    """Coerce a numeric input to ``Decimal`` without binary-float artefacts.

    ``None`` and unparseable strings become zero, matching how an empty form
    field is treated while a booking is still being filled in.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return ZERO


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def convert_from_egp(
    amount_egp: Decimal,
    currency: str,
    rate: Decimal | float = USD_TO_EGP_RATE,
) -> Decimal:
    """Express an EGP amount in the booking currency (full precision)."""
    if currency == USD:
        return amount_egp / to_money(rate)
    return amount_egp


def convert_to_egp(
    amount: Decimal,
    currency: str,
    rate: Decimal | float = USD_TO_EGP_RATE,
) -> Decimal:
    """Express an amount held in ``currency`` in EGP (full precision)."""
    if currency == USD:
        return amount * to_money(rate)
    return amount
