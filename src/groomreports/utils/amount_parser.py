"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re
from typing import Union

CENT = Decimal("0.01")

Amount = Union[int, float, str, Decimal, None]


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}': not a finite number")
    return -amount if is_negative else amount


def to_cents(value: Amount) -> int:
    """Convert a major-unit currency value to integer cents.

    Floats go through their shortest repr so that ``0.285`` is treated as the
    decimal literal the user typed, not its binary approximation. Ties round
    away from zero (``ROUND_HALF_UP`` in ``decimal`` terms).

    Args:
        value: Amount in major units, or None

    Returns:
        Amount in cents (0 for None)

    Raises:
        ValueError: If the value cannot be interpreted as an amount
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError(f"Could not parse amount '{value}': booleans are not amounts")
    if isinstance(value, int):
        return value * 100
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        amount = parse_amount(value)
    else:
        raise ValueError(f"Could not parse amount '{value!r}'")

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{value}': not a finite number")
    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def round_cents(value: Decimal) -> int:
    """Round a fractional cents value to whole cents, ties away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def cents_to_decimal(cents: int) -> Decimal:
    """Convert integer cents back to a major-unit Decimal for display."""
    return (Decimal(cents) * CENT).quantize(CENT)
