"""Integer arithmetic utilities for cents-based account balances.

All prices, amounts, and balances use int (cents). No float, no Decimal.
The quote server and the workload file both speak "D.CC" decimal strings;
parse_cents / cents_to_str are the only conversion points.
"""

import re

from src.dt_common.errors import InsufficientFundsError, InvalidFormatError

_AMOUNT_RE = re.compile(r"^(\d+)\.(\d{1,2})$")


def parse_cents(text: str) -> int:
    """Parse a decimal dollar string into cents: '100.05' -> 10005, '3.5' -> 350.

    Raises InvalidFormatError on a missing separator, non-numeric parts,
    a sign, or more than two fractional digits.
    """
    match = _AMOUNT_RE.match(text.strip())
    if match is None:
        raise InvalidFormatError(f"Malformed amount: {text!r}")
    dollars, frac = match.groups()
    return int(dollars) * 100 + int(frac.ljust(2, "0"))


def cents_to_str(cents: int) -> str:
    """Convert cents to the wire form: 10005 -> '100.05', -1200 -> '-12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{abs_cents // 100}.{abs_cents % 100:02d}"
    return f"{cents // 100}.{cents % 100:02d}"


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def subtract_cents(total: int, amount: int) -> int:
    """total - amount, refusing to go below zero."""
    if amount > total:
        raise InsufficientFundsError(required=amount, available=total)
    return total - amount


def fits_into(total: int, unit_price: int) -> tuple[int, int]:
    """Floor division of a cash amount into whole units.

    Returns (whole_units, remainder) with
    whole_units * unit_price + remainder == total and 0 <= remainder < unit_price.
    """
    if unit_price <= 0:
        raise ValueError(f"Unit price must be positive, got {unit_price}")
    if total < 0:
        raise ValueError(f"Total must be non-negative, got {total}")
    return divmod(total, unit_price)
