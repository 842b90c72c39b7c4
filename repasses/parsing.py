"""
Input Parsing Helpers

Tolerant parsers for the values back-office users actually type:
pt-BR money strings, Brazilian dates and comma-decimal percentages.
All money comes out as integer cents, all percentages as basis points.
"""

import math
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

BR_DATE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")
ISO_SHORT_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
SIGNED_DECIMAL = re.compile(r"^-?\d+(\.\d+)?$")
PLAIN_DECIMAL = re.compile(r"^\d+(\.\d+)?$")

TRUE_STRINGS = {"true", "sim", "1"}
FALSE_STRINGS = {"false", "nao", "não", "0"}


def parse_money_to_cents(value) -> int:
    """
    Convert a money input into integer cents.

    Accepted forms:
    - int: already in cents (wire format)
    - "123,45" (pt-BR), "123.45" (en), "R$ 1.234,56"
    - "3870": digits without separator are typed cents -> 3870 (R$ 38,70)

    Raises ValueError for anything else.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid money value: {value!r}")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Money must be integer cents or a string, got: {value!r}")

    s = value.strip()
    if not s:
        raise ValueError("Money value is empty")

    normalized = re.sub(r"[R$\s]", "", s)
    if normalized.isdigit() or (normalized.startswith("-") and normalized[1:].isdigit()):
        # No separator: typed cents
        return int(normalized)

    # Both separators present: dot is thousands, comma is decimal
    if "." in normalized and "," in normalized:
        normalized = normalized.replace(".", "").replace(",", ".")
    elif "," in normalized:
        normalized = normalized.replace(",", ".")

    if not SIGNED_DECIMAL.match(normalized):
        raise ValueError(f"Invalid money value: {value!r}")

    try:
        return int((Decimal(normalized) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValueError(f"Money value out of range: {value!r}") from None


def parse_date_input(value) -> date:
    """Parse DD/MM/AAAA, YYYY-MM-DD or a full ISO timestamp into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid date: {value!r}")

    s = value.strip()
    try:
        match = BR_DATE.match(s)
        if match:
            dd, mm, yyyy = (int(g) for g in match.groups())
            return date(yyyy, mm, dd)

        match = ISO_SHORT_DATE.match(s)
        if match:
            yyyy, mm, dd = (int(g) for g in match.groups())
            return date(yyyy, mm, dd)

        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()
    except ValueError:
        raise ValueError(f"Invalid date: {value!r}. Use DD/MM/AAAA") from None


def parse_percentage_to_bp(value) -> int:
    """
    Convert a percentage into basis points.

    Numbers and strings are both read as a percent: 30 -> 3000,
    12.5 -> 1250, "12,34" -> 1234, "5%" -> 500. Anything finer than a
    basis point rounds half-up.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid percentage: {value!r}")
    if isinstance(value, int):
        return value * 100
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Invalid percentage: {value!r}")
        percent = Decimal(str(value))
    elif isinstance(value, str):
        s = value.strip().rstrip("%").strip().replace(",", ".")
        if not PLAIN_DECIMAL.match(s):
            raise ValueError(f"Invalid percentage: {value!r}")
        percent = Decimal(s)
    else:
        raise ValueError(f"Invalid percentage: {value!r}")

    try:
        return int((percent * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValueError(f"Invalid percentage: {value!r}") from None


def parse_basis_points(value) -> int:
    """Integer basis points as sent under `percentualBp` (10000 = 100%)."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid basis points: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"Basis points must be an integer, got: {value!r}")


def parse_flag(value, default: bool = False) -> bool:
    """Strict boolean: real booleans or the strings true/false (sim/não)."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        key = value.strip().lower()
        if key in TRUE_STRINGS:
            return True
        if key in FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean value: {value!r}")
