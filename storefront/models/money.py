from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENT = Decimal("0.01")


def to_decimal(value: Any, default: Optional[Decimal] = Decimal("0")) -> Optional[Decimal]:
    """Parse a price coming from a form, a CSV cell or a JSON number."""
    if value is None or value == "":
        return default
    try:
        # go through str() so 19.99 stays 19.99 instead of its binary expansion
        parsed = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    # NaN and Infinity are not amounts
    return parsed if parsed.is_finite() else default


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
