import logging
import math
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_COLOR_RE = re.compile(r"^#[0-9a-fA-F]{6}$")

EMPLOYEE_TYPES = ("main", "reliever")


def to_float(value: Any, default: float = 0.0) -> float:
    """
    Coerces a wire value (number, numeric string, Decimal, None) to float.

    Missing or malformed values fall back to ``default`` instead of raising.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        logger.debug("Could not coerce %r to a number, using %s", value, default)
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return int(to_float(value, default))


def validate_amount(value: Any, field: str = "amount") -> float:
    """
    Validates a monetary amount and converts it to float.

    Raises:
        ValueError: if the amount is negative
    """
    amount = to_float(value)
    if amount < 0:
        raise ValueError(f"{field} cannot be negative: {value}")
    return amount


def validate_percentage(value: Any, field: str = "percentage") -> float:
    """
    Validates a percentage in the 0-100 range.

    Raises:
        ValueError: if the value is outside 0-100
    """
    percent = to_float(value)
    if not 0 <= percent <= 100:
        raise ValueError(f"{field} must be between 0 and 100: {value}")
    return percent


def validate_name(value: Optional[str], field: str = "name") -> str:
    name = (value or "").strip()
    if not name:
        raise ValueError(f"{field} cannot be empty")
    if len(name) > 200:
        raise ValueError(f"{field} is too long")
    return name


def is_valid_color(color: str) -> bool:
    return bool(color and _COLOR_RE.match(color))


def validate_employee_type(value: Optional[str]) -> str:
    employee_type = (value or "main").strip().lower()
    if employee_type not in EMPLOYEE_TYPES:
        raise ValueError(
            f"Unknown employee type: {value}. Expected one of {', '.join(EMPLOYEE_TYPES)}"
        )
    return employee_type
