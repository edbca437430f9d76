import calendar
import datetime
import re
from typing import List, Tuple, Union

DateLike = Union[str, datetime.date, datetime.datetime]

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")


def validate_date_format(date_str: str) -> datetime.date:
    """
    Validates a date string and converts it to datetime.date.
    Supported formats: YYYY-MM-DD, DD.MM.YYYY, DD/MM/YYYY

    Args:
        date_str: date string

    Returns:
        datetime.date: parsed date

    Raises:
        ValueError: if the string matches none of the formats
    """
    formats = ["%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y"]

    for fmt in formats:
        try:
            return datetime.datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    raise ValueError(
        f"Invalid date: {date_str}. Supported formats: YYYY-MM-DD, DD.MM.YYYY, DD/MM/YYYY"
    )


def parse_date(value: DateLike) -> datetime.date:
    """Coerces a date, datetime or date string to datetime.date."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        # ISO timestamps such as "2024-03-05T10:00:00" keep only the date part
        return validate_date_format(value.strip()[:10])
    raise ValueError(f"Invalid date: {value!r}")


def parse_datetime(value: Union[str, datetime.datetime, None]) -> datetime.datetime:
    if value is None:
        return datetime.datetime.now()
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"Invalid timestamp: {value}") from None
    raise ValueError(f"Invalid timestamp: {value!r}")


def to_date_str(value: DateLike) -> str:
    """Formats a date as YYYY-MM-DD."""
    return parse_date(value).isoformat()


def get_week_range(date_obj: DateLike) -> Tuple[datetime.date, datetime.date]:
    """
    Returns the first (Sunday) and the last (Saturday) day of the week.

    Args:
        date_obj: any day inside the week

    Returns:
        Tuple[datetime.date, datetime.date]: Sunday and Saturday of that week
    """
    day = parse_date(date_obj)
    # weekday(): Monday=0 ... Sunday=6
    sunday = day - datetime.timedelta(days=(day.weekday() + 1) % 7)
    saturday = sunday + datetime.timedelta(days=6)

    return sunday, saturday


def get_month_range(date_obj: DateLike) -> Tuple[datetime.date, datetime.date]:
    """
    Returns the first and the last day of the month.

    Args:
        date_obj: any day inside the month

    Returns:
        Tuple[datetime.date, datetime.date]: first and last day of the month
    """
    day = parse_date(date_obj)
    year = day.year
    month = day.month

    first_day = datetime.date(year, month, 1)

    _, last_day_of_month = calendar.monthrange(year, month)
    last_day = datetime.date(year, month, last_day_of_month)

    return first_day, last_day


def days_between(start: DateLike, end: DateLike) -> List[datetime.date]:
    """All calendar days from start to end, both inclusive. Empty when end < start."""
    current = parse_date(start)
    last = parse_date(end)
    days = []
    while current <= last:
        days.append(current)
        current += datetime.timedelta(days=1)
    return days


def shift_days(date_obj: DateLike, days: int) -> datetime.date:
    return parse_date(date_obj) + datetime.timedelta(days=days)


def validate_year_month(value: Union[str, datetime.date]) -> str:
    """
    Normalizes a month reference to "YYYY-MM".

    Raises:
        ValueError: if the value is not a valid year and month
    """
    if isinstance(value, datetime.date):
        return f"{value.year:04d}-{value.month:02d}"

    match = _YEAR_MONTH_RE.match(str(value).strip())
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValueError(f"Invalid month: {value}. Expected YYYY-MM")
    return match.group(0)
