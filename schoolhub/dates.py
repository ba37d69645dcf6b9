from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value: datetime) -> str:
    return value.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")


def parse_datetime(value) -> datetime:
    """Normalise request input to a naive UTC datetime.

    Accepts datetimes, dates and ISO-8601 strings. Offsets are converted to
    UTC; naive values are taken as UTC already; a bare date means midnight.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("must be a valid date")
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValueError("must be a valid date") from exc
    else:
        raise ValueError("must be a valid date")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def school_zone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def local_day(moment: datetime, zone: ZoneInfo) -> date:
    return moment.replace(tzinfo=timezone.utc).astimezone(zone).date()


def local_midnight_utc(day: date, zone: ZoneInfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone).astimezone(timezone.utc).replace(tzinfo=None)


def day_bounds(day: date, zone: ZoneInfo) -> tuple[datetime, datetime]:
    """UTC instants bracketing one calendar day in ``zone``."""
    return local_midnight_utc(day, zone), local_midnight_utc(day + timedelta(days=1), zone)


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def month_label(month: int) -> str:
    return MONTH_NAMES[month - 1]


def trailing_months(today: date, count: int) -> list[tuple[int, int]]:
    """The ``count`` calendar months ending with the month of ``today``, oldest first."""
    return [shift_month(today.year, today.month, offset) for offset in range(-(count - 1), 1)]


def months_window(today: date, count: int, zone: ZoneInfo) -> tuple[datetime, datetime]:
    first_year, first_month = trailing_months(today, count)[0]
    next_year, next_month = shift_month(today.year, today.month, 1)
    start = local_midnight_utc(date(first_year, first_month, 1), zone)
    end = local_midnight_utc(date(next_year, next_month, 1), zone)
    return start, end
