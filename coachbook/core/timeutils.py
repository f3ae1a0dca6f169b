from datetime import date, datetime, time, timezone, tzinfo

from coachbook.core.exceptions import ValidationException

END_OF_DAY = time(23, 59, 59, 999000)


def _out_of_range(field_name: str, value: str) -> ValidationException:
    return ValidationException(
        'Date out of range',
        details={field_name: f'{value} cannot be represented as a UTC instant.'},
    )


def ensure_aware(value: datetime, reference_tz: tzinfo, field_name: str = 'date') -> datetime:
    """
    Attach the reference timezone to naive values and normalize to UTC.

    Instants at the edge of the supported range may not survive the shift to
    UTC; those are reported as a ValidationException keyed by ``field_name``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=reference_tz)
    try:
        return value.astimezone(timezone.utc)
    except (OverflowError, ValueError) as exc:
        raise _out_of_range(field_name, value.isoformat()) from exc


def day_bounds(day: date, reference_tz: tzinfo, field_name: str = 'date') -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min, tzinfo=reference_tz)
    end = datetime.combine(day, END_OF_DAY, tzinfo=reference_tz)
    try:
        return start.astimezone(timezone.utc), end.astimezone(timezone.utc)
    except (OverflowError, ValueError) as exc:
        raise _out_of_range(field_name, day.isoformat()) from exc


def parse_calendar_date(value: str | None, field_name: str = 'date') -> date:
    if value is None or not value.strip():
        raise ValidationException(
            'Date parameter is required',
            details={field_name: 'Provide a calendar date as YYYY-MM-DD.'},
        )

    raw = value.strip()
    try:
        return date.fromisoformat(raw[:10]) if 'T' in raw else date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationException(
            'Invalid date parameter',
            details={field_name: f'{raw!r} is not a valid calendar date.'},
        ) from exc


def parse_instant(value: str | None, reference_tz: tzinfo, field_name: str) -> datetime | None:
    if value is None or not value.strip():
        return None

    raw = value.strip()
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationException(
            f'Invalid {field_name} parameter',
            details={field_name: f'{raw!r} is not a valid ISO 8601 date or datetime.'},
        ) from exc
    return ensure_aware(parsed, reference_tz, field_name)
