from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def week_key(value: date) -> str:
    """ISO-8601 week bucket, e.g. ``2026-W08``.

    Uses the ISO year, so 2027-01-01 (a Friday) lands in ``2026-W53``.
    """
    iso_year, iso_week, _ = value.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"
