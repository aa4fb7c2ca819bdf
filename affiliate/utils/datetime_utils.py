"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def local_today() -> date:
    """
    Get the server's local date.

    Daily volume rows are keyed on this date. Multi-region deployments
    must run with TZ=UTC so rows do not straddle midnight.

    Returns:
        Today's date in the process time zone
    """
    return datetime.now().astimezone().date()


def days_ago(days: int, today: date | None = None) -> date:
    """First date of a window of `days` local dates ending today."""
    today = today or local_today()
    return today - timedelta(days=max(days, 1) - 1)
