from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


def utcnow_iso() -> str:
    """Current UTC time as ISO-8601 string with Z."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def cutoff_date(days: int, today: date | None = None) -> str:
    """ISO date `days` before today (UTC). Filing dates compare against it as strings."""
    base = today or datetime.now(timezone.utc).date()
    return (base - timedelta(days=int(days))).isoformat()


def year_of(iso: str) -> int:
    return int(str(iso)[:4])


def month_of(iso: str) -> int:
    return int(str(iso)[5:7])


def days_between(start: str, end: str) -> int:
    return (date.fromisoformat(str(end)[:10]) - date.fromisoformat(str(start)[:10])).days
