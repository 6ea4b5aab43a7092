"""Date rules for guardian links: age gate, auto-expiry, lazy expiry."""
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

from .schemas import GuardianLink, LinkStatus

MAJORITY_AGE = 18


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def age_on(birth_date: date, on: date) -> int:
    """Whole years between ``birth_date`` and ``on``, birthday-aware."""

    age = on.year - birth_date.year
    if (on.month, on.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def add_years(value: date, years: int) -> date:
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        # 29 February into a non-leap year rolls forward to 1 March.
        return date(value.year + years, 3, 1)


def auto_expiry_date(birth_date: date) -> date:
    return add_years(birth_date, MAJORITY_AGE)


def mark_expired_if_due(link: GuardianLink, *, today: Optional[date] = None) -> GuardianLink:
    """Return ``link`` with status ``expired`` when its auto-expiry date has passed.

    Never writes to storage; callers apply it on every read path so a stale
    persisted ``active`` status cannot leak access.
    """

    today = today or today_utc()
    if link.status == LinkStatus.ACTIVE and today >= link.auto_expiry_date:
        return link.model_copy(update={"status": LinkStatus.EXPIRED})
    return link
