"""Which dependents a guardian may currently see."""
from __future__ import annotations

from datetime import date
from typing import FrozenSet, Optional

from .lifecycle import mark_expired_if_due, today_utc
from .links import GUARDIAN_LINKS
from .schemas import GuardianLink, LinkStatus
from .store import RecordStore


async def active_dependents(
    store: RecordStore,
    guardian_id: str,
    *,
    today: Optional[date] = None,
) -> FrozenSet[str]:
    """Dependent ids behind the guardian's active, unexpired links.

    Expiry is re-evaluated here, so a link whose persisted status is still
    ``active`` past its auto-expiry date is excluded.
    """

    today = today or today_utc()
    rows = await store.find_many(GUARDIAN_LINKS, {"guardian_id": guardian_id})
    links = (mark_expired_if_due(GuardianLink.model_validate(row), today=today) for row in rows)
    return frozenset(link.dependent_id for link in links if link.status == LinkStatus.ACTIVE)


def narrow_scope(scope: FrozenSet[str], dependent_id: Optional[str]) -> FrozenSet[str]:
    if dependent_id is None:
        return scope
    if dependent_id in scope:
        return frozenset({dependent_id})
    return frozenset()


async def resolve_scope(
    store: RecordStore,
    guardian_id: str,
    dependent_id: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> FrozenSet[str]:
    scope = await active_dependents(store, guardian_id, today=today)
    return narrow_scope(scope, dependent_id)
