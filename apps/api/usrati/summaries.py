"""Dashboard counters and card spending figures for a guardian's scope."""
from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .lifecycle import today_utc
from .notifications import ALERTS
from .records import ACADEMIC_RECORDS, MEDICAL_RECORDS, REFERRALS, VIOLATIONS
from .schemas import AcademicRecord, DebitCard, ReferralStatus, ViolationStatus
from .scope import active_dependents, narrow_scope
from .store import RecordStore

DAILY_AVERAGE_WINDOW_DAYS = 30


class GuardianSummary(BaseModel):
    active_links: int = 0
    pending_violations: int = 0
    open_referrals: int = 0
    unread_alerts: int = 0


class DependentOverview(BaseModel):
    dependent_id: str
    in_scope: bool = False
    academic_records: int = 0
    violations: int = 0
    referrals: int = 0
    medical_records: int = 0
    alerts: int = 0
    pending_violations: int = 0
    pending_fines_total: float = 0.0
    current_academic_record: Optional[AcademicRecord] = None


class CategorySpending(BaseModel):
    category: str
    amount: float


class CardSpending(BaseModel):
    card_id: str
    monthly_limit: float
    monthly_spending: float
    remaining_limit: float
    daily_average: float
    by_category: List[CategorySpending] = Field(default_factory=list)


async def guardian_summary(
    store: RecordStore,
    guardian_id: str,
    *,
    today: Optional[date] = None,
) -> GuardianSummary:
    scope = await active_dependents(store, guardian_id, today=today)
    if not scope:
        return GuardianSummary()
    pending, open_referrals, unread = await asyncio.gather(
        store.count(VIOLATIONS, {"profile_id": scope, "status": ViolationStatus.PENDING.value}),
        store.count(REFERRALS, {"profile_id": scope, "status": ReferralStatus.OPEN.value}),
        store.count(ALERTS, {"profile_id": scope, "is_read": False}),
    )
    return GuardianSummary(
        active_links=len(scope),
        pending_violations=pending,
        open_referrals=open_referrals,
        unread_alerts=unread,
    )


async def dependent_overview(
    store: RecordStore,
    guardian_id: str,
    dependent_id: str,
    *,
    today: Optional[date] = None,
) -> DependentOverview:
    scope = narrow_scope(await active_dependents(store, guardian_id, today=today), dependent_id)
    if not scope:
        return DependentOverview(dependent_id=dependent_id)

    by_profile = {"profile_id": dependent_id}
    academic, violations, referrals, medical, alerts, pending_rows, latest = await asyncio.gather(
        store.count(ACADEMIC_RECORDS, by_profile),
        store.count(VIOLATIONS, by_profile),
        store.count(REFERRALS, by_profile),
        store.count(MEDICAL_RECORDS, by_profile),
        store.count(ALERTS, by_profile),
        store.find_many(
            VIOLATIONS,
            {"profile_id": dependent_id, "status": ViolationStatus.PENDING.value},
            select="id,amount",
        ),
        store.find_many(ACADEMIC_RECORDS, by_profile, order=("academic_year", True), limit=1),
    )
    return DependentOverview(
        dependent_id=dependent_id,
        in_scope=True,
        academic_records=academic,
        violations=violations,
        referrals=referrals,
        medical_records=medical,
        alerts=alerts,
        pending_violations=len(pending_rows),
        pending_fines_total=sum(float(row.get("amount") or 0) for row in pending_rows),
        current_academic_record=AcademicRecord.model_validate(latest[0]) if latest else None,
    )


def card_spending(card: DebitCard, *, today: Optional[date] = None) -> CardSpending:
    """Spending figures over the transactions already loaded on ``card``."""

    today = today or today_utc()
    totals: Dict[str, float] = defaultdict(float)
    monthly = 0.0
    overall = 0.0
    for transaction in card.transactions:
        amount = float(transaction.amount)
        totals[transaction.category] += amount
        overall += amount
        when = transaction.transaction_date
        if when.year == today.year and when.month == today.month:
            monthly += amount
    by_category = sorted(
        (CategorySpending(category=category, amount=amount) for category, amount in totals.items()),
        key=lambda item: item.amount,
        reverse=True,
    )
    return CardSpending(
        card_id=card.id,
        monthly_limit=card.monthly_limit,
        monthly_spending=monthly,
        remaining_limit=card.monthly_limit - monthly,
        daily_average=overall / DAILY_AVERAGE_WINDOW_DAYS if card.transactions else 0.0,
        by_category=by_category,
    )
