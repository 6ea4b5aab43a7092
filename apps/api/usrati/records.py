"""Dependent-scoped record queries.

Every query is filtered through the guardian's active scope; asking for a
dependent outside it returns an empty list rather than an error.
"""
from __future__ import annotations

import asyncio
from datetime import date
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel

from .errors import NotFound
from .notifications import ALERTS
from .schemas import AcademicRecord, Alert, CardTransaction, DebitCard, MedicalRecord, Referral, Violation
from .scope import active_dependents, resolve_scope
from .store import Order, RecordStore

VIOLATIONS = "violations"
REFERRALS = "referrals"
ACADEMIC_RECORDS = "academic_records"
MEDICAL_RECORDS = "medical_records"
DEBIT_CARDS = "debit_cards"
CARD_TRANSACTIONS = "card_transactions"

CARD_TRANSACTION_LIMIT = 50

ModelT = TypeVar("ModelT", bound=BaseModel)


async def _scoped_rows(
    store: RecordStore,
    collection: str,
    guardian_id: str,
    dependent_id: Optional[str],
    *,
    order: Optional[Order],
    today: Optional[date],
    extra_filters: Optional[Dict[str, Any]] = None,
) -> List[Dict[str, Any]]:
    scope = await resolve_scope(store, guardian_id, dependent_id, today=today)
    if not scope:
        return []
    filters: Dict[str, Any] = {"profile_id": scope}
    if extra_filters:
        filters.update(extra_filters)
    return await store.find_many(collection, filters, order=order)


async def _scoped_models(
    model: Type[ModelT],
    store: RecordStore,
    collection: str,
    guardian_id: str,
    dependent_id: Optional[str],
    order: Order,
    today: Optional[date],
) -> List[ModelT]:
    rows = await _scoped_rows(store, collection, guardian_id, dependent_id, order=order, today=today)
    return [model.model_validate(row) for row in rows]


async def list_violations(
    store: RecordStore,
    guardian_id: str,
    *,
    dependent_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Violation]:
    return await _scoped_models(
        Violation, store, VIOLATIONS, guardian_id, dependent_id, ("violation_date", True), today
    )


async def list_referrals(
    store: RecordStore,
    guardian_id: str,
    *,
    dependent_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Referral]:
    return await _scoped_models(
        Referral, store, REFERRALS, guardian_id, dependent_id, ("referral_date", True), today
    )


async def list_alerts(
    store: RecordStore,
    guardian_id: str,
    *,
    dependent_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[Alert]:
    return await _scoped_models(
        Alert, store, ALERTS, guardian_id, dependent_id, ("created_at", True), today
    )


async def list_academic_records(
    store: RecordStore,
    guardian_id: str,
    *,
    dependent_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[AcademicRecord]:
    return await _scoped_models(
        AcademicRecord, store, ACADEMIC_RECORDS, guardian_id, dependent_id, ("academic_year", True), today
    )


async def list_medical_records(
    store: RecordStore,
    guardian_id: str,
    *,
    dependent_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[MedicalRecord]:
    return await _scoped_models(
        MedicalRecord, store, MEDICAL_RECORDS, guardian_id, dependent_id, ("visit_date", True), today
    )


async def _card_with_transactions(store: RecordStore, row: Dict[str, Any]) -> DebitCard:
    transactions = await store.find_many(
        CARD_TRANSACTIONS,
        {"card_id": row["id"]},
        order=("transaction_date", True),
        limit=CARD_TRANSACTION_LIMIT,
    )
    card = DebitCard.model_validate(row)
    card.transactions = [CardTransaction.model_validate(item) for item in transactions]
    return card


async def list_debit_cards(
    store: RecordStore,
    guardian_id: str,
    *,
    dependent_id: Optional[str] = None,
    today: Optional[date] = None,
) -> List[DebitCard]:
    """Active cards of in-scope dependents with their most recent transactions."""

    rows = await _scoped_rows(
        store,
        DEBIT_CARDS,
        guardian_id,
        dependent_id,
        order=None,
        today=today,
        extra_filters={"is_active": True},
    )
    return list(await asyncio.gather(*(_card_with_transactions(store, row) for row in rows)))


async def mark_read(
    store: RecordStore,
    viewer_id: str,
    alert_id: str,
    *,
    today: Optional[date] = None,
) -> Alert:
    """Flag an alert as read. Marking an already-read alert is a no-op."""

    row = await store.find_one(ALERTS, {"id": alert_id})
    if row is None:
        raise NotFound(f"Alert {alert_id} not found")
    alert = Alert.model_validate(row)
    if alert.profile_id != viewer_id:
        scope = await active_dependents(store, viewer_id, today=today)
        if alert.profile_id not in scope:
            raise NotFound(f"Alert {alert_id} not found")
    if alert.is_read:
        return alert
    updated = await store.update(ALERTS, alert_id, {"is_read": True})
    return Alert.model_validate(updated)
