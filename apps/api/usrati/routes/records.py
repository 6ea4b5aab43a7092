from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Query
from pydantic import BaseModel

from ..auth import AuthContext, get_auth_context
from ..labels import ALERT_PRIORITY_LABELS, CARD_CATEGORY_LABELS, VIOLATION_TYPE_LABELS, label_for
from ..lifecycle import today_utc
from ..records import (
    list_academic_records,
    list_alerts,
    list_debit_cards,
    list_medical_records,
    list_referrals,
    list_violations,
    mark_read,
)
from ..schemas import AcademicRecord, Alert, CardTransaction, MedicalRecord, Referral, Violation
from ..summaries import card_spending
from ..supabase import parse_uuid, resolve_dependent_id

router = APIRouter(prefix="/api/v1", tags=["records"])
logger = logging.getLogger(__name__)

DEPENDENT_HEADER = "X-Usrati-Dependent-Id"


class ViolationOut(Violation):
    violation_type_label: str = ""


class AlertOut(Alert):
    priority_label: str = ""


class CategorySpendingOut(BaseModel):
    category: str
    category_label: str
    amount: float


class CardOut(BaseModel):
    id: str
    profile_id: str
    card_number: str
    card_holder_name: str
    bank_name: str
    monthly_limit: float
    monthly_spending: float
    remaining_limit: float
    daily_average: float
    by_category: List[CategorySpendingOut]
    transactions: List[CardTransaction]


def _log_scoped(path: str, auth: AuthContext, dependent_id: Optional[str], count: int) -> None:
    logger.info(
        "guardian-scoped request",
        extra={
            "method": "GET",
            "path": path,
            "guardian_id": auth.user_id,
            "dependent_id": dependent_id,
            "count": count,
        },
    )


def _alert_out(alert: Alert) -> AlertOut:
    return AlertOut(**alert.model_dump(), priority_label=label_for(ALERT_PRIORITY_LABELS, alert.priority))


@router.get("/violations", response_model=List[ViolationOut])
async def list_violations_endpoint(
    dependent_id: Optional[str] = Query(None, description="Optional dependent id"),
    auth: AuthContext = Depends(get_auth_context),
    dependent_id_header: Optional[str] = Header(None, alias=DEPENDENT_HEADER),
) -> List[ViolationOut]:
    resolved = resolve_dependent_id(dependent_id_header, dependent_id)
    violations = await list_violations(auth.store, auth.user_id, dependent_id=resolved)
    _log_scoped("/api/v1/violations", auth, resolved, len(violations))
    return [
        ViolationOut(
            **item.model_dump(),
            violation_type_label=label_for(VIOLATION_TYPE_LABELS, item.violation_type),
        )
        for item in violations
    ]


@router.get("/referrals", response_model=List[Referral])
async def list_referrals_endpoint(
    dependent_id: Optional[str] = Query(None, description="Optional dependent id"),
    auth: AuthContext = Depends(get_auth_context),
    dependent_id_header: Optional[str] = Header(None, alias=DEPENDENT_HEADER),
) -> List[Referral]:
    resolved = resolve_dependent_id(dependent_id_header, dependent_id)
    referrals = await list_referrals(auth.store, auth.user_id, dependent_id=resolved)
    _log_scoped("/api/v1/referrals", auth, resolved, len(referrals))
    return referrals


@router.get("/alerts", response_model=List[AlertOut])
async def list_alerts_endpoint(
    dependent_id: Optional[str] = Query(None, description="Optional dependent id"),
    auth: AuthContext = Depends(get_auth_context),
    dependent_id_header: Optional[str] = Header(None, alias=DEPENDENT_HEADER),
) -> List[AlertOut]:
    resolved = resolve_dependent_id(dependent_id_header, dependent_id)
    alerts = await list_alerts(auth.store, auth.user_id, dependent_id=resolved)
    _log_scoped("/api/v1/alerts", auth, resolved, len(alerts))
    return [_alert_out(alert) for alert in alerts]


@router.post("/alerts/{alert_id}/read", response_model=AlertOut)
async def mark_alert_read_endpoint(
    alert_id: str,
    auth: AuthContext = Depends(get_auth_context),
) -> AlertOut:
    alert_uuid = parse_uuid(alert_id, "alert_id")
    alert = await mark_read(auth.store, auth.user_id, alert_uuid)
    return _alert_out(alert)


@router.get("/academic-records", response_model=List[AcademicRecord])
async def list_academic_records_endpoint(
    dependent_id: Optional[str] = Query(None, description="Optional dependent id"),
    auth: AuthContext = Depends(get_auth_context),
    dependent_id_header: Optional[str] = Header(None, alias=DEPENDENT_HEADER),
) -> List[AcademicRecord]:
    resolved = resolve_dependent_id(dependent_id_header, dependent_id)
    records = await list_academic_records(auth.store, auth.user_id, dependent_id=resolved)
    _log_scoped("/api/v1/academic-records", auth, resolved, len(records))
    return records


@router.get("/medical-records", response_model=List[MedicalRecord])
async def list_medical_records_endpoint(
    dependent_id: Optional[str] = Query(None, description="Optional dependent id"),
    auth: AuthContext = Depends(get_auth_context),
    dependent_id_header: Optional[str] = Header(None, alias=DEPENDENT_HEADER),
) -> List[MedicalRecord]:
    resolved = resolve_dependent_id(dependent_id_header, dependent_id)
    records = await list_medical_records(auth.store, auth.user_id, dependent_id=resolved)
    _log_scoped("/api/v1/medical-records", auth, resolved, len(records))
    return records


@router.get("/cards", response_model=List[CardOut])
async def list_cards_endpoint(
    dependent_id: Optional[str] = Query(None, description="Optional dependent id"),
    auth: AuthContext = Depends(get_auth_context),
    dependent_id_header: Optional[str] = Header(None, alias=DEPENDENT_HEADER),
) -> List[CardOut]:
    resolved = resolve_dependent_id(dependent_id_header, dependent_id)
    today = today_utc()
    cards = await list_debit_cards(auth.store, auth.user_id, dependent_id=resolved, today=today)
    _log_scoped("/api/v1/cards", auth, resolved, len(cards))
    result: List[CardOut] = []
    for card in cards:
        spending = card_spending(card, today=today)
        result.append(
            CardOut(
                id=card.id,
                profile_id=card.profile_id,
                card_number=card.card_number,
                card_holder_name=card.card_holder_name,
                bank_name=card.bank_name,
                monthly_limit=spending.monthly_limit,
                monthly_spending=spending.monthly_spending,
                remaining_limit=spending.remaining_limit,
                daily_average=spending.daily_average,
                by_category=[
                    CategorySpendingOut(
                        category=item.category,
                        category_label=label_for(CARD_CATEGORY_LABELS, item.category),
                        amount=item.amount,
                    )
                    for item in spending.by_category
                ],
                transactions=card.transactions,
            )
        )
    return result
