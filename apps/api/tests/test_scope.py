from __future__ import annotations

import asyncio
from datetime import date
from uuid import uuid4

import pytest

from store_helpers import InMemoryStore, link_row, profile_row
from usrati.errors import NotFound
from usrati.records import (
    list_academic_records,
    list_alerts,
    list_debit_cards,
    list_medical_records,
    list_referrals,
    list_violations,
    mark_read,
)
from usrati.scope import active_dependents

TODAY = date(2024, 6, 1)
GUARDIAN_ID = str(uuid4())
ACTIVE_ID = str(uuid4())
STALE_ID = str(uuid4())
REVOKED_ID = str(uuid4())
OTHER_GUARDIAN_ID = str(uuid4())


def _violation(profile_id: str, violation_date: str, *, status: str = "pending", amount: float = 150) -> dict:
    return {
        "id": str(uuid4()),
        "profile_id": profile_id,
        "violation_type": "traffic",
        "violation_code": "TR-101",
        "description": "Speeding",
        "issuing_authority": "Traffic Department",
        "violation_date": violation_date,
        "amount": amount,
        "status": status,
    }


def _alert(profile_id: str, *, is_read: bool = False) -> dict:
    return {
        "id": str(uuid4()),
        "profile_id": profile_id,
        "alert_type": "school",
        "title": "Absence",
        "message": "Absent today",
        "issuing_authority": "School",
        "priority": "high",
        "is_read": is_read,
        "created_at": "2024-05-30T08:00:00+00:00",
    }


def _store() -> InMemoryStore:
    return InMemoryStore(
        {
            "profiles": [
                profile_row(ACTIVE_ID, "2000000001", "Lama", "2012-04-01"),
                profile_row(STALE_ID, "2000000002", "Fahad", "2006-03-01"),
                profile_row(REVOKED_ID, "2000000003", "Noura", "2011-09-09"),
            ],
            "guardian_links": [
                link_row(GUARDIAN_ID, ACTIVE_ID, auto_expiry_date="2030-04-01"),
                # persisted as active, but past its auto-expiry date
                link_row(GUARDIAN_ID, STALE_ID, auto_expiry_date="2024-03-01"),
                link_row(GUARDIAN_ID, REVOKED_ID, status="revoked", auto_expiry_date="2029-09-09"),
                link_row(OTHER_GUARDIAN_ID, REVOKED_ID, auto_expiry_date="2029-09-09"),
            ],
            "violations": [
                _violation(ACTIVE_ID, "2024-05-01"),
                _violation(ACTIVE_ID, "2024-05-20", status="paid"),
                _violation(STALE_ID, "2024-05-02"),
                _violation(REVOKED_ID, "2024-05-03"),
            ],
        }
    )


def test_active_dependents_excludes_revoked_and_expired() -> None:
    scope = asyncio.run(active_dependents(_store(), GUARDIAN_ID, today=TODAY))
    assert scope == frozenset({ACTIVE_ID})


def test_active_dependents_before_expiry_includes_stale_link() -> None:
    scope = asyncio.run(active_dependents(_store(), GUARDIAN_ID, today=date(2024, 2, 29)))
    assert scope == frozenset({ACTIVE_ID, STALE_ID})


def test_violations_are_limited_to_scope_and_newest_first() -> None:
    violations = asyncio.run(list_violations(_store(), GUARDIAN_ID, today=TODAY))

    assert [v.profile_id for v in violations] == [ACTIVE_ID, ACTIVE_ID]
    assert violations[0].violation_date == date(2024, 5, 20)


@pytest.mark.parametrize("dependent_id", [STALE_ID, REVOKED_ID, "not-linked"])
def test_out_of_scope_dependent_returns_empty(dependent_id: str) -> None:
    store = _store()

    assert asyncio.run(list_violations(store, GUARDIAN_ID, dependent_id=dependent_id, today=TODAY)) == []
    assert not [call for call in store.calls if call[1] == "violations"]


def test_guardian_without_links_sees_nothing() -> None:
    store = _store()
    assert asyncio.run(list_medical_records(store, str(uuid4()), today=TODAY)) == []
    assert asyncio.run(list_alerts(store, str(uuid4()), today=TODAY)) == []


def test_mark_read_is_idempotent() -> None:
    store = _store()
    alert = _alert(ACTIVE_ID)
    store.rows("alerts").append(alert)

    first = asyncio.run(mark_read(store, GUARDIAN_ID, alert["id"], today=TODAY))
    second = asyncio.run(mark_read(store, GUARDIAN_ID, alert["id"], today=TODAY))

    assert first.is_read is True
    assert second == first
    updates = [call for call in store.calls if call[0] == "update"]
    assert len(updates) == 1


def test_dependent_can_mark_own_alert() -> None:
    store = _store()
    alert = _alert(STALE_ID)
    store.rows("alerts").append(alert)

    result = asyncio.run(mark_read(store, STALE_ID, alert["id"], today=TODAY))
    assert result.is_read is True


def test_mark_read_outside_scope_is_not_found() -> None:
    store = _store()
    alert = _alert(REVOKED_ID)
    store.rows("alerts").append(alert)

    with pytest.raises(NotFound):
        asyncio.run(mark_read(store, GUARDIAN_ID, alert["id"], today=TODAY))
    assert store.rows("alerts")[0]["is_read"] is False


def test_debit_cards_load_recent_transactions() -> None:
    store = _store()
    card_id = str(uuid4())
    store.rows("debit_cards").extend(
        [
            {
                "id": card_id,
                "profile_id": ACTIVE_ID,
                "card_number": "**** 4821",
                "card_holder_name": "Lama",
                "bank_name": "Al Rajhi",
                "monthly_limit": 1000,
                "is_active": True,
            },
            {
                "id": str(uuid4()),
                "profile_id": ACTIVE_ID,
                "card_number": "**** 0000",
                "card_holder_name": "Lama",
                "bank_name": "Al Rajhi",
                "monthly_limit": 500,
                "is_active": False,
            },
        ]
    )
    store.rows("card_transactions").extend(
        {
            "id": str(uuid4()),
            "card_id": card_id,
            "merchant_name": f"Shop {day}",
            "category": "food",
            "amount": 10,
            "transaction_date": f"2024-05-{day:02d}T12:00:00+00:00",
        }
        for day in range(1, 31)
    )
    store.rows("card_transactions").extend(
        {
            "id": str(uuid4()),
            "card_id": card_id,
            "merchant_name": "Bookstore",
            "category": "education",
            "amount": 40,
            "transaction_date": f"2024-04-{day:02d}T12:00:00+00:00",
        }
        for day in range(1, 31)
    )

    cards = asyncio.run(list_debit_cards(store, GUARDIAN_ID, today=TODAY))

    assert [card.id for card in cards] == [card_id]
    assert len(cards[0].transactions) == 50
    assert cards[0].transactions[0].merchant_name == "Shop 30"


def _referral(profile_id: str, referral_date: str) -> dict:
    return {
        "id": str(uuid4()),
        "profile_id": profile_id,
        "referral_type": "school",
        "issuing_authority": "Education Office",
        "case_number": f"CASE-{referral_date}",
        "description": "Repeated absence",
        "referral_date": referral_date,
        "status": "open",
        "severity": "medium",
    }


def _academic(profile_id: str, academic_year: str) -> dict:
    return {
        "id": str(uuid4()),
        "profile_id": profile_id,
        "academic_year": academic_year,
        "semester": "first",
        "grade_level": "6",
        "school_name": "Al Noor School",
        "gpa": 4.5,
        "attendance_rate": 97.0,
        "behavior_grade": "excellent",
        "status": "active",
    }


def test_referrals_are_limited_to_scope_and_newest_first() -> None:
    store = _store()
    store.rows("referrals").extend(
        [
            _referral(ACTIVE_ID, "2024-01-10"),
            _referral(ACTIVE_ID, "2024-04-02"),
            _referral(STALE_ID, "2024-05-01"),
            _referral(REVOKED_ID, "2024-05-02"),
        ]
    )

    referrals = asyncio.run(list_referrals(store, GUARDIAN_ID, today=TODAY))

    assert [r.profile_id for r in referrals] == [ACTIVE_ID, ACTIVE_ID]
    assert [r.referral_date for r in referrals] == [date(2024, 4, 2), date(2024, 1, 10)]


def test_academic_records_are_limited_to_scope_and_latest_year_first() -> None:
    store = _store()
    store.rows("academic_records").extend(
        [
            _academic(ACTIVE_ID, "2022-2023"),
            _academic(ACTIVE_ID, "2023-2024"),
            _academic(STALE_ID, "2023-2024"),
        ]
    )

    records = asyncio.run(list_academic_records(store, GUARDIAN_ID, today=TODAY))

    assert [r.profile_id for r in records] == [ACTIVE_ID, ACTIVE_ID]
    assert [r.academic_year for r in records] == ["2023-2024", "2022-2023"]


@pytest.mark.parametrize("dependent_id", [STALE_ID, REVOKED_ID, "not-linked"])
def test_referrals_and_academic_records_fail_closed(dependent_id: str) -> None:
    store = _store()
    store.rows("referrals").append(_referral(dependent_id, "2024-05-01"))
    store.rows("academic_records").append(_academic(dependent_id, "2023-2024"))

    assert asyncio.run(list_referrals(store, GUARDIAN_ID, dependent_id=dependent_id, today=TODAY)) == []
    assert asyncio.run(list_academic_records(store, GUARDIAN_ID, dependent_id=dependent_id, today=TODAY)) == []
    queried = {call[1] for call in store.calls if call[0] == "find_many"}
    assert not queried & {"referrals", "academic_records"}
