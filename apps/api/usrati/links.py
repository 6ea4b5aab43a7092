"""Guardian link registry: age-gated creation, revocation, listing."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import List, Optional

from .errors import AdultDependent, AlreadyRevoked, DuplicateLink, NotFound, UniqueViolation
from .identity import find_by_national_id
from .lifecycle import MAJORITY_AGE, age_on, auto_expiry_date, mark_expired_if_due, today_utc
from .notifications import emit_link_created
from .schemas import GuardianLink, LinkStatus, Relationship
from .store import RecordStore

logger = logging.getLogger(__name__)

GUARDIAN_LINKS = "guardian_links"
DEPENDENT_EMBED = "*,dependent:profiles!guardian_links_dependent_id_fkey(*)"


@dataclass(frozen=True)
class Actor:
    """Who is asking for a link change."""

    profile_id: str
    is_admin: bool = False


async def create_link(
    store: RecordStore,
    guardian_id: str,
    dependent_national_id: str,
    relationship: Relationship,
    *,
    today: Optional[date] = None,
) -> GuardianLink:
    today = today or today_utc()
    dependent = await find_by_national_id(store, dependent_national_id)

    age = age_on(dependent.date_of_birth, today)
    if age >= MAJORITY_AGE:
        raise AdultDependent(
            f"Dependent is {age}; links require an age under {MAJORITY_AGE}"
        )

    record = {
        "guardian_id": guardian_id,
        "dependent_id": dependent.id,
        "relationship": Relationship(relationship).value,
        "status": LinkStatus.ACTIVE.value,
        "auto_expiry_date": auto_expiry_date(dependent.date_of_birth).isoformat(),
        "dependent_consent": False,
    }
    # Uniqueness is enforced by the store so concurrent requests cannot both win.
    try:
        row = await store.insert(GUARDIAN_LINKS, record)
    except UniqueViolation as exc:
        raise DuplicateLink("Guardian is already linked to this dependent") from exc

    link = GuardianLink.model_validate(row)
    logger.info(
        "guardian link created",
        extra={"link_id": link.id, "guardian_id": guardian_id, "dependent_id": dependent.id},
    )
    await emit_link_created(store, guardian_id=guardian_id, dependent_id=dependent.id)
    return link.model_copy(update={"dependent": dependent})


async def revoke_link(
    store: RecordStore,
    link_id: str,
    actor: Actor,
    *,
    now: Optional[datetime] = None,
) -> GuardianLink:
    row = await store.find_one(GUARDIAN_LINKS, {"id": link_id})
    if row is None or (not actor.is_admin and row.get("guardian_id") != actor.profile_id):
        raise NotFound(f"Link {link_id} not found")
    link = GuardianLink.model_validate(row)
    if link.status == LinkStatus.REVOKED:
        raise AlreadyRevoked(f"Link {link_id} was revoked at {link.revoked_at}")

    now = now or datetime.now(timezone.utc)
    # Conditional write: a concurrent revoke that landed first keeps its revoked_at.
    try:
        updated = await store.update(
            GUARDIAN_LINKS,
            link_id,
            {"status": LinkStatus.REVOKED.value, "revoked_at": now.isoformat()},
            unless={"status": LinkStatus.REVOKED.value},
        )
    except NotFound as exc:
        raise AlreadyRevoked(f"Link {link_id} was already revoked") from exc
    logger.info(
        "guardian link revoked",
        extra={"link_id": link_id, "actor_id": actor.profile_id, "admin": actor.is_admin},
    )
    return GuardianLink.model_validate(updated)


async def list_links(
    store: RecordStore,
    guardian_id: str,
    *,
    today: Optional[date] = None,
) -> List[GuardianLink]:
    """Every link of the guardian, newest first, expiry applied."""

    today = today or today_utc()
    rows = await store.find_many(
        GUARDIAN_LINKS,
        {"guardian_id": guardian_id},
        order=("created_at", True),
        select=DEPENDENT_EMBED,
    )
    return [mark_expired_if_due(GuardianLink.model_validate(row), today=today) for row in rows]
