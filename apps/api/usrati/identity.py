"""Person lookups and the contact-only profile update."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from .errors import NotFound
from .schemas import Profile
from .store import RecordStore

PROFILES = "profiles"

_UNSET = object()


async def get_profile(store: RecordStore, profile_id: str) -> Profile:
    row = await store.find_one(PROFILES, {"id": profile_id})
    if row is None:
        raise NotFound(f"Profile {profile_id} not found")
    return Profile.model_validate(row)


async def find_by_national_id(store: RecordStore, national_id: str) -> Profile:
    cleaned = (national_id or "").strip()
    if not cleaned:
        raise NotFound("No profile for an empty national id")
    row = await store.find_one(PROFILES, {"national_id": cleaned})
    if row is None:
        raise NotFound(f"No profile with national id {cleaned}")
    return Profile.model_validate(row)


async def update_contact(
    store: RecordStore,
    profile_id: str,
    *,
    phone: object = _UNSET,
    email: object = _UNSET,
) -> Profile:
    """Patch phone and/or email; every other profile field is immutable."""

    current = await get_profile(store, profile_id)
    patch: Dict[str, Any] = {}
    if phone is not _UNSET:
        patch["phone"] = str(phone or "").strip() or None
    if email is not _UNSET:
        patch["email"] = str(email or "").strip() or None
    if not patch:
        return current
    patch["updated_at"] = datetime.now(timezone.utc).isoformat()
    row = await store.update(PROFILES, profile_id, patch)
    return Profile.model_validate(row)
