from __future__ import annotations

import asyncio

import pytest

from store_helpers import InMemoryStore, profile_row
from usrati.errors import NotFound
from usrati.identity import find_by_national_id, get_profile, update_contact


def _store() -> InMemoryStore:
    return InMemoryStore({"profiles": [profile_row("p-1", "1234567890", "Hessa", "2011-02-03")]})


def test_find_by_national_id_strips_input() -> None:
    profile = asyncio.run(find_by_national_id(_store(), " 1234567890 "))
    assert profile.id == "p-1"


def test_blank_national_id_is_not_found() -> None:
    store = _store()
    with pytest.raises(NotFound):
        asyncio.run(find_by_national_id(store, "   "))
    assert store.calls == []


def test_update_contact_only_touches_contact_fields() -> None:
    store = _store()

    updated = asyncio.run(update_contact(store, "p-1", phone="0500000000"))

    assert updated.phone == "0500000000"
    assert updated.email is None
    _, _, _, patch = [call for call in store.calls if call[0] == "update"][0]
    assert set(patch) == {"phone", "updated_at"}


def test_update_contact_without_changes_skips_write() -> None:
    store = _store()
    profile = asyncio.run(update_contact(store, "p-1"))
    assert profile.full_name == "Hessa"
    assert not [call for call in store.calls if call[0] == "update"]


def test_get_profile_missing() -> None:
    with pytest.raises(NotFound):
        asyncio.run(get_profile(_store(), "nope"))
