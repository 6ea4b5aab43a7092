"""Authenticated request context for guardian routes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Header

from .links import Actor
from .store import RecordStore, SupabaseStore
from .supabase import SupabaseClient, _parse_bearer_token, _supabase_config, _verify_access_token, parse_uuid

ADMIN_ROLE = "admin"


@dataclass
class AuthContext:
    user_id: str
    user_email: Optional[str]
    is_admin: bool
    access_token: str
    store: RecordStore

    @property
    def actor(self) -> Actor:
        return Actor(profile_id=self.user_id, is_admin=self.is_admin)


def _is_admin(payload: Dict[str, Any]) -> bool:
    app_metadata = payload.get("app_metadata") or {}
    return isinstance(app_metadata, dict) and app_metadata.get("role") == ADMIN_ROLE


async def get_auth_context(
    authorization: Optional[str] = Header(None),
) -> AuthContext:
    token = _parse_bearer_token(authorization)
    payload = await _verify_access_token(token)
    user_id = parse_uuid(payload.get("sub"), "user_id")
    user_email = payload.get("email") if isinstance(payload, dict) else None

    base_url, anon_key = _supabase_config()
    supabase = SupabaseClient(base_url=base_url, anon_key=anon_key, access_token=token)

    return AuthContext(
        user_id=user_id,
        user_email=user_email,
        is_admin=_is_admin(payload),
        access_token=token,
        store=SupabaseStore(supabase),
    )
