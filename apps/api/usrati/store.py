"""Record-store interface used by the guardianship core, and its Supabase backing."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .errors import NotFound, StoreError
from .supabase import SupabaseClient

Filters = Dict[str, Any]
# (field, descending)
Order = Tuple[str, bool]

_SET_TYPES = (list, tuple, set, frozenset)


class RecordStore(Protocol):
    """Equality / set-membership filters on single fields, single-key ordering."""

    async def find_one(
        self, collection: str, filters: Filters, *, select: str = "*"
    ) -> Optional[Dict[str, Any]]:
        ...

    async def find_many(
        self,
        collection: str,
        filters: Filters,
        *,
        order: Optional[Order] = None,
        select: str = "*",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        ...

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        *,
        unless: Optional[Filters] = None,
    ) -> Dict[str, Any]:
        """Patch one record. Rows matching any ``unless`` field value are left alone."""
        ...

    async def count(self, collection: str, filters: Filters) -> int:
        ...


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _format_member(value: Any) -> str:
    text = _format_value(value)
    if any(ch in text for ch in ',()"'):
        escaped = text.replace('"', '\\"')
        return f'"{escaped}"'
    return text


def build_params(
    filters: Filters,
    *,
    select: Optional[str] = None,
    order: Optional[Order] = None,
    limit: Optional[int] = None,
) -> Dict[str, str]:
    """Translate store filters into PostgREST query parameters."""

    params: Dict[str, str] = {}
    if select:
        params["select"] = select
    for field, value in filters.items():
        if isinstance(value, _SET_TYPES):
            members = ",".join(sorted(_format_member(item) for item in value))
            params[field] = f"in.({members})"
        elif value is None:
            params[field] = "is.null"
        else:
            params[field] = f"eq.{_format_value(value)}"
    if order:
        field, descending = order
        params["order"] = f"{field}.{'desc' if descending else 'asc'}"
    if limit is not None:
        params["limit"] = str(limit)
    return params


@dataclass
class SupabaseStore:
    client: SupabaseClient

    async def find_one(
        self, collection: str, filters: Filters, *, select: str = "*"
    ) -> Optional[Dict[str, Any]]:
        rows = await self.client.select(collection, build_params(filters, select=select, limit=1))
        return rows[0] if rows else None

    async def find_many(
        self,
        collection: str,
        filters: Filters,
        *,
        order: Optional[Order] = None,
        select: str = "*",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params = build_params(filters, select=select, order=order, limit=limit)
        return await self.client.select(collection, params)

    async def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        rows = await self.client.insert(collection, record)
        if not rows:
            raise StoreError(f"Supabase insert returned no row (table={collection})")
        return rows[0]

    async def update(
        self,
        collection: str,
        record_id: str,
        patch: Dict[str, Any],
        *,
        unless: Optional[Filters] = None,
    ) -> Dict[str, Any]:
        params = build_params({"id": record_id})
        for field, value in (unless or {}).items():
            params[field] = f"neq.{_format_value(value)}"
        rows = await self.client.update(collection, patch, params=params)
        if not rows:
            raise NotFound(f"{collection} {record_id} not found")
        return rows[0]

    async def count(self, collection: str, filters: Filters) -> int:
        return await self.client.count(collection, build_params(filters, select="id"))
