from __future__ import annotations

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..auth import AuthContext, get_auth_context
from ..labels import LINK_STATUS_LABELS, RELATIONSHIP_LABELS, label_for
from ..lifecycle import age_on, today_utc
from ..links import create_link, list_links, revoke_link
from ..schemas import GuardianLink, LinkStatus, Profile, Relationship
from ..supabase import parse_uuid

router = APIRouter(prefix="/api/v1", tags=["links"])
logger = logging.getLogger(__name__)


class CreateLinkPayload(BaseModel):
    national_id: str = Field(..., min_length=1, max_length=10)
    relationship: Relationship = Relationship.FATHER


class DependentOut(BaseModel):
    id: str
    national_id: str
    full_name: str
    date_of_birth: date
    age: int
    phone: Optional[str] = None
    email: Optional[str] = None


class LinkOut(BaseModel):
    id: str
    dependent_id: str
    relationship: Relationship
    relationship_label: str
    status: LinkStatus
    status_label: str
    auto_expiry_date: date
    dependent_consent: bool
    created_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    dependent: Optional[DependentOut] = None


def _dependent_out(profile: Optional[Profile], today: date) -> Optional[DependentOut]:
    if profile is None:
        return None
    return DependentOut(
        id=profile.id,
        national_id=profile.national_id,
        full_name=profile.full_name,
        date_of_birth=profile.date_of_birth,
        age=age_on(profile.date_of_birth, today),
        phone=profile.phone,
        email=profile.email,
    )


def _link_out(link: GuardianLink, today: date) -> LinkOut:
    return LinkOut(
        id=link.id,
        dependent_id=link.dependent_id,
        relationship=link.relationship,
        relationship_label=label_for(RELATIONSHIP_LABELS, link.relationship),
        status=link.status,
        status_label=label_for(LINK_STATUS_LABELS, link.status),
        auto_expiry_date=link.auto_expiry_date,
        dependent_consent=link.dependent_consent,
        created_at=link.created_at,
        revoked_at=link.revoked_at,
        dependent=_dependent_out(link.dependent, today),
    )


@router.get("/links", response_model=List[LinkOut])
async def list_links_endpoint(
    auth: AuthContext = Depends(get_auth_context),
) -> List[LinkOut]:
    today = today_utc()
    links = await list_links(auth.store, auth.user_id, today=today)
    logger.info(
        "guardian-scoped request",
        extra={"method": "GET", "path": "/api/v1/links", "guardian_id": auth.user_id, "count": len(links)},
    )
    return [_link_out(link, today) for link in links]


@router.post("/links", response_model=LinkOut, status_code=201)
async def create_link_endpoint(
    payload: CreateLinkPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> LinkOut:
    national_id = payload.national_id.strip()
    if not national_id:
        raise HTTPException(status_code=400, detail="national_id is required")
    today = today_utc()
    link = await create_link(auth.store, auth.user_id, national_id, payload.relationship, today=today)
    return _link_out(link, today)


@router.post("/links/{link_id}/revoke", response_model=LinkOut)
async def revoke_link_endpoint(
    link_id: str,
    auth: AuthContext = Depends(get_auth_context),
) -> LinkOut:
    link_uuid = parse_uuid(link_id, "link_id")
    link = await revoke_link(auth.store, link_uuid, auth.actor)
    return _link_out(link, today_utc())


@router.get("/dependents", response_model=List[DependentOut])
async def list_dependents_endpoint(
    auth: AuthContext = Depends(get_auth_context),
) -> List[DependentOut]:
    today = today_utc()
    links = await list_links(auth.store, auth.user_id, today=today)
    dependents = []
    for link in links:
        if link.status != LinkStatus.ACTIVE:
            continue
        out = _dependent_out(link.dependent, today)
        if out is not None:
            dependents.append(out)
    return dependents
