from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..auth import AuthContext, get_auth_context
from ..identity import get_profile, update_contact
from ..schemas import Profile

router = APIRouter(prefix="/api/v1", tags=["profile"])


class ContactPayload(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None


@router.get("/me", response_model=Profile)
async def get_me(auth: AuthContext = Depends(get_auth_context)) -> Profile:
    return await get_profile(auth.store, auth.user_id)


@router.patch("/me/contact", response_model=Profile)
async def update_my_contact(
    payload: ContactPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Profile:
    fields = payload.model_fields_set
    if not fields:
        raise HTTPException(status_code=400, detail="phone or email is required")
    changes = {name: getattr(payload, name) for name in fields}
    return await update_contact(auth.store, auth.user_id, **changes)
