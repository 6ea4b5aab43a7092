from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import AuthContext, get_auth_context
from ..summaries import DependentOverview, GuardianSummary, dependent_overview, guardian_summary
from ..supabase import parse_uuid

router = APIRouter(prefix="/api/v1", tags=["summary"])


@router.get("/summary", response_model=GuardianSummary)
async def guardian_summary_endpoint(
    auth: AuthContext = Depends(get_auth_context),
) -> GuardianSummary:
    return await guardian_summary(auth.store, auth.user_id)


@router.get("/dependents/{dependent_id}/overview", response_model=DependentOverview)
async def dependent_overview_endpoint(
    dependent_id: str,
    auth: AuthContext = Depends(get_auth_context),
) -> DependentOverview:
    dependent_uuid = parse_uuid(dependent_id, "dependent_id")
    return await dependent_overview(auth.store, auth.user_id, dependent_uuid)
