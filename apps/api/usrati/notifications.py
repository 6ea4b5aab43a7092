"""Alerts emitted as side effects of link changes."""
from __future__ import annotations

import logging
from typing import Optional

from .config import CONFIG
from .errors import UsratiError
from .lifecycle import MAJORITY_AGE
from .schemas import Alert, AlertPriority
from .store import RecordStore

logger = logging.getLogger(__name__)

ALERTS = "alerts"
LINK_ALERT_TYPE = "guardian_link"
LINK_ALERT_TITLE = "تم ربط حسابك بولي أمر"
FALLBACK_GUARDIAN_NAME = "ولي الأمر"


def link_alert_message(guardian_name: str) -> str:
    return (
        f"تم ربط حسابك بحساب {guardian_name} كولي أمر. "
        f"سيتم إلغاء الربط تلقائيًا عند بلوغك {MAJORITY_AGE} سنة."
    )


async def emit_link_created(
    store: RecordStore,
    *,
    guardian_id: str,
    dependent_id: str,
) -> Optional[Alert]:
    """Tell the dependent a guardian linked to them.

    Best effort: a failure is logged and ``None`` returned, the link stands.
    """

    try:
        guardian = await store.find_one("profiles", {"id": guardian_id}, select="id,full_name")
        guardian_name = (guardian or {}).get("full_name") or FALLBACK_GUARDIAN_NAME
        row = await store.insert(
            ALERTS,
            {
                "profile_id": dependent_id,
                "alert_type": LINK_ALERT_TYPE,
                "title": LINK_ALERT_TITLE,
                "message": link_alert_message(guardian_name),
                "issuing_authority": CONFIG.alert_issuing_authority,
                "priority": AlertPriority.MEDIUM.value,
                "is_read": False,
            },
        )
        return Alert.model_validate(row)
    except (UsratiError, ValueError) as exc:
        # ValueError covers undecodable bodies and pydantic ValidationError.
        logger.warning(
            "link alert not delivered",
            extra={
                "guardian_id": guardian_id,
                "dependent_id": dependent_id,
                "error": getattr(exc, "code", type(exc).__name__),
            },
        )
        return None
