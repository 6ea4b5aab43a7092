"""Arabic display labels for enum-like values, used only in HTTP responses."""
from __future__ import annotations

from typing import Dict, Optional

RELATIONSHIP_LABELS = {
    "father": "أب",
    "mother": "أم",
    "legal_guardian": "وصي قانوني",
}

LINK_STATUS_LABELS = {
    "active": "نشط",
    "expired": "منتهي",
    "revoked": "ملغي",
}

VIOLATION_TYPE_LABELS = {
    "traffic": "مرورية",
    "security": "أمنية",
    "education": "تعليمية",
    "civil": "مدنية",
    "other": "أخرى",
}

ALERT_PRIORITY_LABELS = {
    "urgent": "عاجل",
    "high": "عالية",
    "medium": "متوسطة",
    "low": "منخفضة",
}

CARD_CATEGORY_LABELS = {
    "food": "طعام",
    "shopping": "تسوق",
    "entertainment": "ترفيه",
    "education": "تعليم",
    "health": "صحة",
    "transportation": "مواصلات",
}


def label_for(table: Dict[str, str], value: Optional[str]) -> str:
    """Label for ``value``, or the raw value when the table has none."""

    if value is None:
        return ""
    key = getattr(value, "value", value)
    return table.get(key, key)
