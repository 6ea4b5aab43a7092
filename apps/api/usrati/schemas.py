"""Pydantic schemas shared across the API."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Relationship(str, Enum):
    FATHER = "father"
    MOTHER = "mother"
    LEGAL_GUARDIAN = "legal_guardian"


class LinkStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"


class Profile(BaseModel):
    id: str
    national_id: str
    full_name: str
    date_of_birth: date
    phone: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class GuardianLink(BaseModel):
    id: str
    guardian_id: str
    dependent_id: str
    relationship: Relationship
    status: LinkStatus
    auto_expiry_date: date
    # Recorded for post-majority continuation; never gates an active link.
    dependent_consent: bool = False
    consent_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    dependent: Optional[Profile] = None


class ViolationType(str, Enum):
    TRAFFIC = "traffic"
    SECURITY = "security"
    EDUCATION = "education"
    CIVIL = "civil"
    OTHER = "other"


class ViolationStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class Violation(BaseModel):
    id: str
    profile_id: str
    violation_type: ViolationType
    violation_code: str
    description: str
    issuing_authority: str
    violation_date: date
    amount: float = 0.0
    status: ViolationStatus
    location: Optional[str] = None
    created_at: Optional[datetime] = None


class ReferralStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    UNDER_REVIEW = "under_review"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Referral(BaseModel):
    id: str
    profile_id: str
    referral_type: str
    issuing_authority: str
    case_number: str
    description: str
    referral_date: date
    status: ReferralStatus
    severity: Severity
    created_at: Optional[datetime] = None


class AlertPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Alert(BaseModel):
    id: str
    profile_id: str
    alert_type: str
    title: str
    message: str
    issuing_authority: str
    priority: AlertPriority
    is_read: bool = False
    related_violation_id: Optional[str] = None
    related_referral_id: Optional[str] = None
    created_at: Optional[datetime] = None


class AcademicStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class AcademicRecord(BaseModel):
    id: str
    profile_id: str
    academic_year: str
    semester: str
    grade_level: str
    school_name: str
    gpa: float
    attendance_rate: float
    behavior_grade: str
    status: AcademicStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class MedicalRecord(BaseModel):
    id: str
    profile_id: str
    record_type: str
    diagnosis: str
    treatment: Optional[str] = None
    hospital_name: str
    doctor_name: Optional[str] = None
    visit_date: date
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class CardTransaction(BaseModel):
    id: str
    card_id: str
    merchant_name: str
    category: str
    amount: float
    transaction_date: datetime
    location: Optional[str] = None


class DebitCard(BaseModel):
    id: str
    profile_id: str
    card_number: str
    card_holder_name: str
    bank_name: str
    monthly_limit: float = 0.0
    is_active: bool = True
    transactions: List[CardTransaction] = Field(default_factory=list)
