from pydantic import BaseModel, field_validator
from typing import List
from datetime import datetime
from uuid import UUID

from chaussettes.reports.models import ReportTarget, ReportStatus
from chaussettes.utils.sanitize import sanitize_text
from chaussettes.utils.validators import CAMEL_CONFIG

REASON_MIN_LENGTH = 10
REASON_MAX_LENGTH = 1000


class ReportCreate(BaseModel):
    model_config = CAMEL_CONFIG

    target_type: ReportTarget
    target_id: UUID
    reason: str

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, v):
        cleaned = sanitize_text(v)
        if len(cleaned) < REASON_MIN_LENGTH:
            raise ValueError("Veuillez décrire le problème (10 caractères minimum)")
        if len(cleaned) > REASON_MAX_LENGTH:
            raise ValueError(f"La description est trop longue (max {REASON_MAX_LENGTH} caractères)")
        return cleaned


class ReportStatusUpdate(BaseModel):
    status: ReportStatus

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v == ReportStatus.PENDING:
            raise ValueError("Statut invalide")
        return v


class ReportOut(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    reporter_id: str
    target_type: ReportTarget
    target_id: str
    reason: str
    status: ReportStatus
    created_at: datetime


class ReportList(BaseModel):
    reports: List[ReportOut]
    total: int
