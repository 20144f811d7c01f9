from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from chaussettes.db.session import get_db
from chaussettes.auth.dependencies import get_current_user
from chaussettes.auth.models import User, UserRole
from chaussettes.auth.permissions import require_role
from chaussettes.reports.models import ReportStatus
from chaussettes.reports.services import ReportService
from chaussettes.reports.schemas import ReportCreate, ReportStatusUpdate, ReportOut, ReportList

router = APIRouter(tags=["Signalements"])


@router.post("/api/reports", status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await ReportService(db).create(user, payload)
    return {"success": True}


@router.get("/api/admin/reports", response_model=ReportList)
async def list_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status"),
    _: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    reports = await ReportService(db).list_reports(status_filter)
    return {"reports": reports, "total": len(reports)}


@router.patch("/api/admin/reports/{report_id}", response_model=ReportOut)
async def update_report(
    report_id: str,
    payload: ReportStatusUpdate,
    _: User = Depends(require_role(UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await ReportService(db).set_status(report_id, payload.status)
