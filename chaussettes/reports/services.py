import logging
from typing import List, Optional

from sqlalchemy import select, case
from sqlalchemy.ext.asyncio import AsyncSession

from chaussettes.auth.models import User
from chaussettes.accounts.models import Groupe
from chaussettes.concerts.models import Concert
from chaussettes.reports.models import Report, ReportStatus, ReportTarget
from chaussettes.reports.schemas import ReportCreate
from chaussettes.utils.errors import ApiError

logger = logging.getLogger(__name__)

TARGET_MODELS = {
    ReportTarget.GROUPE: Groupe,
    ReportTarget.CONCERT: Concert,
}


class ReportService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, reporter: User, data: ReportCreate) -> Report:
        target_id = str(data.target_id)
        if not await self.db.get(TARGET_MODELS[data.target_type], target_id):
            raise ApiError.not_found("Élément signalé introuvable")

        report = Report(
            reporter_id=reporter.id,
            target_type=data.target_type,
            target_id=target_id,
            reason=data.reason,
        )
        self.db.add(report)
        await self.db.commit()
        await self.db.refresh(report)
        logger.warning(f"Signalement {report.id}: {data.target_type.value} {target_id} par user={reporter.id}")
        return report

    async def list_reports(self, status: Optional[ReportStatus] = None) -> List[Report]:
        """Signalements en attente d'abord, puis du plus récent au plus ancien."""
        query = select(Report)
        if status is not None:
            query = query.where(Report.status == status)
        pending_first = case((Report.status == ReportStatus.PENDING, 0), else_=1)
        result = await self.db.execute(query.order_by(pending_first, Report.created_at.desc()))
        return list(result.scalars().all())

    async def set_status(self, report_id: str, status: ReportStatus) -> Report:
        report = await self.db.get(Report, report_id)
        if not report:
            raise ApiError.not_found("Signalement introuvable")
        report.status = status
        await self.db.commit()
        await self.db.refresh(report)
        logger.info(f"Signalement {report_id} passé en {status.value}")
        return report
