from enum import Enum

from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now


class ReportTarget(str, Enum):
    GROUPE = "GROUPE"
    CONCERT = "CONCERT"


class ReportStatus(str, Enum):
    PENDING = "PENDING"
    REVIEWED = "REVIEWED"
    DISMISSED = "DISMISSED"


class Report(Base):
    """Signalement d'un groupe ou d'un concert, traité par un administrateur"""
    __tablename__ = "reports"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    reporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    target_type = Column(SAEnum(ReportTarget, native_enum=False, length=20, create_constraint=True), nullable=False)
    target_id = Column(String(36), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(SAEnum(ReportStatus, native_enum=False, length=20, create_constraint=True), nullable=False,
                    default=ReportStatus.PENDING, index=True)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)

    reporter = relationship("User")

    def __repr__(self):
        return f"<Report(id={self.id}, target={self.target_type}:{self.target_id}, status='{self.status}')>"
