from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now


class ConcertStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    PAST = "PAST"
    CANCELLED = "CANCELLED"


class Concert(Base):
    __tablename__ = "concerts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organisateur_id = Column(String(36), ForeignKey("organisateurs.id", ondelete="CASCADE"), nullable=False,
                             index=True)
    groupe_id = Column(String(36), ForeignKey("groupes.id", ondelete="SET NULL"), nullable=True, index=True)

    titre = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)

    adresse_complete = Column(Text, nullable=True)
    adresse_publique = Column(String(255), nullable=True)
    ville = Column(String(255), nullable=True)

    slug = Column(String(255), unique=True, nullable=False, index=True)
    show_groupe = Column(Boolean, default=True, nullable=False)
    max_invites = Column(Integer, nullable=True)
    status = Column(SAEnum(ConcertStatus, native_enum=False, length=20, create_constraint=True), nullable=False,
                    default=ConcertStatus.DRAFT, index=True)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)

    organisateur = relationship("Organisateur", back_populates="concerts")
    groupe = relationship("Groupe", back_populates="concerts")
    inscriptions = relationship("Inscription", back_populates="concert", cascade="all, delete-orphan",
                                passive_deletes=True)

    def __repr__(self):
        return f"<Concert(id={self.id}, titre='{self.titre}', date='{self.date}', status='{self.status}')>"
