from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Index, CheckConstraint, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now


class InscriptionStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    WAITLISTED = "WAITLISTED"
    CANCELLED = "CANCELLED"


class Inscription(Base):
    __tablename__ = "inscriptions"
    __table_args__ = (
        # Une seule inscription active par (concert, email)
        Index(
            "uq_inscriptions_active_email",
            "concert_id", "email",
            unique=True,
            postgresql_where=text("status <> 'CANCELLED'"),
            sqlite_where=text("status <> 'CANCELLED'"),
        ),
        CheckConstraint("nombre_personnes >= 1", name="ck_inscriptions_nombre_personnes"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    concert_id = Column(String(36), ForeignKey("concerts.id", ondelete="CASCADE"), nullable=False, index=True)

    nom = Column(String(255), nullable=False)
    prenom = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False, index=True)
    telephone = Column(String(20), nullable=True)
    nombre_personnes = Column(Integer, nullable=False, default=1)
    status = Column(SAEnum(InscriptionStatus, native_enum=False, length=20, create_constraint=True), nullable=False,
                    default=InscriptionStatus.CONFIRMED)

    # Jeton de gestion sans compte (lien magique)
    management_token = Column(String(64), nullable=True)
    show_in_guest_list = Column(Boolean, default=True, nullable=False)

    # Invitation à laisser un avis après le concert
    review_token = Column(String(64), nullable=True, unique=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)

    concert = relationship("Concert", back_populates="inscriptions")

    def __repr__(self):
        return f"<Inscription(id={self.id}, concert_id={self.concert_id}, status='{self.status}')>"

    @property
    def full_name(self):
        return " ".join(filter(None, [self.prenom, self.nom])).strip()
