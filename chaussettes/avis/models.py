from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, ForeignKey, Index, CheckConstraint, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now


class AuteurType(str, Enum):
    GUEST = "GUEST"
    ORGANIZER = "ORGANIZER"


class Avis(Base):
    __tablename__ = "avis"
    __table_args__ = (
        Index(
            "uq_avis_concert_email",
            "concert_id", "auteur_email",
            unique=True,
            postgresql_where=text("concert_id IS NOT NULL"),
            sqlite_where=text("concert_id IS NOT NULL"),
        ),
        Index(
            "uq_avis_groupe_email",
            "groupe_id", "auteur_email",
            unique=True,
            postgresql_where=text("concert_id IS NULL"),
            sqlite_where=text("concert_id IS NULL"),
        ),
        CheckConstraint("note BETWEEN 1 AND 5", name="ck_avis_note"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    groupe_id = Column(String(36), ForeignKey("groupes.id", ondelete="CASCADE"), nullable=False, index=True)
    concert_id = Column(String(36), ForeignKey("concerts.id", ondelete="SET NULL"), nullable=True)

    auteur_type = Column(SAEnum(AuteurType, native_enum=False, length=20, create_constraint=True), nullable=False)
    auteur_email = Column(String(255), nullable=False)
    auteur_nom = Column(String(255), nullable=True)
    note = Column(Integer, nullable=False)
    commentaire = Column(Text, nullable=True)
    is_visible = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)

    groupe = relationship("Groupe", back_populates="avis")

    def __repr__(self):
        return f"<Avis(id={self.id}, groupe_id={self.groupe_id}, note={self.note})>"
