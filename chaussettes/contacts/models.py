from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now


class ContactSource(str, Enum):
    INSCRIPTION = "INSCRIPTION"
    MANUAL = "MANUAL"
    IMPORT = "IMPORT"


class Contact(Base):
    __tablename__ = "contacts"
    __table_args__ = (
        UniqueConstraint("organisateur_id", "email", name="uq_contacts_organisateur_email"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organisateur_id = Column(String(36), ForeignKey("organisateurs.id", ondelete="CASCADE"), nullable=False,
                             index=True)
    email = Column(String(255), nullable=False)
    nom = Column(String(255), nullable=True)
    telephone = Column(String(20), nullable=True)
    tags = Column(JSON, default=list, nullable=False)
    source_type = Column(SAEnum(ContactSource, native_enum=False, length=20, create_constraint=True), nullable=False,
                         default=ContactSource.INSCRIPTION)
    nombre_participations = Column(Integer, default=0, nullable=False)
    dernier_concert_id = Column(String(36), ForeignKey("concerts.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)

    organisateur = relationship("Organisateur", back_populates="contacts")

    def __repr__(self):
        return f"<Contact(id={self.id}, email='{self.email}', participations={self.nombre_participations})>"
