from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now


class DemandeDevis(Base):
    __tablename__ = "demandes_devis"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    groupe_id = Column(String(36), ForeignKey("groupes.id", ondelete="CASCADE"), nullable=False, index=True)

    nom = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    telephone = Column(String(20), nullable=True)
    date_souhaitee = Column(DateTime(timezone=True), nullable=False)
    nombre_invites = Column(String(20), nullable=True)  # texte libre ("30-40")
    lieu = Column(String(255), nullable=False)
    type_evenement = Column(String(50), nullable=True)
    message = Column(Text, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)

    groupe = relationship("Groupe", back_populates="demandes_devis")

    def __repr__(self):
        return f"<DemandeDevis(id={self.id}, groupe_id={self.groupe_id}, is_read={self.is_read})>"
