from sqlalchemy import Column, String, DateTime, Boolean, Text, ForeignKey, JSON, Table
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now

# Association groupe <-> genre musical
groupe_genres = Table(
    "groupe_genres",
    Base.metadata,
    Column("groupe_id", String(36), ForeignKey("groupes.id", ondelete="CASCADE"), primary_key=True),
    Column("genre_id", String(36), ForeignKey("genres.id", ondelete="CASCADE"), primary_key=True),
)


class Genre(Base):
    __tablename__ = "genres"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    nom = Column(String(100), unique=True, nullable=False)
    is_custom = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<Genre(id={self.id}, nom='{self.nom}')>"


class Groupe(Base):
    __tablename__ = "groupes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    nom = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    youtube_videos = Column(JSON, default=list, nullable=False)

    # Localisation
    ville = Column(String(255), nullable=True)
    departement = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)

    # Contact
    contact_email = Column(String(255), nullable=True)
    contact_tel = Column(String(20), nullable=True)
    contact_site = Column(String(500), nullable=True)

    is_verified = Column(Boolean, default=False, nullable=False)
    is_boosted = Column(Boolean, default=False, nullable=False)
    is_visible = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)

    user = relationship("User", back_populates="groupe")
    genres = relationship("Genre", secondary=groupe_genres, lazy="selectin")
    concerts = relationship("Concert", back_populates="groupe")
    avis = relationship("Avis", back_populates="groupe", cascade="all, delete-orphan", passive_deletes=True)
    demandes_devis = relationship("DemandeDevis", back_populates="groupe", cascade="all, delete-orphan",
                                  passive_deletes=True)

    def __repr__(self):
        return f"<Groupe(id={self.id}, nom='{self.nom}')>"


class Organisateur(Base):
    __tablename__ = "organisateurs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    nom = Column(String(255), nullable=False)
    ville = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)

    user = relationship("User", back_populates="organisateur", lazy="joined")
    concerts = relationship("Concert", back_populates="organisateur", cascade="all, delete-orphan",
                            passive_deletes=True)
    contacts = relationship("Contact", back_populates="organisateur", cascade="all, delete-orphan",
                            passive_deletes=True)

    def __repr__(self):
        return f"<Organisateur(id={self.id}, nom='{self.nom}')>"
