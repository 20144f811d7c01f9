# chaussettes/auth/models.py
from enum import Enum

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from chaussettes.db.session import Base, generate_uuid
from chaussettes.utils.clock import now


class UserRole(str, Enum):
    GROUPE = "GROUPE"
    ORGANISATEUR = "ORGANISATEUR"
    ADMIN = "ADMIN"


class SubscriptionPlan(str, Enum):
    FREE = "FREE"
    PREMIUM = "PREMIUM"


class SubscriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"
    PAST_DUE = "PAST_DUE"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    role = Column(SAEnum(UserRole, native_enum=False, length=20, create_constraint=True), nullable=False, default=UserRole.ORGANISATEUR)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)

    subscription = relationship("Subscription", back_populates="user", uselist=False, cascade="all, delete-orphan")
    organisateur = relationship("Organisateur", back_populates="user", uselist=False, cascade="all, delete-orphan")
    groupe = relationship("Groupe", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    plan = Column(SAEnum(SubscriptionPlan, native_enum=False, length=20, create_constraint=True), nullable=False, default=SubscriptionPlan.FREE)
    status = Column(SAEnum(SubscriptionStatus, native_enum=False, length=20, create_constraint=True), nullable=False,
                    default=SubscriptionStatus.ACTIVE)
    current_period_end = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now, onupdate=now, nullable=False)

    user = relationship("User", back_populates="subscription")

    @property
    def is_premium(self) -> bool:
        return self.plan == SubscriptionPlan.PREMIUM and self.status == SubscriptionStatus.ACTIVE
