from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Text, UniqueConstraint
from datetime import datetime
from database import Base


class User(Base):
    """
    Account record for the identity collaborator.
    subscription_status holds a SubscriptionTier value.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    subscription_status = Column(String, nullable=False, default="free")
    preferred_language = Column(String, nullable=False, default="en")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class LegalGuide(Base):
    """Editable guidance content per (state, language)"""
    __tablename__ = "legal_guides"
    __table_args__ = (UniqueConstraint("state", "language", name="uq_legal_guides_state_language"),)

    id = Column(Integer, primary_key=True, index=True)
    state = Column(String, nullable=False, index=True)
    language = Column(String, nullable=False, default="en")
    title = Column(String, nullable=False)
    content = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class InteractionRecord(Base):
    """Archived recording session for a signed-in user"""
    __tablename__ = "interaction_records"

    id = Column(Integer, primary_key=True, index=True)
    record_id = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    timestamp = Column(String, nullable=False, index=True)
    location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False, default=0)
    audio_url = Column(String, nullable=True)
    generated_card_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
