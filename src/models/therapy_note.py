"""
TherapyNote model - Documentation written after a session.

Notes are immutable once written. client_id duplicates the session's client
so notes can be listed per client without a join.
"""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, DateTime, ForeignKey, Index, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from src.models.base import Base


# =============================================================================
# SQLAlchemy Model
# =============================================================================

class TherapyNote(Base):
    """SQLAlchemy model for therapy_notes table."""

    __tablename__ = "therapy_notes"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    therapist_id = Column(PG_UUID(as_uuid=True), ForeignKey("therapists.id", ondelete="RESTRICT"), nullable=False)
    session_id = Column(PG_UUID(as_uuid=True), ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(PG_UUID(as_uuid=True), ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_therapy_notes_session_id", "session_id"),
        Index("ix_therapy_notes_client_id", "client_id"),
    )

    # Relationships
    session = relationship("Session", back_populates="therapy_notes")
    client = relationship("Client", back_populates="notes")

    def __repr__(self) -> str:
        return f"<TherapyNote(id={self.id}, session_id={self.session_id})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

class TherapyNoteCreate(BaseModel):
    """Schema for documenting a session."""
    session_id: UUID = Field(..., description="Session being documented")
    client_id: UUID = Field(..., description="Client the session belongs to")
    content: str = Field(..., min_length=1, description="Note content")


class TherapyNoteRead(TherapyNoteCreate):
    """Schema for reading note data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime
