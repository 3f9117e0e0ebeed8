"""
Session model - Scheduled or past appointments between therapist and client.

A session's status moves once: scheduled -> completed or scheduled ->
cancelled. The recurrence directive on SessionCreate only decides how many
rows are written at creation time and is never persisted.
"""

import datetime as dt
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import CheckConstraint, Column, Date, DateTime, Enum as SQLEnum, ForeignKey, Index, Integer, Text, Time
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from src.models.base import Base

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 180


# =============================================================================
# Enums
# =============================================================================

class SessionType(str, Enum):
    """Type of therapy session."""
    INITIAL = "initial"
    INDIVIDUAL = "individual"
    FAMILY = "family"
    COUPLE = "couple"
    FOLLOWUP = "followup"
    EMERGENCY = "emergency"
    TELEHEALTH = "telehealth"


class SessionStatus(str, Enum):
    """Status of a therapy session."""
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RecurrenceFrequency(str, Enum):
    """Cadence for pre-generating sessions at creation time."""
    NONE = "none"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


# Allowed status changes; completed and cancelled are terminal.
STATUS_TRANSITIONS: dict[SessionStatus, set[SessionStatus]] = {
    SessionStatus.SCHEDULED: {SessionStatus.COMPLETED, SessionStatus.CANCELLED},
    SessionStatus.COMPLETED: set(),
    SessionStatus.CANCELLED: set(),
}


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    """Return True if a session may move from current to target status."""
    if current == target:
        return True
    return target in STATUS_TRANSITIONS[current]


# =============================================================================
# SQLAlchemy Model
# =============================================================================

class Session(Base):
    """SQLAlchemy model for sessions table."""

    __tablename__ = "sessions"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    therapist_id = Column(PG_UUID(as_uuid=True), ForeignKey("therapists.id", ondelete="RESTRICT"), nullable=False)
    client_id = Column(PG_UUID(as_uuid=True), ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    date = Column(Date, nullable=False)
    time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False, default=60)
    type = Column(SQLEnum(SessionType), nullable=False, default=SessionType.INDIVIDUAL)
    status = Column(SQLEnum(SessionStatus), nullable=False, default=SessionStatus.SCHEDULED)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=dt.datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=dt.datetime.utcnow, onupdate=dt.datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            f"duration >= {MIN_DURATION_MINUTES} AND duration <= {MAX_DURATION_MINUTES}",
            name="session_duration_range",
        ),
        Index("ix_sessions_therapist_date", "therapist_id", "date"),
        Index("ix_sessions_client_id", "client_id"),
    )

    # Relationships
    client = relationship("Client", back_populates="sessions")
    therapy_notes = relationship("TherapyNote", back_populates="session", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Session(id={self.id}, client_id={self.client_id}, date={self.date}, status={self.status})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

class Recurrence(BaseModel):
    """Creation-time directive to pre-generate sessions on a fixed cadence."""
    frequency: RecurrenceFrequency = Field(RecurrenceFrequency.NONE, description="Repeat cadence")
    end_date: Optional[dt.date] = Field(None, description="Last date a repeat may fall on")


class SessionBase(BaseModel):
    """Base schema for session data."""
    client_id: UUID = Field(..., description="ID of the client")
    date: dt.date = Field(..., description="Calendar date of the session")
    time: dt.time = Field(..., description="Local start time")
    duration: int = Field(60, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES, description="Length in minutes")
    type: SessionType = Field(SessionType.INDIVIDUAL, description="Type of session")
    status: SessionStatus = Field(SessionStatus.SCHEDULED, description="Session status")
    notes: Optional[str] = Field(None, description="Scheduling notes")


class SessionCreate(SessionBase):
    """Schema for creating a new session."""
    recurrence: Optional[Recurrence] = Field(None, description="Optional repeat directive")


class SessionUpdate(BaseModel):
    """Schema for updating a session."""
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    duration: Optional[int] = Field(None, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES)
    type: Optional[SessionType] = None
    status: Optional[SessionStatus] = None
    notes: Optional[str] = None


class SessionRead(SessionBase):
    """Schema for reading session data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: dt.datetime
    updated_at: dt.datetime
