"""
Client model - Therapy clients owned by a single therapist.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, Date, DateTime, Enum as SQLEnum, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from src.models.base import Base


# =============================================================================
# Enums
# =============================================================================

class ClientStatus(str, Enum):
    """Whether the client is currently seen by the practice."""
    ACTIVE = "active"
    INACTIVE = "inactive"


# =============================================================================
# SQLAlchemy Model
# =============================================================================

class Client(Base):
    """SQLAlchemy model for clients table."""

    __tablename__ = "clients"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    therapist_id = Column(PG_UUID(as_uuid=True), ForeignKey("therapists.id", ondelete="RESTRICT"), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    emergency_contact = Column(String(255), nullable=True)
    emergency_phone = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(Text, nullable=True)
    insurance = Column(Text, nullable=True)
    status = Column(SQLEnum(ClientStatus), nullable=False, default=ClientStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_clients_therapist_id", "therapist_id"),
    )

    # Relationships
    therapist = relationship("Therapist", back_populates="clients")
    sessions = relationship("Session", back_populates="client")
    notes = relationship("TherapyNote", back_populates="client")

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, therapist_id={self.therapist_id}, status={self.status})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

class ClientBase(BaseModel):
    """Base schema for client data."""
    first_name: str = Field(..., max_length=255)
    last_name: str = Field(..., max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    emergency_contact: Optional[str] = Field(None, max_length=255)
    emergency_phone: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    insurance: Optional[str] = None
    status: ClientStatus = Field(ClientStatus.ACTIVE, description="Client status")


class ClientCreate(ClientBase):
    """Schema for creating a new client."""
    pass


class ClientUpdate(BaseModel):
    """Schema for updating a client (profile edits and status toggles)."""
    first_name: Optional[str] = Field(None, max_length=255)
    last_name: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    emergency_contact: Optional[str] = Field(None, max_length=255)
    emergency_phone: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    insurance: Optional[str] = None
    status: Optional[ClientStatus] = None


class ClientRead(ClientBase):
    """Schema for reading client data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    created_at: datetime
    updated_at: datetime

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
