"""
Therapist model - Account owning clients, sessions and notes.

The id is the user id issued by the authentication service, so the
``x-user-id`` identity maps directly onto a row here. Billing columns link
the account to the payment provider's customer and subscription.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship

from src.models.base import Base


# =============================================================================
# SQLAlchemy Model
# =============================================================================

class Therapist(Base):
    """SQLAlchemy model for therapists table."""

    __tablename__ = "therapists"

    id = Column(PG_UUID(as_uuid=True), primary_key=True)
    email = Column(String(255), nullable=False)
    practice_name = Column(String(255), nullable=True)
    billing_customer_id = Column(String(255), unique=True, nullable=True, index=True)
    billing_subscription_id = Column(String(255), nullable=True)
    subscription_status = Column(String(50), nullable=False, default="inactive")
    subscription_plan = Column(String(100), nullable=True)
    subscription_ends_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    clients = relationship("Client", back_populates="therapist")

    def __repr__(self) -> str:
        return f"<Therapist(id={self.id}, subscription_status={self.subscription_status})>"


# =============================================================================
# Pydantic Schemas
# =============================================================================

class TherapistProfile(BaseModel):
    """Schema for registering or updating the therapist profile."""
    email: str = Field(..., max_length=255, description="Account email address")
    practice_name: Optional[str] = Field(None, max_length=255, description="Name of the practice")


class TherapistRead(TherapistProfile):
    """Schema for reading therapist data."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    subscription_status: str
    subscription_plan: Optional[str] = None
    subscription_ends_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
