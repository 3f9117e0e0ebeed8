# Practice Models Package
# SQLAlchemy ORM models with Pydantic schemas

from src.models.base import Base, get_engine, get_session, init_db
from src.models.therapist import Therapist, TherapistProfile, TherapistRead
from src.models.client import Client, ClientCreate, ClientRead, ClientUpdate, ClientStatus
from src.models.session import (
    Recurrence,
    RecurrenceFrequency,
    Session,
    SessionCreate,
    SessionRead,
    SessionStatus,
    SessionType,
    SessionUpdate,
)
from src.models.therapy_note import TherapyNote, TherapyNoteCreate, TherapyNoteRead

__all__ = [
    # Base
    "Base",
    "get_engine",
    "get_session",
    "init_db",
    # Therapist
    "Therapist",
    "TherapistProfile",
    "TherapistRead",
    # Client
    "Client",
    "ClientCreate",
    "ClientRead",
    "ClientUpdate",
    "ClientStatus",
    # Session
    "Session",
    "SessionCreate",
    "SessionRead",
    "SessionUpdate",
    "SessionType",
    "SessionStatus",
    "Recurrence",
    "RecurrenceFrequency",
    # Therapy Note
    "TherapyNote",
    "TherapyNoteCreate",
    "TherapyNoteRead",
]
