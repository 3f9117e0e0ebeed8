"""
Practice Service

Therapist-scoped persistence for the practice's records:
- Therapist profile registration
- Client create / update / list (no delete path)
- Session create (with recurrence expansion) / update / complete / cancel / delete
- Therapy note creation, which completes the documented session in the
  same transaction

Every query is filtered by the acting therapist. A row owned by another
therapist raises AccessDeniedError; a missing row raises NotFoundError.
"""

from contextlib import contextmanager
from datetime import date, datetime
from typing import Callable, Iterator, Optional
from uuid import UUID

import structlog

from src.models.client import Client, ClientCreate, ClientRead, ClientUpdate
from src.models.session import (
    Session,
    SessionCreate,
    SessionRead,
    SessionStatus,
    SessionUpdate,
    can_transition,
)
from src.models.therapist import Therapist, TherapistProfile, TherapistRead
from src.models.therapy_note import TherapyNote, TherapyNoteCreate, TherapyNoteRead
from src.services.scheduling import expand_recurrence

logger = structlog.get_logger(__name__)

# Nullable session columns an edit may reset to null; nulls on others are ignored
CLEARABLE_SESSION_FIELDS = {"notes"}


class PracticeError(Exception):
    """Exception for practice service errors."""
    pass


class NotFoundError(PracticeError):
    """The requested row does not exist."""
    pass


class AccessDeniedError(PracticeError):
    """The row belongs to another therapist."""
    pass


class InvalidTransitionError(PracticeError):
    """A session status change outside scheduled -> completed/cancelled."""
    pass


class PracticeService:
    """
    Reads and writes practice records on behalf of one therapist at a time.

    Args:
        session_factory: SQLAlchemy session factory. If None, every method
            raises PracticeError.
    """

    def __init__(self, session_factory: Optional[Callable] = None):
        self._session_factory = session_factory

    @staticmethod
    def _to_uuid(value) -> UUID:
        """Convert a string or UUID to a UUID object."""
        if isinstance(value, UUID):
            return value
        return UUID(str(value))

    @contextmanager
    def _db(self, action: str) -> Iterator:
        """Open a database session for one operation.

        Rolls back on any failure; unexpected errors are wrapped in
        PracticeError naming the action.
        """
        if self._session_factory is None:
            raise PracticeError(f"Cannot {action} without a database session.")

        db = self._session_factory()
        try:
            yield db
        except PracticeError:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error("practice_operation_failed", action=action, error=str(e))
            raise PracticeError(f"Failed to {action}: {e}") from e
        finally:
            db.close()

    def _owned(self, db, model, row_id, therapist_id: UUID, label: str):
        """Fetch a row and verify the therapist owns it."""
        row = db.query(model).filter(model.id == self._to_uuid(row_id)).first()
        if row is None:
            raise NotFoundError(f"{label} not found: {row_id}")
        if row.therapist_id != therapist_id:
            raise AccessDeniedError(f"Access denied: therapist does not own this {label.lower()}")
        return row

    def _require_therapist(self, db, therapist_id: UUID) -> Therapist:
        therapist = db.query(Therapist).filter(Therapist.id == therapist_id).first()
        if therapist is None:
            raise NotFoundError(f"Therapist not found: {therapist_id}")
        return therapist

    # =========================================================================
    # Therapists
    # =========================================================================

    def register_therapist(self, therapist_id, profile: TherapistProfile) -> TherapistRead:
        """Create the therapist row for an authenticated user, or update its profile."""
        _tid = self._to_uuid(therapist_id)
        with self._db("register therapist") as db:
            therapist = db.query(Therapist).filter(Therapist.id == _tid).first()
            if therapist is None:
                therapist = Therapist(id=_tid, subscription_status="inactive")
                db.add(therapist)
                logger.info("therapist_registered", therapist_id=str(_tid))
            therapist.email = profile.email
            therapist.practice_name = profile.practice_name
            therapist.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(therapist)
            return TherapistRead.model_validate(therapist)

    def get_therapist(self, therapist_id) -> TherapistRead:
        with self._db("get therapist") as db:
            return TherapistRead.model_validate(self._require_therapist(db, self._to_uuid(therapist_id)))

    # =========================================================================
    # Clients
    # =========================================================================

    def list_clients(self, therapist_id) -> list[ClientRead]:
        """All of the therapist's clients, newest first."""
        _tid = self._to_uuid(therapist_id)
        with self._db("list clients") as db:
            rows = (
                db.query(Client)
                .filter(Client.therapist_id == _tid)
                .order_by(Client.created_at.desc())
                .all()
            )
            return [ClientRead.model_validate(row) for row in rows]

    def get_client(self, therapist_id, client_id) -> ClientRead:
        _tid = self._to_uuid(therapist_id)
        with self._db("get client") as db:
            return ClientRead.model_validate(self._owned(db, Client, client_id, _tid, "Client"))

    def create_client(self, therapist_id, data: ClientCreate) -> ClientRead:
        _tid = self._to_uuid(therapist_id)
        with self._db("create client") as db:
            self._require_therapist(db, _tid)
            client = Client(therapist_id=_tid, **data.model_dump())
            db.add(client)
            db.commit()
            db.refresh(client)

            logger.info("client_created", therapist_id=str(_tid), client_id=str(client.id))
            return ClientRead.model_validate(client)

    def update_client(self, therapist_id, client_id, data: ClientUpdate) -> ClientRead:
        """Apply a profile edit or status toggle."""
        _tid = self._to_uuid(therapist_id)
        with self._db("update client") as db:
            client = self._owned(db, Client, client_id, _tid, "Client")
            changes = data.model_dump(exclude_unset=True)
            for name, value in changes.items():
                setattr(client, name, value)
            client.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(client)

            logger.info(
                "client_updated",
                therapist_id=str(_tid),
                client_id=str(client.id),
                fields=sorted(changes),
            )
            return ClientRead.model_validate(client)

    # =========================================================================
    # Sessions
    # =========================================================================

    def list_sessions(
        self,
        therapist_id,
        client_id=None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[SessionStatus] = None,
    ) -> list[SessionRead]:
        """The therapist's sessions in chronological order, optionally filtered."""
        _tid = self._to_uuid(therapist_id)
        with self._db("list sessions") as db:
            query = db.query(Session).filter(Session.therapist_id == _tid)
            if client_id is not None:
                query = query.filter(Session.client_id == self._to_uuid(client_id))
            if start is not None:
                query = query.filter(Session.date >= start)
            if end is not None:
                query = query.filter(Session.date <= end)
            if status is not None:
                query = query.filter(Session.status == status)

            rows = query.order_by(Session.date.asc(), Session.time.asc()).all()
            return [SessionRead.model_validate(row) for row in rows]

    def get_session(self, therapist_id, session_id) -> SessionRead:
        _tid = self._to_uuid(therapist_id)
        with self._db("get session") as db:
            return SessionRead.model_validate(self._owned(db, Session, session_id, _tid, "Session"))

    def create_sessions(self, therapist_id, data: SessionCreate) -> list[SessionRead]:
        """Create a session, or one row per occurrence when data carries a recurrence.

        All occurrences are written in a single transaction.
        """
        _tid = self._to_uuid(therapist_id)
        requests = expand_recurrence(data)
        with self._db("create sessions") as db:
            self._owned(db, Client, data.client_id, _tid, "Client")

            rows = []
            for request in requests:
                row = Session(therapist_id=_tid, **request.model_dump(exclude={"recurrence"}))
                db.add(row)
                rows.append(row)
            db.commit()
            for row in rows:
                db.refresh(row)

            logger.info(
                "sessions_created",
                therapist_id=str(_tid),
                client_id=str(data.client_id),
                count=len(rows),
            )
            return [SessionRead.model_validate(row) for row in rows]

    def create_session(self, therapist_id, data: SessionCreate) -> SessionRead:
        """Create exactly one session; any recurrence directive is ignored."""
        single = data.model_copy(update={"recurrence": None})
        return self.create_sessions(therapist_id, single)[0]

    def update_session(self, therapist_id, session_id, data: SessionUpdate) -> SessionRead:
        """Edit a session. Status may only leave 'scheduled'.

        Raises:
            InvalidTransitionError: If the status change is not allowed.
        """
        _tid = self._to_uuid(therapist_id)
        with self._db("update session") as db:
            row = self._owned(db, Session, session_id, _tid, "Session")
            changes = {
                name: value
                for name, value in data.model_dump(exclude_unset=True).items()
                if value is not None or name in CLEARABLE_SESSION_FIELDS
            }

            target = changes.get("status")
            if target is not None and not can_transition(SessionStatus(row.status), SessionStatus(target)):
                raise InvalidTransitionError(
                    f"Cannot change session status from {SessionStatus(row.status).value} "
                    f"to {SessionStatus(target).value}"
                )

            for name, value in changes.items():
                setattr(row, name, value)
            row.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(row)

            logger.info(
                "session_updated",
                therapist_id=str(_tid),
                session_id=str(row.id),
                fields=sorted(changes),
            )
            return SessionRead.model_validate(row)

    def complete_session(self, therapist_id, session_id) -> SessionRead:
        return self.update_session(therapist_id, session_id, SessionUpdate(status=SessionStatus.COMPLETED))

    def cancel_session(self, therapist_id, session_id) -> SessionRead:
        return self.update_session(therapist_id, session_id, SessionUpdate(status=SessionStatus.CANCELLED))

    def delete_session(self, therapist_id, session_id) -> None:
        """Hard delete a session together with its notes."""
        _tid = self._to_uuid(therapist_id)
        with self._db("delete session") as db:
            row = self._owned(db, Session, session_id, _tid, "Session")
            db.delete(row)
            db.commit()

            logger.info("session_deleted", therapist_id=str(_tid), session_id=str(session_id))

    # =========================================================================
    # Notes
    # =========================================================================

    def list_notes(self, therapist_id, client_id=None) -> list[TherapyNoteRead]:
        """The therapist's notes, newest first."""
        _tid = self._to_uuid(therapist_id)
        with self._db("list notes") as db:
            query = db.query(TherapyNote).filter(TherapyNote.therapist_id == _tid)
            if client_id is not None:
                query = query.filter(TherapyNote.client_id == self._to_uuid(client_id))
            rows = query.order_by(TherapyNote.created_at.desc()).all()
            return [TherapyNoteRead.model_validate(row) for row in rows]

    def create_note(self, therapist_id, data: TherapyNoteCreate) -> tuple[TherapyNoteRead, SessionRead]:
        """Document a session and mark it completed in one transaction.

        Returns:
            The new note and the session as it stands after completion.

        Raises:
            PracticeError: If the note's client does not match the session.
            InvalidTransitionError: If the session was cancelled.
        """
        _tid = self._to_uuid(therapist_id)
        with self._db("create note") as db:
            session = self._owned(db, Session, data.session_id, _tid, "Session")
            if session.client_id != data.client_id:
                raise PracticeError("Note client does not match the session's client")
            if not can_transition(SessionStatus(session.status), SessionStatus.COMPLETED):
                raise InvalidTransitionError("Cannot document a cancelled session")

            note = TherapyNote(
                therapist_id=_tid,
                session_id=session.id,
                client_id=session.client_id,
                content=data.content,
            )
            db.add(note)
            session.status = SessionStatus.COMPLETED
            session.updated_at = datetime.utcnow()
            db.commit()
            db.refresh(note)
            db.refresh(session)

            logger.info(
                "note_created",
                therapist_id=str(_tid),
                session_id=str(session.id),
                note_id=str(note.id),
            )
            return TherapyNoteRead.model_validate(note), SessionRead.model_validate(session)
