"""
Practice Store

Client-side cache of one therapist's clients, sessions and notes. The store
is an explicit state container: it is created by the application root,
passed to whatever needs the data, and changed only through its named
operations.

Every mutation writes to the backend first and only touches the cache once
the backend has returned the canonical row:
- creates insert at the head of the collection
- updates replace the row in place
- deletes remove the row

A failed backend call leaves the cache untouched and surfaces as StoreError.
There is no optimistic update and no retry. Two overlapping updates to the
same row leave whichever response resolved last (last write wins).
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Optional, Protocol, TypeVar
from uuid import UUID

import structlog

from src.models.client import ClientCreate, ClientRead, ClientUpdate
from src.models.session import SessionCreate, SessionRead, SessionStatus, SessionUpdate
from src.models.therapy_note import TherapyNoteCreate, TherapyNoteRead
from src.services import scheduling

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StoreError(Exception):
    """A backend call made by the store failed."""
    pass


class PracticeBackend(Protocol):
    """Remote collaborator the store reads from and writes to."""

    async def fetch_clients(self) -> list[ClientRead]: ...
    async def fetch_sessions(self) -> list[SessionRead]: ...
    async def fetch_notes(self) -> list[TherapyNoteRead]: ...
    async def create_client(self, data: ClientCreate) -> ClientRead: ...
    async def update_client(self, client_id: UUID, data: ClientUpdate) -> ClientRead: ...
    async def create_session(self, data: SessionCreate) -> SessionRead: ...
    async def update_session(self, session_id: UUID, data: SessionUpdate) -> SessionRead: ...
    async def delete_session(self, session_id: UUID) -> None: ...
    async def create_note(self, data: TherapyNoteCreate) -> tuple[TherapyNoteRead, SessionRead]: ...


class PracticeStore:
    """
    Cached view of the therapist's records plus the operations that change them.

    Args:
        backend: Remote collaborator implementing PracticeBackend.
    """

    def __init__(self, backend: PracticeBackend):
        self._backend = backend
        self.clients: list[ClientRead] = []
        self.sessions: list[SessionRead] = []
        self.notes: list[TherapyNoteRead] = []
        self.is_initialized = False

    # =========================================================================
    # Loading
    # =========================================================================

    async def initialize(self) -> None:
        """Fetch all three collections concurrently.

        The store is marked initialized once every fetch has settled. If any
        fetch fails the caches are emptied and StoreError is raised.
        """
        results = await asyncio.gather(
            self._backend.fetch_clients(),
            self._backend.fetch_sessions(),
            self._backend.fetch_notes(),
            return_exceptions=True,
        )
        self.is_initialized = True

        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            self.clear()
            self.is_initialized = True
            logger.error("store_initialize_failed", error=str(failures[0]), failures=len(failures))
            raise StoreError(f"Failed to load practice data: {failures[0]}") from failures[0]

        clients, sessions, notes = results
        self.clients = list(clients)
        self.sessions = list(sessions)
        self.notes = list(notes)
        logger.info(
            "store_initialized",
            clients=len(self.clients),
            sessions=len(self.sessions),
            notes=len(self.notes),
        )

    def clear(self) -> None:
        """Drop all cached data (e.g. on sign-out)."""
        self.clients = []
        self.sessions = []
        self.notes = []
        self.is_initialized = False

    async def _call(self, operation: str, pending: Awaitable[T]) -> T:
        try:
            return await pending
        except Exception as e:
            logger.error(f"store_{operation}_failed", error=str(e))
            raise StoreError(f"Failed to {operation.replace('_', ' ')}: {e}") from e

    @staticmethod
    def _replace(collection: list, row: Any) -> None:
        for index, existing in enumerate(collection):
            if existing.id == row.id:
                collection[index] = row
                return

    # =========================================================================
    # Clients
    # =========================================================================

    async def add_client(self, data: ClientCreate) -> ClientRead:
        client = await self._call("add_client", self._backend.create_client(data))
        self.clients.insert(0, client)
        return client

    async def update_client(self, client_id: UUID, data: ClientUpdate) -> ClientRead:
        client = await self._call("update_client", self._backend.update_client(client_id, data))
        self._replace(self.clients, client)
        return client

    # =========================================================================
    # Sessions
    # =========================================================================

    async def add_session(self, data: SessionCreate) -> SessionRead:
        session = await self._call("add_session", self._backend.create_session(data))
        self.sessions.insert(0, session)
        return session

    async def schedule_session(self, data: SessionCreate) -> list[SessionRead]:
        """Create every occurrence of a (possibly recurring) session request.

        Occurrences are created in date order. The first failure stops the
        series; occurrences already created stay cached.
        """
        created = []
        for request in scheduling.expand_recurrence(data):
            created.append(await self.add_session(request))
        return created

    async def update_session(self, session_id: UUID, data: SessionUpdate) -> SessionRead:
        session = await self._call("update_session", self._backend.update_session(session_id, data))
        self._replace(self.sessions, session)
        return session

    async def complete_session(self, session_id: UUID) -> SessionRead:
        return await self.update_session(session_id, SessionUpdate(status=SessionStatus.COMPLETED))

    async def cancel_session(self, session_id: UUID) -> SessionRead:
        return await self.update_session(session_id, SessionUpdate(status=SessionStatus.CANCELLED))

    async def delete_session(self, session_id: UUID) -> None:
        """Hard delete a session; its notes go with it."""
        await self._call("delete_session", self._backend.delete_session(session_id))
        self.sessions = [s for s in self.sessions if s.id != session_id]
        self.notes = [n for n in self.notes if n.session_id != session_id]

    # =========================================================================
    # Notes
    # =========================================================================

    async def submit_note(self, data: TherapyNoteCreate) -> TherapyNoteRead:
        """Document a session and complete it.

        The backend writes the note and the status change together and
        returns both rows; the cache takes both or neither.
        """
        note, session = await self._call("submit_note", self._backend.create_note(data))
        self.notes.insert(0, note)
        self._replace(self.sessions, session)
        return note

    # =========================================================================
    # Derived views
    # =========================================================================

    def client(self, client_id: UUID) -> Optional[ClientRead]:
        return next((c for c in self.clients if c.id == client_id), None)

    def client_name(self, client_id: UUID) -> str:
        client = self.client(client_id)
        return client.full_name if client else "Unknown Client"

    def sessions_for(self, client_id: UUID) -> list[SessionRead]:
        return [s for s in self.sessions if s.client_id == client_id]

    def notes_for(self, client_id: UUID) -> list[TherapyNoteRead]:
        return [n for n in self.notes if n.client_id == client_id]

    def note_for_session(self, session_id: UUID) -> Optional[TherapyNoteRead]:
        return next((n for n in self.notes if n.session_id == session_id), None)

    def dashboard(
        self,
        now: Optional[datetime] = None,
        mode: scheduling.RangeMode | str = scheduling.RangeMode.YEAR,
        start: Any = None,
        end: Any = None,
    ) -> scheduling.DashboardSummary:
        return scheduling.dashboard_summary(self.clients, self.sessions, now=now, mode=mode, start=start, end=end)

    def pending_notes(self, now: Optional[datetime] = None) -> list[SessionRead]:
        """Today's sessions still waiting for documentation."""
        today = (now or datetime.now()).date()
        return scheduling.sessions_needing_notes(self.sessions, self.notes, today)
