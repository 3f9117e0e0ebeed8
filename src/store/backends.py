"""
Practice Store Backends

Two implementations of PracticeBackend:
- ServiceBackend: calls PracticeService in-process, off the event loop
- HttpPracticeBackend: calls the practice HTTP API with requests, off the
  event loop
"""

import asyncio
from typing import Any, Optional
from uuid import UUID

import requests
from requests.exceptions import RequestException

from src import config
from src.models.client import ClientCreate, ClientRead, ClientUpdate
from src.models.session import SessionCreate, SessionRead, SessionUpdate
from src.models.therapy_note import TherapyNoteCreate, TherapyNoteRead
from src.services.practice import PracticeService


class BackendError(Exception):
    """Exception for HTTP backend errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceBackend:
    """PracticeBackend bound to one therapist over an in-process PracticeService."""

    def __init__(self, service: PracticeService, therapist_id: UUID):
        self._service = service
        self._therapist_id = therapist_id

    async def fetch_clients(self) -> list[ClientRead]:
        return await asyncio.to_thread(self._service.list_clients, self._therapist_id)

    async def fetch_sessions(self) -> list[SessionRead]:
        return await asyncio.to_thread(self._service.list_sessions, self._therapist_id)

    async def fetch_notes(self) -> list[TherapyNoteRead]:
        return await asyncio.to_thread(self._service.list_notes, self._therapist_id)

    async def create_client(self, data: ClientCreate) -> ClientRead:
        return await asyncio.to_thread(self._service.create_client, self._therapist_id, data)

    async def update_client(self, client_id: UUID, data: ClientUpdate) -> ClientRead:
        return await asyncio.to_thread(self._service.update_client, self._therapist_id, client_id, data)

    async def create_session(self, data: SessionCreate) -> SessionRead:
        return await asyncio.to_thread(self._service.create_session, self._therapist_id, data)

    async def update_session(self, session_id: UUID, data: SessionUpdate) -> SessionRead:
        return await asyncio.to_thread(self._service.update_session, self._therapist_id, session_id, data)

    async def delete_session(self, session_id: UUID) -> None:
        await asyncio.to_thread(self._service.delete_session, self._therapist_id, session_id)

    async def create_note(self, data: TherapyNoteCreate) -> tuple[TherapyNoteRead, SessionRead]:
        return await asyncio.to_thread(self._service.create_note, self._therapist_id, data)


class HttpPracticeBackend:
    """
    PracticeBackend that talks to the practice HTTP API.

    Args:
        therapist_id: Identity sent in the x-user-id header.
        base_url: API root (or from PRACTICE_API_URL env var).
        timeout: Request timeout in seconds.
    """

    def __init__(self, therapist_id: UUID, base_url: Optional[str] = None, timeout: int = 30):
        self._therapist_id = therapist_id
        self.base_url = (base_url or config.practice_api_url()).rstrip("/")
        self.timeout = timeout

    def _send(self, method: str, path: str, body: Any = None, params: Optional[dict] = None) -> Any:
        try:
            response = requests.request(
                method,
                f"{self.base_url}{path}",
                headers={"x-user-id": str(self._therapist_id)},
                json=body,
                params=params,
                timeout=self.timeout,
            )
        except RequestException as e:
            raise BackendError(f"Request failed: {str(e)}") from e

        if response.status_code >= 400:
            detail = response.text
            try:
                detail = response.json().get("detail", detail)
            except ValueError:
                pass
            raise BackendError(
                f"{method} {path} failed: {response.status_code} - {detail}",
                status_code=response.status_code,
            )

        return response.json() if response.content else None

    async def _request(self, method: str, path: str, body: Any = None, params: Optional[dict] = None) -> Any:
        return await asyncio.to_thread(self._send, method, path, body, params)

    async def fetch_clients(self) -> list[ClientRead]:
        data = await self._request("GET", "/clients")
        return [ClientRead.model_validate(item) for item in data["items"]]

    async def fetch_sessions(self) -> list[SessionRead]:
        data = await self._request("GET", "/sessions")
        return [SessionRead.model_validate(item) for item in data["items"]]

    async def fetch_notes(self) -> list[TherapyNoteRead]:
        data = await self._request("GET", "/notes")
        return [TherapyNoteRead.model_validate(item) for item in data["items"]]

    async def create_client(self, data: ClientCreate) -> ClientRead:
        body = await self._request("POST", "/clients", data.model_dump(mode="json"))
        return ClientRead.model_validate(body)

    async def update_client(self, client_id: UUID, data: ClientUpdate) -> ClientRead:
        body = await self._request("PATCH", f"/clients/{client_id}", data.model_dump(mode="json", exclude_unset=True))
        return ClientRead.model_validate(body)

    async def create_session(self, data: SessionCreate) -> SessionRead:
        body = await self._request("POST", "/sessions", data.model_dump(mode="json", exclude={"recurrence"}))
        return SessionRead.model_validate(body["items"][0])

    async def update_session(self, session_id: UUID, data: SessionUpdate) -> SessionRead:
        body = await self._request("PATCH", f"/sessions/{session_id}", data.model_dump(mode="json", exclude_unset=True))
        return SessionRead.model_validate(body)

    async def delete_session(self, session_id: UUID) -> None:
        await self._request("DELETE", f"/sessions/{session_id}")

    async def create_note(self, data: TherapyNoteCreate) -> tuple[TherapyNoteRead, SessionRead]:
        body = await self._request("POST", "/notes", data.model_dump(mode="json"))
        return TherapyNoteRead.model_validate(body["note"]), SessionRead.model_validate(body["session"])
