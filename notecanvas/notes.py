"""Remote note store client and the note list model.

The store answers every request with a JSON envelope {"code": int, ...};
code 0 means success. Anything else, and any transport failure, is raised
as a NoteStoreError and never changes local state.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class NoteStoreError(Exception):
    """The note store rejected a request."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


class NoteStoreNetworkError(NoteStoreError):
    """The note store could not be reached or answered garbage."""


@dataclass
class NoteItem:
    """A note as listed by the store."""
    id: int
    title: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NoteItem":
        return cls(id=int(data["id"]), title=str(data.get("title", "")))


class NoteStoreClient:
    """Synchronous client for the /note endpoints."""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.base_url,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    def close(self):
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "NoteStoreClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    # ==================== Endpoints ====================

    def list_notes(self) -> List[NoteItem]:
        data = self._request("GET", "/note/list")
        items = data.get("data") or []
        try:
            return [NoteItem.from_dict(item) for item in items]
        except (KeyError, TypeError, ValueError) as err:
            raise NoteStoreNetworkError("Invalid note list from server") from err

    def add_note(self, title: str) -> None:
        self._request("POST", "/note/add", {"title": title})

    def edit_note(self, note_id: int, title: str) -> None:
        self._request("POST", "/note/edit", {"id": note_id, "title": title})

    def delete_note(self, note_id: int) -> None:
        self._request("POST", "/note/delete", {"id": note_id})

    def _request(self, method: str, path: str,
                 payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        logger.info("%s %s", method, path)
        try:
            response = self.client.request(method, path, json=payload)
        except httpx.HTTPError as err:
            raise NoteStoreNetworkError(f"Cannot reach note store: {err}") from err
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode the envelope and check its code."""
        if response.status_code >= 400:
            raise NoteStoreNetworkError(f"Server error: {response.status_code}")
        try:
            data = response.json()
        except json.JSONDecodeError as err:
            raise NoteStoreNetworkError("Invalid response format from server") from err
        if not isinstance(data, dict) or "code" not in data:
            raise NoteStoreNetworkError("Response is missing a status code")
        code = data["code"]
        if code != 0:
            message = data.get("message") or data.get("msg") or f"Request failed with code {code}"
            raise NoteStoreError(str(message), code=code)
        return data


class NoteListModel:
    """Notes shown by the list view.

    Every change goes to the store first; the local list is only replaced by
    a fresh listing after the store confirms.
    """

    def __init__(self, client: NoteStoreClient):
        self.client = client
        self.notes: List[NoteItem] = []

        # Callbacks
        self.on_changed: Optional[Callable[[List[NoteItem]], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

    def refresh(self) -> bool:
        try:
            notes = self.client.list_notes()
        except NoteStoreError as err:
            return self._failed("Could not load notes", err)
        self.notes = notes
        if self.on_changed:
            self.on_changed(self.notes)
        return True

    def add(self, title: str) -> bool:
        title = title.strip()
        if not title:
            return self._failed("A note needs a title")
        try:
            self.client.add_note(title)
        except NoteStoreError as err:
            return self._failed("Could not create note", err)
        return self.refresh()

    def edit(self, note: NoteItem, title: str) -> bool:
        title = title.strip()
        if not title:
            return self._failed("A note needs a title")
        try:
            self.client.edit_note(note.id, title)
        except NoteStoreError as err:
            return self._failed("Could not rename note", err)
        return self.refresh()

    def delete(self, note: NoteItem) -> bool:
        try:
            self.client.delete_note(note.id)
        except NoteStoreError as err:
            return self._failed("Could not delete note", err)
        return self.refresh()

    def _failed(self, message: str, err: Optional[Exception] = None) -> bool:
        if err is not None:
            logger.warning("%s: %s", message, err)
            message = f"{message}: {err}"
        if self.on_error:
            self.on_error(message)
        return False
