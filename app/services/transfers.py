"""
Transfer Orchestrator

Coordinates the upload, download and delete flows for the three entry paths
(owner session, receive token, public access token).

Each uploaded file moves through::

    RECEIVED -> STAGED -> PERSISTED -> ACKNOWLEDGED
         \\         \\
          +---------+--> FAILED

Files in a batch are handled independently: a failure on one is recorded in
its own outcome and the rest of the batch carries on. The incoming stream of
every file is closed whatever the outcome, so no spooled temp storage
outlives the request.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Iterable, List, Optional

from app.core.config import Settings
from app.core.errors import DriveError, InvalidRequest, PayloadTooLarge, StorageFailure
from app.core.security import token_hint
from app.models.file import DEFAULT_MIME_TYPE, FileRecord
from app.services.accounts import AccountStore
from app.services.repository import FileRepository

logger = logging.getLogger(__name__)


class TransferState(Enum):
    RECEIVED = "received"
    STAGED = "staged"
    PERSISTED = "persisted"
    ACKNOWLEDGED = "acknowledged"
    SERVED = "served"
    FAILED = "failed"


@dataclass
class IncomingFile:
    """One file of an upload request, as handed over by the HTTP layer."""

    name: str
    mime_type: Optional[str]
    stream: BinaryIO
    declared_size: Optional[int] = None

    def close(self) -> None:
        if not self.stream.closed:
            self.stream.close()


@dataclass
class TransferOutcome:
    name: str
    state: TransferState
    record: Optional[FileRecord] = None
    error: Optional[DriveError] = None

    @property
    def ok(self) -> bool:
        return self.state is TransferState.ACKNOWLEDGED

    def to_dict(self) -> dict:
        if self.ok:
            return {
                "status": self.state.value,
                "id": self.record.id,
                "name": self.record.original_name,
                "size": self.record.size,
                "mime_type": self.record.mime_type,
                "access_token": self.record.access_token,
            }
        return {"status": self.state.value, "name": self.name, **self.error.to_dict()}


@dataclass
class BatchResult:
    outcomes: List[TransferOutcome] = field(default_factory=list)

    @property
    def persisted(self) -> List[TransferOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def status_code(self) -> int:
        if self.persisted:
            return 201
        return self.outcomes[0].error.status_code

    def to_dict(self) -> dict:
        return {
            "uploaded": len(self.persisted),
            "failed": len(self.outcomes) - len(self.persisted),
            "files": [o.to_dict() for o in self.outcomes],
        }


@dataclass
class Download:
    name: str
    mime_type: str
    data: bytes
    state: TransferState = TransferState.SERVED

    @classmethod
    def from_record(cls, record: FileRecord) -> "Download":
        return cls(
            name=record.original_name,
            mime_type=record.mime_type or DEFAULT_MIME_TYPE,
            data=record.data,
        )


class TransferOrchestrator:
    def __init__(self, settings: Settings, repository: FileRepository, accounts: AccountStore):
        self.max_file_size = settings.max_file_size
        self.chunk_size = settings.upload_chunk_size
        self.repository = repository
        self.accounts = accounts

    # Upload paths

    def upload_for_owner(self, owner_id: int, files: Iterable[IncomingFile]) -> BatchResult:
        """Owner path; the session has already been verified by the caller."""
        return self._receive_batch(owner_id, list(files))

    def upload_via_receive_token(self, receive_token: str, files: Iterable[IncomingFile]) -> BatchResult:
        files = list(files)
        try:
            owner = self.accounts.get_by_receive_token(receive_token)
        except DriveError:
            self._close_all(files)
            raise
        logger.info("Inbound upload of %d file(s) via receive token %s", len(files), token_hint(receive_token))
        return self._receive_batch(owner.id, files)

    # Read and delete paths

    def download_for_owner(self, owner_id: int, file_id: int) -> Download:
        return Download.from_record(self.repository.get_for_owner(owner_id, file_id))

    def download_public(self, access_token: str) -> Download:
        return Download.from_record(self.repository.get_by_access_token(access_token))

    def delete_for_owner(self, owner_id: int, file_id: int) -> None:
        self.repository.delete_for_owner(owner_id, file_id)
        logger.info("Owner %s deleted file %s", owner_id, file_id)

    # Internals

    def _receive_batch(self, owner_id: int, files: List[IncomingFile]) -> BatchResult:
        if not files:
            raise InvalidRequest("No files uploaded")

        result = BatchResult()
        for incoming in files:
            result.outcomes.append(self._receive_one(owner_id, incoming))

        logger.info(
            "Upload batch for owner %s: %d persisted, %d failed",
            owner_id, len(result.persisted), len(result.outcomes) - len(result.persisted),
        )
        return result

    def _receive_one(self, owner_id: int, incoming: IncomingFile) -> TransferOutcome:
        name = incoming.name or "unnamed"
        state = TransferState.RECEIVED
        try:
            data = self._stage(incoming)
            state = TransferState.STAGED
            logger.debug("Staged %r (%d bytes) for owner %s", name, len(data), owner_id)

            record = self.repository.store(owner_id, name, incoming.mime_type, data)
            state = TransferState.PERSISTED
        except StorageFailure as exc:
            logger.error("Storing %r failed in state %s: %s", name, state.value, exc, exc_info=exc)
            return TransferOutcome(name=name, state=TransferState.FAILED, error=exc)
        except DriveError as exc:
            logger.warning("Upload of %r rejected in state %s: %s", name, state.value, exc.message)
            return TransferOutcome(name=name, state=TransferState.FAILED, error=exc)
        finally:
            incoming.close()

        return TransferOutcome(name=name, state=TransferState.ACKNOWLEDGED, record=record)

    def _stage(self, incoming: IncomingFile) -> bytes:
        if incoming.declared_size is not None and incoming.declared_size > self.max_file_size:
            raise PayloadTooLarge(self._too_large_message(incoming.name))

        buffer = bytearray()
        while True:
            chunk = incoming.stream.read(self.chunk_size)
            if not chunk:
                break
            buffer.extend(chunk)
            if len(buffer) > self.max_file_size:
                raise PayloadTooLarge(self._too_large_message(incoming.name))
        return bytes(buffer)

    def _too_large_message(self, name: str) -> str:
        return f"{name} exceeds the maximum allowed size of {self.max_file_size} bytes"

    @staticmethod
    def _close_all(files: List[IncomingFile]) -> None:
        for incoming in files:
            incoming.close()
