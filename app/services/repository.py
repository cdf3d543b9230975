"""
File Repository

Persists file blobs inline with their metadata. Ownership is enforced by
scoping every owner query to ``owner_id``; access-token uniqueness is
enforced by the unique index, with a bounded retry on collision.
"""

import logging
from typing import Callable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, undefer

from app.core.errors import NotFound, StorageFailure
from app.core.security import mint_token, token_hint
from app.models.file import DEFAULT_MIME_TYPE, FileRecord

logger = logging.getLogger(__name__)

TOKEN_ATTEMPTS = 5


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class FileRepository:
    def __init__(self, db: Session, token_factory: Callable[[], str] = mint_token):
        self.db = db
        self.token_factory = token_factory

    def store(self, owner_id: int, original_name: str, mime_type: Optional[str], data: bytes) -> FileRecord:
        """
        Insert a new file and return it.

        The record and its data are written in one commit. When the insert is
        rejected and the minted token turns out to be taken already, a new one
        is tried; any other rejection (unknown owner) fails straight away.
        """
        for attempt in range(1, TOKEN_ATTEMPTS + 1):
            token = self.token_factory()
            record = FileRecord(
                owner_id=owner_id,
                original_name=original_name,
                mime_type=mime_type or DEFAULT_MIME_TYPE,
                size=len(data),
                data=data,
                access_token=token,
            )
            try:
                self.db.add(record)
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                if not self._token_taken(token):
                    raise StorageFailure(f"store rejected for owner {owner_id}: {exc}") from exc
                logger.warning(
                    "Access token collision for %r owner=%s (attempt %d/%d)",
                    original_name, owner_id, attempt, TOKEN_ATTEMPTS,
                )
                continue
            except SQLAlchemyError as exc:
                self.db.rollback()
                raise StorageFailure(f"store failed for owner {owner_id}: {exc}") from exc

            logger.debug("Stored file %s (%d bytes) token=%s", record.id, record.size, token_hint(record.access_token))
            return record

        raise StorageFailure(f"store rejected {TOKEN_ATTEMPTS} times for owner {owner_id}")

    def list_by_owner(self, owner_id: int, search: Optional[str] = None) -> List[FileRecord]:
        query = self.db.query(FileRecord).filter(FileRecord.owner_id == owner_id)
        if search and search.strip():
            search_term = f"%{escape_like(search.strip())}%"
            query = query.filter(FileRecord.original_name.ilike(search_term, escape="\\"))
        try:
            return query.order_by(FileRecord.created_at.asc(), FileRecord.id.asc()).all()
        except SQLAlchemyError as exc:
            raise StorageFailure(f"list failed for owner {owner_id}: {exc}") from exc

    def usage(self, owner_id: int) -> Tuple[int, int]:
        try:
            count, total = (
                self.db.query(func.count(FileRecord.id), func.coalesce(func.sum(FileRecord.size), 0))
                .filter(FileRecord.owner_id == owner_id)
                .one()
            )
        except SQLAlchemyError as exc:
            raise StorageFailure(f"usage query failed for owner {owner_id}: {exc}") from exc
        return int(count), int(total)

    def get_for_owner(self, owner_id: int, file_id: int) -> FileRecord:
        # missing and foreign files are indistinguishable to the caller
        return self._first(
            self.db.query(FileRecord)
            .options(undefer(FileRecord.data))
            .filter(FileRecord.id == file_id, FileRecord.owner_id == owner_id)
        )

    def get_by_access_token(self, token: str) -> FileRecord:
        if not token:
            raise NotFound()
        return self._first(
            self.db.query(FileRecord)
            .options(undefer(FileRecord.data))
            .filter(FileRecord.access_token == token)
        )

    def delete_for_owner(self, owner_id: int, file_id: int) -> None:
        try:
            deleted = (
                self.db.query(FileRecord)
                .filter(FileRecord.id == file_id, FileRecord.owner_id == owner_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageFailure(f"delete failed for file {file_id}: {exc}") from exc

        if not deleted:
            raise NotFound()
        logger.debug("Deleted file %s for owner %s", file_id, owner_id)

    def _token_taken(self, token: str) -> bool:
        try:
            return self.db.query(FileRecord.id).filter(FileRecord.access_token == token).first() is not None
        except SQLAlchemyError as exc:
            raise StorageFailure(f"token check failed: {exc}") from exc

    def _first(self, query) -> FileRecord:
        try:
            record = query.first()
        except SQLAlchemyError as exc:
            raise StorageFailure(f"file lookup failed: {exc}") from exc
        if record is None:
            raise NotFound()
        return record
