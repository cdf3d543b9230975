# app/models/file.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, LargeBinary
from sqlalchemy.orm import relationship, deferred

from app.models.database import Base
from app.models.user import utcnow

DEFAULT_MIME_TYPE = "application/octet-stream"


class FileRecord(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, index=True)
    original_name = Column(String(255), nullable=False)   # Name user uploaded
    mime_type = Column(String(255), nullable=False, default=DEFAULT_MIME_TYPE)
    size = Column(Integer, nullable=False)                # len(data)
    data = deferred(Column(LargeBinary, nullable=False))  # stored inline, loaded only on download

    # Grants unauthenticated download of exactly this file
    access_token = Column(String(64), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Many files → one owner (User)
    owner = relationship("User", back_populates="files")

    def metadata_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.original_name,
            "mime_type": self.mime_type,
            "size": self.size,
            "access_token": self.access_token,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<FileRecord {self.id} {self.original_name!r} owner={self.owner_id}>"
