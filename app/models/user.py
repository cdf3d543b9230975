from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, event
from sqlalchemy.orm import relationship

from app.core.security import mint_token
from app.models.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # salted hash, never plaintext

    # Capability to push files into this account without logging in
    receive_token = Column(String(64), unique=True, index=True, nullable=False, default=mint_token)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    # One user → many files
    files = relationship("FileRecord", back_populates="owner", passive_deletes=True)

    def __repr__(self):
        return f"<User {self.id} {self.username}>"


@event.listens_for(User, "before_insert")
def _ensure_receive_token(mapper, connection, target):
    if not target.receive_token:
        target.receive_token = mint_token()
