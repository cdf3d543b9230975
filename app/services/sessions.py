"""
Signed, time-bounded session credentials (HS256 JWT).
"""

import logging
from datetime import datetime, timedelta, timezone

import jwt

from app.core.config import Settings
from app.core.errors import ExpiredCredential, MalformedCredential, MissingCredential
from app.models.user import User

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class SessionAuthenticator:
    def __init__(self, settings: Settings):
        self.secret_key = settings.secret_key
        self.ttl = timedelta(minutes=settings.session_ttl_minutes)

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    def issue(self, user: User, now: datetime | None = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    def verify(self, credential: str | None) -> int:
        """Resolve a presented credential to an account id."""
        if not credential:
            raise MissingCredential()

        try:
            payload = jwt.decode(
                credential,
                self.secret_key,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            logger.debug("Rejected expired session credential")
            raise ExpiredCredential() from exc
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected malformed session credential: %s", exc)
            raise MalformedCredential() from exc

        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise MalformedCredential() from exc
