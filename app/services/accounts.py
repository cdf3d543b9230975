"""
Account registration, password login and receive secrets.
"""

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import (
    DuplicateIdentity,
    InvalidCredentials,
    InvalidRequest,
    InvalidToken,
    NotFound,
    StorageFailure,
)
from app.core.security import hash_password, mint_token, token_hint, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)

TOKEN_ATTEMPTS = 5


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(username: str, email: str, password: str) -> None:
    if not 3 <= len(username) <= 50:
        raise InvalidRequest("Username must be between 3 and 50 characters")
    if "@" in username:
        # "@" marks an identifier as an email at login
        raise InvalidRequest("Username must not contain '@'")
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain or "@" in domain:
        raise InvalidRequest("Email address is not valid")
    if len(password) < 6:
        raise InvalidRequest("Password must be at least 6 characters")


class AccountStore:
    """Credential store backed by the ``users`` table."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, username: str, email: str, password: str) -> User:
        username = username.strip()
        email = normalize_email(email)
        validate_registration(username, email, password)
        hashed_pw = hash_password(password)

        for attempt in range(1, TOKEN_ATTEMPTS + 1):
            user = User(username=username, email=email, password=hashed_pw)
            try:
                self.db.add(user)
                self.db.commit()
            except IntegrityError as exc:
                self.db.rollback()
                if self._identity_taken(username, email):
                    logger.info("Registration rejected, identity taken: %s", username)
                    raise DuplicateIdentity() from exc
                logger.warning("Receive token collision on register (attempt %d)", attempt)
                continue
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Failed to persist account %s", username)
                raise StorageFailure(f"register failed: {exc}") from exc

            logger.info("Registered account %s (id=%s)", user.username, user.id)
            return user

        raise StorageFailure("could not mint a unique receive token")

    def authenticate(self, identifier: str, password: str) -> User:
        identifier = identifier.strip()
        if "@" in identifier:
            criterion = User.email == normalize_email(identifier)
        else:
            criterion = User.username == identifier
        try:
            user = self.db.query(User).filter(criterion).first()
        except SQLAlchemyError as exc:
            logger.exception("Account lookup failed during login")
            raise StorageFailure(f"login lookup failed: {exc}") from exc

        if not verify_password(user.password if user else None, password):
            logger.info("Failed login for %r", identifier)
            raise InvalidCredentials()
        return user

    def get(self, user_id: int) -> User:
        try:
            user = self.db.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"account lookup failed: {exc}") from exc
        if user is None:
            raise NotFound("Account not found")
        return user

    def get_by_receive_token(self, token: str) -> User:
        if not token:
            raise InvalidToken()
        try:
            user = self.db.query(User).filter(User.receive_token == token).first()
        except SQLAlchemyError as exc:
            logger.exception("Receive token lookup failed")
            raise StorageFailure(f"receive token lookup failed: {exc}") from exc
        if user is None:
            logger.info("Unknown receive token %s", token_hint(token))
            raise InvalidToken()
        return user

    def issue_receive_secret(self, user: User) -> str:
        if user.receive_token:
            return user.receive_token

        for attempt in range(1, TOKEN_ATTEMPTS + 1):
            user.receive_token = mint_token()
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.warning("Receive token collision for user %s (attempt %d)", user.id, attempt)
                continue
            except SQLAlchemyError as exc:
                self.db.rollback()
                raise StorageFailure(f"receive token update failed: {exc}") from exc
            return user.receive_token

        raise StorageFailure("could not mint a unique receive token")

    def _identity_taken(self, username: str, email: str) -> bool:
        try:
            count = (
                self.db.query(func.count(User.id))
                .filter(or_(User.username == username, User.email == email))
                .scalar()
            )
        except SQLAlchemyError as exc:
            raise StorageFailure(f"identity check failed: {exc}") from exc
        return bool(count)
