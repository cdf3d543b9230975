# app/core/deps.py
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.services.accounts import AccountStore
from app.services.repository import FileRepository
from app.services.sessions import SessionAuthenticator
from app.services.transfers import TransferOrchestrator

SESSION_COOKIE = "session"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# DB session dependency, one session per request
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_accounts(db: Session = Depends(get_db)) -> AccountStore:
    return AccountStore(db)


def get_repository(db: Session = Depends(get_db)) -> FileRepository:
    return FileRepository(db)


def get_authenticator(settings: Settings = Depends(get_app_settings)) -> SessionAuthenticator:
    return SessionAuthenticator(settings)


def get_transfers(
    settings: Settings = Depends(get_app_settings),
    repository: FileRepository = Depends(get_repository),
    accounts: AccountStore = Depends(get_accounts),
) -> TransferOrchestrator:
    return TransferOrchestrator(settings, repository, accounts)


def presented_credential(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(SESSION_COOKIE)


# --- helper: resolve the logged in account id, or fail Unauthenticated ---
def get_current_user_id(
    request: Request,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
) -> int:
    return authenticator.verify(presented_credential(request))
