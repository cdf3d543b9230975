import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.core.config import Settings
from app.core.deps import (
    SESSION_COOKIE,
    get_accounts,
    get_app_settings,
    get_authenticator,
    get_current_user_id,
    get_repository,
)
from app.models.user import User
from app.services.accounts import AccountStore
from app.services.repository import FileRepository
from app.services.sessions import SessionAuthenticator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    identifier: str  # username or email
    password: str


def account_summary(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@router.post("/register", status_code=201)
def register(body: RegisterRequest, accounts: AccountStore = Depends(get_accounts)):
    user = accounts.register(body.username, body.email, body.password)
    return account_summary(user)


@router.post("/login")
def login(
    body: LoginRequest,
    accounts: AccountStore = Depends(get_accounts),
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_app_settings),
):
    user = accounts.authenticate(body.identifier, body.password)
    token = authenticator.issue(user)
    logger.info("User %s logged in", user.id)

    # login success → return the credential and set it as a cookie
    response = JSONResponse(
        {"token": token, "token_type": "bearer", "expires_in": authenticator.ttl_seconds}
    )
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=authenticator.ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return response


@router.post("/logout")
def logout():
    response = JSONResponse({"message": "Logged out"})
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/profile")
def profile(
    user_id: int = Depends(get_current_user_id),
    accounts: AccountStore = Depends(get_accounts),
    repository: FileRepository = Depends(get_repository),
):
    user = accounts.get(user_id)
    total_files, total_storage = repository.usage(user_id)
    return {
        **account_summary(user),
        "stats": {"total_files": total_files, "total_storage": total_storage},
    }
