from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.core.config import Settings
from app.core.deps import get_accounts, get_app_settings
from app.services.accounts import AccountStore

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


# --- landing page of a scanned receive link ---
@router.get("/receive/{receive_token}", response_class=HTMLResponse)
def receive_page(
    request: Request,
    receive_token: str,
    accounts: AccountStore = Depends(get_accounts),
    settings: Settings = Depends(get_app_settings),
):
    owner = accounts.get_by_receive_token(receive_token)
    return templates.TemplateResponse(
        request,
        "receive.html",
        {
            "owner_name": owner.username,
            "upload_action": f"/api/files/receive/{receive_token}",
            "max_file_size": settings.max_file_size,
        },
    )
