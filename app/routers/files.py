import io
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, UploadFile, File as FastAPIFile
from fastapi.responses import JSONResponse, StreamingResponse

from app.core.config import Settings
from app.core.deps import (
    get_accounts,
    get_app_settings,
    get_current_user_id,
    get_repository,
    get_transfers,
)
from app.services.accounts import AccountStore
from app.services.repository import FileRepository
from app.services.transfers import BatchResult, Download, IncomingFile, TransferOrchestrator

router = APIRouter(prefix="/api/files", tags=["files"])


def incoming_files(uploads: Optional[List[UploadFile]]) -> List[IncomingFile]:
    return [
        IncomingFile(
            name=upload.filename or "",
            mime_type=upload.content_type,
            stream=upload.file,
            declared_size=upload.size,
        )
        for upload in uploads or []
    ]


def batch_response(result: BatchResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.to_dict())


def content_disposition(name: str) -> str:
    printable = "".join(ch for ch in name if ch.isprintable())
    fallback = printable.encode("ascii", "replace").decode("ascii").replace('"', "_").replace("\\", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(printable, safe='')}"


def download_response(download: Download) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(download.data),
        media_type=download.mime_type,
        headers={
            "Content-Disposition": content_disposition(download.name),
            "Content-Length": str(len(download.data)),
        },
    )


# --- list the user's files ---
@router.get("")
def list_files(
    search: Optional[str] = None,
    user_id: int = Depends(get_current_user_id),
    repository: FileRepository = Depends(get_repository),
):
    return [record.metadata_dict() for record in repository.list_by_owner(user_id, search)]


# --- receive secret, rendered by the client as a QR code ---
@router.get("/receive-qr")
def receive_qr(
    user_id: int = Depends(get_current_user_id),
    accounts: AccountStore = Depends(get_accounts),
    settings: Settings = Depends(get_app_settings),
):
    user = accounts.get(user_id)
    receive_token = accounts.issue_receive_secret(user)
    return {"receive_token": receive_token, "upload_url": settings.receive_url(receive_token)}


# --- upload one or more files as the owner ---
@router.post("/upload")
def upload_files(
    files: Optional[List[UploadFile]] = FastAPIFile(None),
    user_id: int = Depends(get_current_user_id),
    transfers: TransferOrchestrator = Depends(get_transfers),
):
    return batch_response(transfers.upload_for_owner(user_id, incoming_files(files)))


# --- upload into someone's account with their receive token ---
@router.post("/receive/{receive_token}")
def upload_via_receive_token(
    receive_token: str,
    files: Optional[List[UploadFile]] = FastAPIFile(None),
    transfers: TransferOrchestrator = Depends(get_transfers),
):
    return batch_response(transfers.upload_via_receive_token(receive_token, incoming_files(files)))


# --- public download by access token, no login ---
@router.get("/public/{access_token}")
def public_download(access_token: str, transfers: TransferOrchestrator = Depends(get_transfers)):
    return download_response(transfers.download_public(access_token))


# --- download a file as its owner ---
@router.get("/{file_id}/download")
def download_file(
    file_id: int,
    user_id: int = Depends(get_current_user_id),
    transfers: TransferOrchestrator = Depends(get_transfers),
):
    return download_response(transfers.download_for_owner(user_id, file_id))


# --- delete a file ---
@router.delete("/{file_id}")
def delete_file(
    file_id: int,
    user_id: int = Depends(get_current_user_id),
    transfers: TransferOrchestrator = Depends(get_transfers),
):
    transfers.delete_for_owner(user_id, file_id)
    return {"message": "File deleted successfully"}
