# controller/controller_dependencies.py
import secrets
import time
from typing import Optional
from fastapi import File, Request, UploadFile
from config.settings import settings
from repository.blob_repository import BlobRepository
from repository.document_repository import DocumentRepository
from repository.session_repository import SessionRepository
from service.document_service import DocumentService
from service.search_service import SearchService
from util.constants import Headers
from util.enums import ErrorMessage
from util.errors import AppError


def get_document_service() -> DocumentService:
    _documents = DocumentRepository()
    _blobs = BlobRepository()
    return DocumentService(_documents, _blobs)


def get_search_service() -> SearchService:
    _sessions = SessionRepository()
    return SearchService(get_document_service(), _sessions)


def new_session_id() -> str:
    return f"session_{secrets.token_hex(5)[:9]}_{int(time.time() * 1000)}"


def get_session_id(request: Request) -> str:
    # Clients without a session header get a fresh id per request.
    return (
        request.headers.get(Headers.SESSION_ID)
        or request.headers.get(Headers.SESSION_ID_ALT)
        or new_session_id()
    )


def _too_large() -> AppError:
    return AppError.of(ErrorMessage.FILE_TOO_LARGE, f"{settings.MAX_FILE_MB} MB")


async def enforce_max_upload_size(
    request: Request, pdf: Optional[UploadFile] = File(None)
) -> Optional[UploadFile]:
    # Fast pre-check via Content-Length if present
    MAX_BYTES = settings.MAX_FILE_MB * 1024 * 1024
    cl = request.headers.get("content-length")
    if cl and cl.isdigit() and int(cl) > MAX_BYTES:
        raise _too_large()
    if pdf is None:
        return None

    # Hard cap while reading initial bytes (works even if no Content-Length)
    blob = await pdf.read(MAX_BYTES + 1)
    if len(blob) > MAX_BYTES:
        raise _too_large()

    # Reset so downstream can re-read file stream
    await pdf.seek(0)
    return pdf
