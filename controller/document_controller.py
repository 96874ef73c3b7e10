# controller/document_controller.py
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import Response
from fastapi_limiter.depends import RateLimiter
from config.settings import settings
from controller.controller_dependencies import (
    enforce_max_upload_size,
    get_document_service,
    get_session_id,
)
from model.api import (
    DeleteDocumentResponse,
    DocumentsResponse,
    ImportFailure,
    ImportResponse,
    ImportStats,
    UploadResponse,
)
from model.document import DocumentOut
from service.document_service import DocumentService
from util.constants import InternalURIs

document_router = APIRouter(
    dependencies=[
        Depends(
            RateLimiter(
                times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
            )
        )
    ]
)


@document_router.post(
    InternalURIs.UPLOAD,
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(enforce_max_upload_size)],
)
async def upload_document(
    pdf: Optional[UploadFile] = File(None),
    machineName: Optional[str] = Form(None),
    session_id: str = Depends(get_session_id),
    service: DocumentService = Depends(get_document_service),
) -> UploadResponse:
    doc = await service.upload(session_id, pdf, machineName)
    docs = await service.list(session_id)
    return UploadResponse(
        sessionId=session_id,
        document=DocumentOut.from_document(doc),
        totalDocuments=len(docs),
    )


@document_router.get(InternalURIs.DOCUMENTS, response_model=DocumentsResponse)
async def list_documents(
    session_id: str = Depends(get_session_id),
    service: DocumentService = Depends(get_document_service),
) -> DocumentsResponse:
    docs = [DocumentOut.from_document(d) for d in await service.list(session_id)]
    return DocumentsResponse(
        sessionId=session_id, documents=docs, totalDocuments=len(docs)
    )


@document_router.delete(InternalURIs.DOCUMENT, response_model=DeleteDocumentResponse)
async def delete_document(
    documentId: str,
    session_id: str = Depends(get_session_id),
    service: DocumentService = Depends(get_document_service),
) -> DeleteDocumentResponse:
    remaining = await service.delete(session_id, documentId)
    return DeleteDocumentResponse(sessionId=session_id, remainingDocuments=remaining)


@document_router.get(InternalURIs.DOCUMENT_PDF)
async def get_document_pdf(
    documentId: str,
    session_id: str = Depends(get_session_id),
    service: DocumentService = Depends(get_document_service),
) -> Response:
    data = await service.get_pdf(session_id, documentId)
    return Response(content=data, media_type="application/pdf")


@document_router.post(InternalURIs.IMPORT_ALL_PDFS, response_model=ImportResponse)
async def import_all_pdfs(
    session_id: str = Depends(get_session_id),
    service: DocumentService = Depends(get_document_service),
) -> ImportResponse:
    report = await service.import_directory(session_id)
    n = len(report.imported)
    if report.found == 0:
        message = "No PDF files found in import directory"
    elif n:
        message = f"Successfully imported {n} PDF{'s' if n > 1 else ''}"
    else:
        message = "No new PDFs were imported"
    docs = await service.list(session_id)
    return ImportResponse(
        message=message,
        sessionId=session_id,
        imported=[DocumentOut.from_document(d) for d in report.imported],
        totalDocuments=len(docs),
        errors=[ImportFailure(filename=f, error=e) for f, e in report.errors],
        stats=ImportStats(
            found=report.found,
            imported=n,
            errors=len(report.errors),
            skipped=report.skipped,
        ),
    )
