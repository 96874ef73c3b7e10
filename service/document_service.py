# service/document_service.py
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple
from uuid import uuid4
from fastapi import UploadFile
from config.settings import settings
from core.entities import Document
from core.pdf_text import extract_document, guess_machine_name
from repository.blob_repository import BlobRepository
from repository.document_repository import DocumentRepository
from util.constants import InternalURIs
from util.enums import DocumentSource, ErrorMessage
from util.errors import AppError
from util.timing import timed

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = frozenset(("application/pdf", "application/x-pdf"))


@dataclass
class ImportReport:
    found: int = 0
    imported: List[Document] = field(default_factory=list)
    errors: List[Tuple[str, str]] = field(default_factory=list)  # (filename, error)

    @property
    def skipped(self) -> int:
        return self.found - len(self.imported) - len(self.errors)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_pdf(file: UploadFile) -> bool:
    name = (file.filename or "").lower()
    return name.endswith(".pdf") or (file.content_type or "") in PDF_CONTENT_TYPES


class DocumentService:
    def __init__(
        self,
        documents: DocumentRepository,
        blobs: BlobRepository,
        import_dir: Optional[str] = None,
    ) -> None:
        self._documents = documents
        self._blobs = blobs
        self._import_dir = Path(import_dir or settings.PDF_IMPORT_DIR)

    async def _ingest(
        self,
        session_id: str,
        data: bytes,
        *,
        original_name: str,
        machine_name: Optional[str],
        source: DocumentSource,
    ) -> Document:
        """
        Parse, name and persist one PDF. Raises PDF_PARSE_FAILED when no text
        could be extracted.
        """
        document_id = str(uuid4())
        with timed(logger, "ingest", session=session_id, doc=document_id, bytes=len(data)):
            doc = await asyncio.to_thread(
                extract_document,
                data,
                document_id=document_id,
                original_name=original_name,
                file_name=original_name,
                pdf_path=InternalURIs.DOCUMENT_PDF.format(documentId=document_id),
                uploaded_at=_now_iso(),
                source=source.value,
            )
        if doc.page_count == 0 or not doc.line_index:
            logger.warning("ingest.empty session=%s name=%r", session_id, original_name)
            raise AppError.of(ErrorMessage.PDF_PARSE_FAILED)

        doc.machine_name = machine_name or guess_machine_name(
            doc, Path(original_name).stem
        )
        await self._blobs.put_pdf(session_id, document_id, data)
        await self._documents.put(session_id, doc)
        logger.info(
            "ingest.ok session=%s doc=%s pages=%d source=%s",
            session_id,
            document_id,
            doc.page_count,
            source.value,
        )
        return doc

    async def upload(
        self,
        session_id: str,
        file: Optional[UploadFile],
        machine_name: Optional[str] = None,
    ) -> Document:
        if file is None or not file.filename:
            raise AppError.of(ErrorMessage.NO_FILE)
        if not _is_pdf(file):
            raise AppError.of(ErrorMessage.NOT_PDF)
        try:
            data = await file.read()
            await file.seek(0)
        except Exception:
            logger.error("upload.read.error session=%s", session_id)
            raise
        if not data:
            raise AppError.of(ErrorMessage.NO_FILE)
        return await self._ingest(
            session_id,
            data,
            original_name=file.filename,
            machine_name=(machine_name or "").strip() or None,
            source=DocumentSource.UPLOADED,
        )

    async def list(self, session_id: str) -> List[Document]:
        return await self._documents.all(session_id)

    async def delete(self, session_id: str, document_id: str) -> int:
        """Remove a document and its PDF; returns the number left in the session."""
        removed = await self._documents.delete(session_id, document_id)
        if not removed:
            raise AppError.of(ErrorMessage.DOCUMENT_NOT_FOUND)
        await self._blobs.delete(session_id, document_id)
        remaining = await self._documents.count(session_id)
        logger.info(
            "documents.delete session=%s doc=%s remaining=%d",
            session_id,
            document_id,
            remaining,
        )
        return remaining

    async def get_pdf(self, session_id: str, document_id: str) -> bytes:
        data = await self._blobs.get_pdf(session_id, document_id)
        if data is None:
            raise AppError.of(ErrorMessage.DOCUMENT_NOT_FOUND)
        await self._blobs.touch(session_id)
        return data

    def _pdf_files(self) -> List[Path]:
        if not self._import_dir.is_dir():
            raise AppError.of(ErrorMessage.IMPORT_DIR_NOT_FOUND)
        return sorted(
            p for p in self._import_dir.iterdir() if p.suffix.lower() == ".pdf"
        )

    async def import_directory(
        self,
        session_id: str,
        source: DocumentSource = DocumentSource.BULK_IMPORTED,
    ) -> ImportReport:
        """
        Ingest every PDF in the import directory that the session does not
        already hold. Per-file failures are collected, not raised.
        """
        files = self._pdf_files()
        report = ImportReport(found=len(files))
        existing = {d.original_name for d in await self._documents.all(session_id)}

        for path in files:
            if path.name in existing:
                logger.info("import.skip session=%s file=%r", session_id, path.name)
                continue
            try:
                data = await asyncio.to_thread(path.read_bytes)
                doc = await self._ingest(
                    session_id,
                    data,
                    original_name=path.name,
                    machine_name=None,
                    source=source,
                )
            except AppError as e:
                report.errors.append((path.name, str(e.detail)))
            except OSError as e:
                logger.error("import.read.error file=%r", path.name, exc_info=True)
                report.errors.append((path.name, str(e)))
            else:
                report.imported.append(doc)

        logger.info(
            "import.done session=%s found=%d imported=%d errors=%d",
            session_id,
            report.found,
            len(report.imported),
            len(report.errors),
        )
        return report

    async def auto_import_if_needed(self, session_id: str) -> Tuple[bool, int]:
        """
        Seed an empty session from the import directory.
        Returns (imported anything, document count).
        """
        count = await self._documents.count(session_id)
        if count > 0:
            return False, count
        try:
            report = await self.import_directory(session_id, DocumentSource.AUTO_IMPORTED)
        except AppError:
            logger.info("import.auto.skip session=%s reason=no_dir", session_id)
            return False, 0
        return bool(report.imported), len(report.imported)
