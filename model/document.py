# model/document.py
from pydantic import BaseModel

from core.entities import Document


class DocumentOut(BaseModel):
    id: str
    machineName: str | None = None
    originalName: str | None = None
    fileName: str | None = None
    pdfPath: str | None = None
    pageCount: int = 0
    uploadedAt: str | None = None
    source: str = "uploaded"

    @classmethod
    def from_document(cls, doc: Document) -> "DocumentOut":
        return cls(
            id=doc.document_id or "",
            machineName=doc.machine_name,
            originalName=doc.original_name,
            fileName=doc.file_name,
            pdfPath=doc.pdf_path,
            pageCount=doc.page_count,
            uploadedAt=doc.uploaded_at,
            source=doc.source,
        )
