# model/api.py
from pydantic import BaseModel, Field

from model.document import DocumentOut


class SearchRequest(BaseModel):
    query: str | None = None


class PageReferenceOut(BaseModel):
    targetPage: int
    referenceText: str
    sourceContext: str


class PartNumberOut(BaseModel):
    value: str
    lineNumber: int
    confidence: int


class LocationOut(BaseModel):
    pageNumber: int | None = None
    lineNumber: int | None = None
    yPosition: float = 0.0
    context: str = ""
    section: str = ""
    isFollowedFromIndex: bool = False
    indexPageNumber: int | None = None
    itemNumber: str | None = None
    actualPartNumber: str | None = None
    partNumberConfidence: int | None = None
    partNumbers: list[PartNumberOut] = Field(default_factory=list)


class MatchOut(BaseModel):
    partNo: str | None = None
    partName: str
    relevance: int
    documentId: str | None = None
    machineName: str | None = None
    pdfPath: str | None = None
    pdfInfo: str | None = None
    location: LocationOut | None = None
    pageReference: PageReferenceOut | None = None
    resolution: str | None = None


class ContextOut(BaseModel):
    equipmentType: str | None = None
    previousQueries: list[str] = Field(default_factory=list)


class SearchResponse(BaseModel):
    query: str
    matches: list[MatchOut]
    summary: str
    pdfInfo: str | None = None
    pageReference: PageReferenceOut | None = None
    isConversational: bool = False
    isDirect: bool = False
    queryType: str | None = None
    intent: str | None = None
    sessionId: str
    clientDocumentCount: int
    autoImported: bool = False
    autoImportedCount: int = 0
    aiProvider: str
    context: ContextOut


class UploadResponse(BaseModel):
    success: bool = True
    message: str = "PDF uploaded and processed successfully"
    sessionId: str
    document: DocumentOut
    totalDocuments: int


class DocumentsResponse(BaseModel):
    sessionId: str
    documents: list[DocumentOut]
    totalDocuments: int


class DeleteDocumentResponse(BaseModel):
    success: bool = True
    message: str = "Document deleted successfully"
    sessionId: str
    remainingDocuments: int


class ImportFailure(BaseModel):
    filename: str
    error: str


class ImportStats(BaseModel):
    found: int
    imported: int
    errors: int
    skipped: int


class ImportResponse(BaseModel):
    success: bool = True
    message: str
    sessionId: str
    imported: list[DocumentOut]
    totalDocuments: int
    errors: list[ImportFailure] = Field(default_factory=list)
    stats: ImportStats
