# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    BOLD = "\033[1m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class DocumentSource(str, Enum):
    UPLOADED = "uploaded"
    AUTO_IMPORTED = "auto-imported"
    BULK_IMPORTED = "bulk-imported"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    MISSING_QUERY = ErrorInfo("Query is required", status.HTTP_400_BAD_REQUEST)
    NO_FILE = ErrorInfo("No PDF file uploaded", status.HTTP_400_BAD_REQUEST)
    NOT_PDF = ErrorInfo("Only PDF files are accepted", status.HTTP_400_BAD_REQUEST)
    FILE_TOO_LARGE = ErrorInfo(
        "File exceeds upload limit", status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    )
    PDF_PARSE_FAILED = ErrorInfo(
        "Could not extract text from PDF", status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    DOCUMENT_NOT_FOUND = ErrorInfo("Document not found", status.HTTP_404_NOT_FOUND)
    IMPORT_DIR_NOT_FOUND = ErrorInfo(
        "PDF import directory not found", status.HTTP_404_NOT_FOUND
    )
    INTERNAL_ERROR = ErrorInfo("Internal Error", status.HTTP_502_BAD_GATEWAY)
