# core/entities.py
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Line:
    """
    One visual line of a page, top-to-bottom ordered. Produced by ingestion.
    """

    page_number: int
    line_number: int  # 1-based within the page
    text: str
    y_position: float = 0.0
    previous_text: str = ""
    next_text: str = ""


@dataclass
class Page:
    page_number: int  # 1-based
    lines: List[Line] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(line.text for line in self.lines)

    @classmethod
    def from_texts(
        cls,
        page_number: int,
        texts: Sequence[str],
        y_positions: Optional[Sequence[float]] = None,
    ) -> "Page":
        """
        Build a page from ordered line texts, wiring the neighbour back-references.
        """
        lines: List[Line] = []
        for i, text in enumerate(texts):
            lines.append(
                Line(
                    page_number=page_number,
                    line_number=i + 1,
                    text=text,
                    y_position=float(y_positions[i]) if y_positions else 0.0,
                    previous_text=texts[i - 1] if i > 0 else "",
                    next_text=texts[i + 1] if i < len(texts) - 1 else "",
                )
            )
        return cls(page_number=page_number, lines=lines)


@dataclass(frozen=True)
class LineIndexEntry:
    text: str
    page_number: int
    line_number: int
    y_position: float
    previous_text: str
    next_text: str


@dataclass
class Document:
    """
    Page/line model of one uploaded manual. Pages are contiguous from 1.
    """

    pages: List[Page] = field(default_factory=list)
    document_id: Optional[str] = None
    machine_name: Optional[str] = None
    original_name: Optional[str] = None
    file_name: Optional[str] = None
    pdf_path: Optional[str] = None
    uploaded_at: Optional[str] = None
    source: str = "uploaded"

    @classmethod
    def from_page_texts(cls, page_texts: Sequence[str], **meta) -> "Document":
        pages = [
            Page.from_texts(i + 1, [t for t in text.split("\n") if t.strip()])
            for i, text in enumerate(page_texts)
        ]
        return cls(pages=pages, **meta)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page(self, page_number: int) -> Optional[Page]:
        # Out-of-range lookups are "no content", never an error.
        if not isinstance(page_number, int) or not 1 <= page_number <= len(self.pages):
            return None
        return self.pages[page_number - 1]

    def page_text(self, page_number: int) -> str:
        p = self.page(page_number)
        return p.text if p else ""

    @cached_property
    def line_index(self) -> List[LineIndexEntry]:
        return [
            LineIndexEntry(
                text=line.text.strip(),
                page_number=line.page_number,
                line_number=line.line_number,
                y_position=line.y_position,
                previous_text=line.previous_text,
                next_text=line.next_text,
            )
            for page in self.pages
            for line in page.lines
            if line.text.strip()
        ]

    @property
    def full_text(self) -> str:
        return "\n".join(p.text for p in self.pages)


@dataclass
class Candidate:
    entry: LineIndexEntry
    context: str = ""
    score: int = 0


@dataclass
class IdentifierCandidate:
    value: str
    line_number: int
    context: str
    confidence: int
    relevance_score: Optional[int] = None


@dataclass(frozen=True)
class PageReference:
    target_page: int
    reference_text: str
    source_context: str


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    PARTIAL = "partial_resolved"
    UNRESOLVED = "unresolved"


@dataclass
class ContentResolution:
    status: ResolutionStatus
    page_number: Optional[int] = None
    line_number: Optional[int] = None
    y_position: float = 0.0
    content: str = ""
    context: str = ""
    part_numbers: List[IdentifierCandidate] = field(default_factory=list)
    relevant_part_number: Optional[IdentifierCandidate] = None

    @property
    def found(self) -> bool:
        return self.status is not ResolutionStatus.UNRESOLVED


@dataclass
class Location:
    page_number: int
    line_number: int
    y_position: float = 0.0
    context: str = ""
    section: str = ""
    line_text: str = ""  # the matched line itself, without neighbours
    is_followed_from_index: bool = False
    index_page_number: Optional[int] = None
    item_number: Optional[str] = None
    actual_part_number: Optional[str] = None
    part_number_confidence: Optional[int] = None
    part_numbers: List[IdentifierCandidate] = field(default_factory=list)


@dataclass
class SearchResult:
    part_no: Optional[str]
    part_name: str
    relevance: int
    location: Optional[Location] = None
    document_id: Optional[str] = None
    machine_name: Optional[str] = None
    pdf_path: Optional[str] = None
    page_reference: Optional[PageReference] = None
    resolution: Optional[ResolutionStatus] = None

    @property
    def redirected(self) -> bool:
        return self.location is not None and (
            self.location.is_followed_from_index
            or self.location.index_page_number is not None
        )
