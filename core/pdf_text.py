# core/pdf_text.py
import logging
from typing import Dict, List, Tuple

import fitz

from core.entities import Document, Page
from util.timing import timed

logger = logging.getLogger(__name__)

LINE_Y_TOLERANCE = 5.0
MACHINE_NAME_WORDS = 5


def _page_lines(page) -> List[Tuple[float, str]]:
    """
    Group the page's text spans into visual lines: spans whose baselines sit
    within LINE_Y_TOLERANCE points share a line. Returned top-to-bottom.
    """
    rows: Dict[float, List[Tuple[float, str]]] = {}
    for block in page.get_text("dict").get("blocks", []):
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text") or ""
                if not text.strip():
                    continue
                x0, y0 = span["bbox"][0], span["bbox"][1]
                key = next(
                    (y for y in rows if abs(y - y0) <= LINE_Y_TOLERANCE), y0
                )
                rows.setdefault(key, []).append((x0, text))

    out: List[Tuple[float, str]] = []
    for y in sorted(rows):
        spans = sorted(rows[y], key=lambda s: s[0])
        text = " ".join(t.strip() for _, t in spans).strip()
        if text:
            out.append((y, text))
    return out


def extract_document(file_bytes: bytes, **meta) -> Document:
    """
    Parse a PDF into the page/line model. Parse failures are logged and yield
    a document with no pages.
    """
    try:
        pages: List[Page] = []
        with timed(logger, "pdf.open"):
            with fitz.open(stream=file_bytes, filetype="pdf") as doc:
                count = doc.page_count
                with timed(logger, "pdf.parse", pages=count):
                    for i in range(count):
                        rows = _page_lines(doc.load_page(i))
                        pages.append(
                            Page.from_texts(
                                i + 1,
                                [t for _, t in rows],
                                y_positions=[y for y, _ in rows],
                            )
                        )
        logger.info(
            "pdf.pages count=%d lines=%d",
            len(pages),
            sum(len(p.lines) for p in pages),
        )
        return Document(pages=pages, **meta)
    except Exception:
        # do not log payloads
        logger.error("pdf.parse.error", exc_info=True)
        return Document(**meta)


def guess_machine_name(document: Document, fallback: str) -> str:
    """First words of the document text, else `fallback`."""
    words = document.full_text.split()[:MACHINE_NAME_WORDS]
    return " ".join(words) if words else fallback
