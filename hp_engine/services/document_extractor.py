"""
Text extraction for uploaded corpus files.

Produces one plain-text string from a PDF, a DOCX, or any other file read as
UTF-8 text.  The declared media type picks the strategy, never the file
extension.  Every failure, including a file with no text at all, surfaces as
a single ExtractionError; partial text is never returned.
"""
from __future__ import annotations

import io
import logging
from typing import List

import fitz  # PyMuPDF
from docx import Document as DocxDocument
from docx.table import Table
from docx.text.paragraph import Paragraph

from hp_engine.exceptions import ExtractionError

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)


class DocumentExtractor:
    """Extracts raw text from PDF, DOCX and plain-text uploads."""

    async def extract(self, data: bytes, media_type: str) -> str:
        """
        Extract the full text of an uploaded file.

        Args:
            data:       Raw file bytes.
            media_type: Declared media type, e.g. "application/pdf".
                        Parameters such as "; charset=utf-8" are ignored.

        Returns:
            The extracted text (not trimmed).

        Raises:
            ExtractionError: Unreadable, corrupt, undecodable or empty file.
        """
        mt = (media_type or "").split(";")[0].strip().lower()
        try:
            if mt == PDF_MEDIA_TYPE:
                text = self._extract_pdf(data)
            elif mt == DOCX_MEDIA_TYPE:
                text = self._extract_docx(data)
            else:
                text = self._extract_plain(data)
        except ExtractionError:
            raise
        except Exception as exc:
            logger.error("File extraction error (%s): %s", mt or "unknown", exc)
            raise ExtractionError() from exc

        if not text.strip():
            raise ExtractionError("Could not extract any text from the file.")

        logger.info("Extracted %d characters from %s upload", len(text), mt or "text")
        return text

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def _extract_pdf(self, data: bytes) -> str:
        """Join each page's text spans with spaces, pages with newlines."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(f"Cannot open PDF file: {exc}") from exc

        try:
            if doc.needs_pass:
                raise ExtractionError(
                    "PDF is password-protected. Please provide an unlocked copy."
                )

            page_texts: List[str] = []
            # Pages are visited strictly in order; RTL reading order inside a
            # page is whatever the PDF's content stream gives us.
            for page in doc:
                items: List[str] = []
                for block in page.get_text("dict")["blocks"]:
                    if block.get("type") != 0:
                        continue
                    for line in block.get("lines", []):
                        for span in line.get("spans", []):
                            items.append(span.get("text", ""))
                page_texts.append(" ".join(items))
        finally:
            doc.close()

        return "\n".join(page_texts)

    # ------------------------------------------------------------------
    # DOCX
    # ------------------------------------------------------------------

    def _extract_docx(self, data: bytes) -> str:
        """Raw text of every paragraph and table cell, in body order."""
        try:
            doc = DocxDocument(io.BytesIO(data))
        except Exception as exc:
            raise ExtractionError(f"Cannot open DOCX file: {exc}") from exc

        parts: List[str] = []
        for block in doc.iter_inner_content():
            if isinstance(block, Paragraph):
                parts.append(block.text)
            elif isinstance(block, Table):
                parts.extend(_table_text(block))

        return "\n\n".join(parts)

    # ------------------------------------------------------------------
    # Plain text (fallback for any other media type)
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_plain(data: bytes) -> str:
        try:
            # A leading byte-order mark is not part of the text
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ExtractionError(
                "File is not valid UTF-8 text."
            ) from exc


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

def _table_text(table: Table) -> List[str]:
    """Flatten a DOCX table into one text entry per cell paragraph."""
    parts: List[str] = []
    for row in table.rows:
        for cell in row.cells:
            for para in cell.paragraphs:
                parts.append(para.text)
    return parts
