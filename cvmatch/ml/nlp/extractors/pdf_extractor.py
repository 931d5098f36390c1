"""
PDF document text extractor.

Uses multiple extraction methods for robust text extraction:
1. pdfplumber - Primary method, good for structured text
2. pypdf - Fallback method
"""

import io
from typing import BinaryIO

from cvmatch.utils.logger import get_logger

from .base import BaseExtractor, ExtractionResult

logger = get_logger(__name__)

# pdfplumber output at or below this length triggers the pypdf fallback
MIN_PRIMARY_TEXT_LENGTH = 50


class PDFExtractor(BaseExtractor):
    """Extractor for PDF documents."""

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".pdf",)

    @property
    def required_modules(self) -> tuple[str, ...]:
        return ("pdfplumber", "pypdf")

    def extract_from_bytes(
        self, content: bytes, filename: str = "document.pdf"
    ) -> ExtractionResult:
        """Extract text from PDF bytes."""
        try:
            return self._extract_from_file_object(io.BytesIO(content))
        except Exception as e:
            logger.error(f"PDF extraction failed for {filename}: {e}")
            return self._create_error_result(e)

    def _extract_from_file_object(self, file_obj: BinaryIO) -> ExtractionResult:
        """Extract text from a file-like object."""
        warnings = []

        text, page_count, metadata = self._extract_with_pdfplumber(file_obj)
        if len(text.strip()) > MIN_PRIMARY_TEXT_LENGTH:
            return ExtractionResult(
                text=text,
                page_count=page_count,
                metadata=metadata,
            )

        warnings.append("pdfplumber extraction yielded limited text, trying pypdf")
        file_obj.seek(0)
        text, page_count, metadata = self._extract_with_pypdf(file_obj)

        if len(text.strip()) < 10:
            warnings.append("PDF may be image-based or encrypted")

        return ExtractionResult(
            text=text,
            page_count=page_count,
            metadata=metadata,
            warnings=warnings,
        )

    def _extract_with_pdfplumber(self, file_obj: BinaryIO) -> tuple[str, int, dict]:
        """Extract text using pdfplumber."""
        try:
            import pdfplumber
        except ImportError:
            logger.warning("pdfplumber not installed, skipping")
            return "", 0, {}

        try:
            text_parts = []
            with pdfplumber.open(file_obj) as pdf:
                page_count = len(pdf.pages)
                for page in pdf.pages:
                    page_text = page.extract_text()
                    if page_text:
                        text_parts.append(page_text)

            return "\n\n".join(text_parts), page_count, {"extractor": "pdfplumber"}

        except Exception as e:
            logger.debug(f"pdfplumber extraction error: {e}")
            return "", 0, {}

    def _extract_with_pypdf(self, file_obj: BinaryIO) -> tuple[str, int, dict]:
        """Extract text using pypdf."""
        try:
            from pypdf import PdfReader
        except ImportError:
            logger.warning("pypdf not installed")
            return "", 0, {}

        try:
            reader = PdfReader(file_obj)
            text_parts = [
                page_text for page_text in (page.extract_text() for page in reader.pages)
                if page_text
            ]
            return "\n\n".join(text_parts), len(reader.pages), {"extractor": "pypdf"}

        except Exception as e:
            logger.debug(f"pypdf extraction error: {e}")
            return "", 0, {}
