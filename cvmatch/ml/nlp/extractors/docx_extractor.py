"""
DOCX/DOC document text extractor.

Uses python-docx. Legacy binary .doc files are handed to the same parser;
python-docx rejects them and extraction degrades to an empty result.
"""

import io

from cvmatch.utils.logger import get_logger

from .base import BaseExtractor, ExtractionResult

logger = get_logger(__name__)


class DOCXExtractor(BaseExtractor):
    """Extractor for Microsoft Word documents (.docx, .doc)."""

    @property
    def supported_extensions(self) -> tuple[str, ...]:
        return (".docx", ".doc")

    @property
    def required_modules(self) -> tuple[str, ...]:
        return ("docx",)

    def extract_from_bytes(
        self, content: bytes, filename: str = "document.docx"
    ) -> ExtractionResult:
        """Extract raw text from DOCX bytes."""
        try:
            from docx import Document
        except ImportError:
            logger.error("python-docx not installed")
            return ExtractionResult(
                text="",
                success=False,
                error_message="python-docx library not installed",
            )

        try:
            doc = Document(io.BytesIO(content))
            return self._process_document(doc)
        except Exception as e:
            logger.error(f"DOCX extraction failed for {filename}: {e}")
            return self._create_error_result(e)

    def _process_document(self, doc) -> ExtractionResult:
        """Process a python-docx Document object."""
        text_parts = [p.text.strip() for p in doc.paragraphs if p.text.strip()]

        # Table cells, one row per line
        for table in doc.tables:
            for row in table.rows:
                row_text = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if row_text:
                    text_parts.append(" | ".join(row_text))

        full_text = "\n".join(text_parts)

        warnings = []
        if not full_text.strip():
            warnings.append("Document appears to be empty or contains only images")

        return ExtractionResult(
            text=full_text,
            page_count=len(doc.sections) or 1,
            metadata={"extractor": "python-docx"},
            warnings=warnings,
        )
