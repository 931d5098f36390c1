"""
File content extractors for CV documents.

Supports extraction of text from PDF, DOCX and DOC files, either local or
downloaded from a URL.
"""

from .base import BaseExtractor, ExtractionResult
from .pdf_extractor import PDFExtractor
from .docx_extractor import DOCXExtractor
from .extractor_factory import (
    ExtractorFactory,
    extract_file,
    extract_text,
    filename_from_url,
)

__all__ = [
    "BaseExtractor",
    "ExtractionResult",
    "PDFExtractor",
    "DOCXExtractor",
    "ExtractorFactory",
    "extract_file",
    "extract_text",
    "filename_from_url",
]
