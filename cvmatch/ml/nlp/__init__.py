"""
NLP pipeline for CV documents.

Main Components:
- ExtractorFactory: Document text extraction (PDF, DOCX, DOC)
- extract_text: Download a CV by URL and return its text
- extract_sections: Split CV text into labeled sections
"""

from .extractors import (
    BaseExtractor,
    DOCXExtractor,
    ExtractionResult,
    ExtractorFactory,
    PDFExtractor,
    extract_file,
    extract_text,
)

from .section_extractor import (
    SECTION_KEYWORDS,
    CVSections,
    detect_section,
    extract_sections,
)

__all__ = [
    # Extractors
    "BaseExtractor",
    "DOCXExtractor",
    "ExtractionResult",
    "ExtractorFactory",
    "PDFExtractor",
    "extract_file",
    "extract_text",
    # Sections
    "SECTION_KEYWORDS",
    "CVSections",
    "detect_section",
    "extract_sections",
]
