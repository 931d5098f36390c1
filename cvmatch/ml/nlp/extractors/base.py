"""
Base extractor class for document text extraction.
"""

import importlib.util
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class ExtractionResult:
    """Result of text extraction from a document."""

    text: str
    page_count: int = 1
    metadata: dict = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    success: bool = True
    error_message: Optional[str] = None


class BaseExtractor(ABC):
    """
    Abstract base class for document text extractors.

    All format-specific extractors should inherit from this class.
    """

    @property
    @abstractmethod
    def supported_extensions(self) -> tuple[str, ...]:
        """Return tuple of supported file extensions (e.g., '.pdf', '.docx')."""
        pass

    @property
    @abstractmethod
    def required_modules(self) -> tuple[str, ...]:
        """Importable parser modules; any one of them is enough."""
        pass

    @property
    def is_available(self) -> bool:
        """Check whether at least one parser library is installed."""
        return any(
            importlib.util.find_spec(module) is not None
            for module in self.required_modules
        )

    @abstractmethod
    def extract_from_bytes(
        self, content: bytes, filename: str = "document"
    ) -> ExtractionResult:
        """
        Extract text content from document bytes.

        Args:
            content: Raw bytes of the document
            filename: Original filename (for extension detection)

        Returns:
            ExtractionResult containing the extracted text and metadata
        """
        pass

    def extract(self, file_path: str | Path, max_size: Optional[int] = None) -> ExtractionResult:
        """
        Extract text content from a local document.

        Args:
            file_path: Path to the document file
            max_size: Optional size limit in bytes

        Returns:
            ExtractionResult containing the extracted text and metadata
        """
        try:
            path = self._validate_file(file_path, max_size)
            return self.extract_from_bytes(path.read_bytes(), path.name)
        except (OSError, ValueError) as e:
            return self._create_error_result(e)

    def _validate_file(self, file_path: str | Path, max_size: Optional[int] = None) -> Path:
        """Validate that the file exists, is a regular file and is not too large."""
        path = Path(file_path).resolve(strict=False)

        if not path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")
        if not path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

        if max_size is not None and path.stat().st_size > max_size:
            raise ValueError(f"File too large: {path.stat().st_size} bytes (max: {max_size})")

        return path

    def _create_error_result(self, error: Exception) -> ExtractionResult:
        """Create an error result from an exception."""
        return ExtractionResult(
            text="",
            success=False,
            error_message=str(error),
        )
