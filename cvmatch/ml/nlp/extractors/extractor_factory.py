"""
Factory for creating appropriate document extractors.

Also hosts the URL entry point used by the matching pipeline: the CV
file is downloaded from object storage and parsed by the extractor
registered for its extension.
"""

import asyncio
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlsplit

import httpx

from cvmatch.utils.config import get_settings
from cvmatch.utils.logger import get_logger

from .base import BaseExtractor, ExtractionResult
from .docx_extractor import DOCXExtractor
from .pdf_extractor import PDFExtractor

logger = get_logger(__name__)


class ExtractorFactory:
    """
    Factory class for creating document extractors.

    Automatically selects the appropriate extractor based on file extension.
    """

    _extractors: list[BaseExtractor] = []
    _initialized: bool = False
    _availability_checked: bool = False

    @classmethod
    def _initialize(cls) -> None:
        """Initialize available extractors."""
        if cls._initialized:
            return

        cls._extractors = [
            PDFExtractor(),
            DOCXExtractor(),
        ]
        cls._initialized = True

    @classmethod
    def check_availability(cls) -> dict[str, bool]:
        """
        Report which extractors have their parser library installed.

        Missing parsers are logged once; extraction for that format
        returns empty text until the library is installed.
        """
        cls._initialize()

        availability = {}
        for extractor in cls._extractors:
            name = type(extractor).__name__
            availability[name] = extractor.is_available
            if not cls._availability_checked and not availability[name]:
                logger.warning(
                    f"{name} unavailable: none of {', '.join(extractor.required_modules)} installed"
                )

        cls._availability_checked = True
        return availability

    @classmethod
    def get_extractor(cls, file_path: str | Path) -> Optional[BaseExtractor]:
        """
        Get the appropriate extractor for a file.

        Args:
            file_path: Path to the file or filename

        Returns:
            Appropriate extractor or None if no extractor supports the format
        """
        cls._initialize()
        if not cls._availability_checked:
            cls.check_availability()

        extension = Path(file_path).suffix.lower()

        for extractor in cls._extractors:
            if extension in extractor.supported_extensions:
                return extractor

        logger.debug(f"No extractor found for extension: {extension}")
        return None

    @classmethod
    def extract(cls, file_path: str | Path) -> ExtractionResult:
        """
        Extract text from a local file using the appropriate extractor.

        Args:
            file_path: Path to the file

        Returns:
            ExtractionResult with extracted text or error
        """
        extractor = cls.get_extractor(file_path)

        if extractor is None:
            return ExtractionResult(
                text="",
                success=False,
                error_message=f"Unsupported file format: {Path(file_path).suffix}",
            )

        return extractor.extract(file_path, max_size=get_settings().extraction.max_file_size)

    @classmethod
    def extract_from_bytes(
        cls, content: bytes, filename: str
    ) -> ExtractionResult:
        """
        Extract text from file bytes using the appropriate extractor.

        Args:
            content: Raw file bytes
            filename: Original filename (for extension detection)

        Returns:
            ExtractionResult with extracted text or error
        """
        extractor = cls.get_extractor(filename)

        if extractor is None:
            return ExtractionResult(
                text="",
                success=False,
                error_message=f"Unsupported file format: {Path(filename).suffix}",
            )

        return extractor.extract_from_bytes(content, filename)


def filename_from_url(file_url: str) -> str:
    """Return the last path segment of a URL, without query string or fragment."""
    return PurePosixPath(urlsplit(file_url).path).name


async def _download(file_url: str) -> bytes:
    """Download a file, enforcing the configured timeout and size limit."""
    extraction_settings = get_settings().extraction

    async with httpx.AsyncClient(
        timeout=extraction_settings.download_timeout, follow_redirects=True
    ) as client:
        response = await client.get(file_url)
        response.raise_for_status()

    if len(response.content) > extraction_settings.max_file_size:
        raise ValueError(
            f"File too large: {len(response.content)} bytes "
            f"(max: {extraction_settings.max_file_size})"
        )
    return response.content


async def extract_text(file_url: str) -> str:
    """
    Download a CV file and return its trimmed text.

    Never raises: unsupported formats, network errors, corrupt files and
    missing parser libraries all yield an empty string.
    """
    try:
        filename = filename_from_url(file_url)
        extractor = ExtractorFactory.get_extractor(filename)
        if extractor is None:
            logger.warning(f"Unsupported CV format for {file_url}")
            return ""

        content = await _download(file_url)
        result = await asyncio.to_thread(extractor.extract_from_bytes, content, filename)
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.error(f"Failed to fetch CV from {file_url}: {e}")
        return ""
    except Exception as e:
        logger.exception(f"Unexpected error extracting CV from {file_url}: {e}")
        return ""

    if not result.success:
        logger.error(f"Failed to extract text from {file_url}: {result.error_message}")
        return ""

    for warning in result.warnings:
        logger.debug(f"{filename}: {warning}")

    return result.text.strip()


def extract_file(file_path: str | Path) -> str:
    """Return the trimmed text of a local CV file, or an empty string."""
    result = ExtractorFactory.extract(file_path)
    if not result.success:
        logger.error(f"Failed to extract text from {file_path}: {result.error_message}")
        return ""
    return result.text.strip()
