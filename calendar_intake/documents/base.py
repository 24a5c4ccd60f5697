"""
Document-to-text providers.

A provider turns an uploaded file into plain text that is then treated
exactly like typed input. Only a plain-text provider ships here; PDF,
image and word-processor providers plug in through the same interface.
"""

from abc import ABC, abstractmethod
from pathlib import PurePath

from calendar_intake.documents.errors import (
    DocumentProcessingError,
    NoExtractableTextError,
    UnsupportedDocumentTypeError,
)

MAX_FILENAME_LENGTH = 255


class DocumentTextProvider(ABC):
    """Interface for turning one kind of document into text."""

    name: str = "base"

    @abstractmethod
    def supports(self, filename: str, content_type: str | None) -> bool:
        """Check whether this provider handles the file."""

    @abstractmethod
    def extract_text(self, data: bytes, filename: str, content_type: str | None) -> str:
        """
        Return the document's text.

        Raises:
            NoExtractableTextError: The document holds no text.
            DocumentProcessingError: The document could not be read.
        """


class PlainTextProvider(DocumentTextProvider):
    """Reads UTF-8 text files (.txt, .md, .csv)."""

    name = "plain_text"

    CONTENT_TYPES = frozenset({"text/plain", "text/markdown", "text/csv"})
    EXTENSIONS = frozenset({".txt", ".text", ".md", ".csv"})

    def supports(self, filename: str, content_type: str | None) -> bool:
        base_type = (content_type or "").split(";")[0].strip().lower()
        return (
            base_type in self.CONTENT_TYPES
            or PurePath(filename.lower()).suffix in self.EXTENSIONS
        )

    def extract_text(self, data: bytes, filename: str, content_type: str | None) -> str:
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise DocumentProcessingError("Failed to read text file: not valid UTF-8") from e
        if not text.strip():
            raise NoExtractableTextError("No text found in the uploaded file")
        return text


class DocumentTextExtractor:
    """
    Routes a file to the first provider that supports it.

    Usage:
        extractor = DocumentTextExtractor(max_bytes=25 * 1024 * 1024)
        text = extractor.extract(data, "agenda.txt", "text/plain")

    Args:
        providers: Providers tried in order. Defaults to plain text only.
        max_bytes: Largest accepted file.
    """

    def __init__(
        self,
        providers: list[DocumentTextProvider] | None = None,
        max_bytes: int = 25 * 1024 * 1024,
    ):
        self._providers = providers if providers is not None else [PlainTextProvider()]
        self._max_bytes = max_bytes

    @property
    def providers(self) -> list[DocumentTextProvider]:
        return list(self._providers)

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def check_size(self, size: int) -> None:
        """Raise DocumentProcessingError if size exceeds max_bytes."""
        if size > self._max_bytes:
            raise DocumentProcessingError(f"File too large (limit {self._max_bytes} bytes)")

    def extract(self, data: bytes, filename: str | None, content_type: str | None) -> str:
        filename = filename or ""
        if len(filename) > MAX_FILENAME_LENGTH:
            raise DocumentProcessingError("File name too long")
        self.check_size(len(data))

        for provider in self._providers:
            if provider.supports(filename, content_type):
                return provider.extract_text(data, filename, content_type)

        raise UnsupportedDocumentTypeError(
            f"Unsupported file type: {content_type or PurePath(filename).suffix or 'unknown'}"
        )
