"""Document-to-text providers for uploaded files."""

from calendar_intake.documents.base import (
    DocumentTextExtractor,
    DocumentTextProvider,
    PlainTextProvider,
)
from calendar_intake.documents.errors import (
    DocumentProcessingError,
    DocumentProviderError,
    NoExtractableTextError,
    UnsupportedDocumentTypeError,
)

__all__ = [
    "DocumentProcessingError",
    "DocumentProviderError",
    "DocumentTextExtractor",
    "DocumentTextProvider",
    "NoExtractableTextError",
    "PlainTextProvider",
    "UnsupportedDocumentTypeError",
]
