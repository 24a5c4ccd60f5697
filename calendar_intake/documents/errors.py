"""Typed failures of document-to-text providers."""


class DocumentProviderError(Exception):
    """Base exception for document text extraction."""

    status_code = 422


class UnsupportedDocumentTypeError(DocumentProviderError):
    """No provider handles this file type."""

    status_code = 415


class NoExtractableTextError(DocumentProviderError):
    """The file was read but holds no usable text."""


class DocumentProcessingError(DocumentProviderError):
    """The file could not be read."""
