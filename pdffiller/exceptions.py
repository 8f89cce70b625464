"""
Custom exceptions for pdffiller.

Core modules raise these; :class:`pdffiller.state.session.DocumentSession`
catches them at its public boundary and records the message as the last error.
"""


class PdfFillerError(Exception):
    """Base exception for all pdffiller errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown PDF form error occurred."


class LoadError(PdfFillerError):
    """Raised when a PDF cannot be opened (malformed, encrypted, unreadable)."""

    @property
    def default_message(self) -> str:
        return "Failed to load PDF."


class NoDocumentError(PdfFillerError):
    """Raised when an operation needs a loaded document and there is none."""

    @property
    def default_message(self) -> str:
        return "No document loaded"


class FormMissingError(PdfFillerError):
    """Raised when a form operation runs against a document without an AcroForm."""

    @property
    def default_message(self) -> str:
        return "Document has no form"


class FieldImportError(PdfFillerError):
    """Raised when the field tree cannot be read from a damaged document."""

    @property
    def default_message(self) -> str:
        return "Failed to read form fields."


class FieldNotFoundError(PdfFillerError):
    """Raised when an identifier matches no entry of the field index."""

    @property
    def default_message(self) -> str:
        return "Field not found."


class TypeMismatchError(PdfFillerError):
    """Raised when an operation does not apply to the field's kind."""

    @property
    def default_message(self) -> str:
        return "Unsupported field type."


class ValueNotInDomainError(PdfFillerError):
    """Raised when a choice value matches none of the field's options."""

    @property
    def default_message(self) -> str:
        return "Value not in choice options."


class SerializeError(PdfFillerError):
    """Raised when the document cannot be written back to bytes."""

    @property
    def default_message(self) -> str:
        return "Failed to save PDF."


class RenderError(PdfFillerError):
    """Raised when a page cannot be rasterized or encoded."""

    @property
    def default_message(self) -> str:
        return "Failed to render page."
