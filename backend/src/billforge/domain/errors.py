"""
Typed exceptions for the billing engine.

Every error carries a machine-readable ``code`` so the API layer can map
it to a response without parsing messages.

    BillingError (base)
    |
    +-- ValidationError
    |   +-- InvalidStatusError
    |   +-- DocumentLockedError
    |
    +-- NotFound
    +-- RenderAssetError
    +-- ExportError
    +-- NumberingExhaustedError
    +-- SuggestionUnavailableError

RenderAssetError is raised by the image loader and recovered inside the
layout engine; it never reaches API callers.
"""

from typing import Any


class BillingError(Exception):
    """Base class for all billing engine errors."""

    code: str = "BILLING_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details}


class ValidationError(BillingError):
    """Missing or malformed business/document fields, reported before commit."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, problems: list[str] | None = None, **details: Any) -> None:
        super().__init__(message, **details)
        self.problems = problems or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.problems:
            data["problems"] = self.problems
        return data


class InvalidStatusError(ValidationError):
    """A requested status is not one of the known document states."""

    code = "INVALID_STATUS"

    def __init__(self, value: Any) -> None:
        super().__init__(f"Unknown document status: {value!r}", status=str(value))
        self.value = value


class DocumentLockedError(ValidationError):
    """An edit was attempted on a document that is no longer editable."""

    code = "DOCUMENT_LOCKED"

    def __init__(self, document_id: str, status: str) -> None:
        super().__init__(
            f"Document {document_id} is {status} and can no longer be edited",
            document_id=document_id,
            status=status,
        )
        self.document_id = document_id
        self.status = status


class NotFound(BillingError):
    """No record with the given id exists in the caller's working set."""

    code = "NOT_FOUND"

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(
            f"{collection} record not found: {record_id}",
            collection=collection,
            record_id=record_id,
        )
        self.collection = collection
        self.record_id = record_id


class RenderAssetError(BillingError):
    """An image asset (the business logo) could not be decoded."""

    code = "RENDER_ASSET_ERROR"


class ExportError(BillingError):
    """The export sink failed to display or save the rendered pages."""

    code = "EXPORT_ERROR"


class NumberingExhaustedError(BillingError):
    """No unused document number could be drawn within the attempt budget."""

    code = "NUMBERING_EXHAUSTED"

    def __init__(self, prefix: str, attempts: int) -> None:
        super().__init__(
            f"Could not assign a unique number with prefix {prefix!r} after {attempts} attempts",
            prefix=prefix,
            attempts=attempts,
        )


class SuggestionUnavailableError(BillingError):
    """The optional text-suggestion service is disabled or failed."""

    code = "SUGGESTION_UNAVAILABLE"
