"""
Failure classification for deck import, export and persistence.

Every failure that reaches a caller is a KnownError subclass carrying a
FailureKind. Limit-reached conditions in the deck model are NOT failures:
they are silent no-ops and never appear here.

Taxonomy:
- Malformed input: text cannot be parsed as the claimed/sniffed format
- Unknown format: the sniffer could not classify the text
- Storage exhaustion: a persisted write exceeds the store capacity
- Catalog errors: the remote card catalog failed or returned garbage
"""

from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Input failures
    INVALID_INPUT = "invalid_input"
    PARSE_FAILED = "parse_failed"
    UNKNOWN_FORMAT = "unknown_format"
    INVALID_CARD = "invalid_card"

    # Persistence failures
    STORAGE_FULL = "storage_full"
    UNSUPPORTED_SCHEMA = "unsupported_schema"

    # Resource failures
    NOT_FOUND = "not_found"

    # Service failures
    EXTERNAL_API_ERROR = "external_api_error"


class FailureDetail(BaseModel):
    """Detailed information about a failure."""

    kind: FailureKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: str | None = Field(
        default=None,
        description="Additional technical detail (optional)",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested action for the user",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> FailureDetail:
        """Convert to a FailureDetail."""
        return FailureDetail(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
        )


class DeckParseError(KnownError):
    """
    Raised when text cannot be decoded as the selected or sniffed format.

    Carries the offending format so callers can report which decoder failed.
    """

    def __init__(self, format_name: str, reason: str):
        self.format_name = format_name
        self.reason = reason
        super().__init__(
            kind=FailureKind.PARSE_FAILED,
            message=f"Could not parse deck as {format_name.upper()}: {reason}",
            detail=reason,
            suggestion="Check the file contents or pick a different format.",
        )


class UnknownFormatError(KnownError):
    """Raised when the sniffer cannot classify the input text."""

    def __init__(self) -> None:
        super().__init__(
            kind=FailureKind.UNKNOWN_FORMAT,
            message="Could not determine the deck format.",
            suggestion="Select CSV, XML, Text or JSON explicitly.",
        )


class CardShapeError(KnownError):
    """Raised when a raw record is neither a catalog card nor a formatted deck card."""

    def __init__(self, reason: str):
        super().__init__(
            kind=FailureKind.INVALID_CARD,
            message="Card record is not recognized.",
            detail=reason,
        )


class StorageFullError(KnownError):
    """Raised when a write would exceed the key-value store capacity."""

    def __init__(self, key: str, required: int, capacity: int):
        self.key = key
        self.required = required
        self.capacity = capacity
        super().__init__(
            kind=FailureKind.STORAGE_FULL,
            message="Storage is full.",
            detail=f"Writing {key} needs {required} bytes, capacity is {capacity}",
            suggestion="Remove favorites or custom cards you no longer need.",
            status_code=507,
        )


class CompressionVersionError(KnownError):
    """Raised when a compressed record was written by a newer schema."""

    def __init__(self, version: int, supported: int):
        self.version = version
        super().__init__(
            kind=FailureKind.UNSUPPORTED_SCHEMA,
            message="Stored card uses an unsupported schema version.",
            detail=f"Record version {version}, supported up to {supported}",
        )


class CatalogError(KnownError):
    """Raised when the remote card catalog request fails."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(
            kind=FailureKind.EXTERNAL_API_ERROR,
            message=message,
            detail=detail,
            suggestion="Try again later.",
            status_code=502,
        )
