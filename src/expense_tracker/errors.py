"""Error taxonomy for receipt ingestion.

Every error carries a human-readable ``message`` that is safe to show to
the user as-is.
"""

from __future__ import annotations


class ExpenseTrackerError(Exception):
    """Base class for user-facing expense tracker errors."""

    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnsupportedFileTypeError(ExpenseTrackerError):
    """The uploaded file is neither an image nor a PDF."""

    default_message = "Unsupported file type. Please select an image or a PDF."


class ExtractionError(ExpenseTrackerError):
    """The AI service failed or returned unusable data for one image."""

    default_message = (
        "Failed to analyze the receipt. Please try again or enter details manually."
    )


class RasterizationError(ExpenseTrackerError):
    """A PDF could not be parsed or one of its pages could not be rendered."""

    default_message = "Could not read the PDF. The file may be corrupt or encrypted."


class AllPagesFailedError(ExpenseTrackerError):
    """Every page of a readable PDF failed extraction."""

    default_message = (
        "Could not extract any expenses from the PDF. The file was read, "
        "but analysis failed for every page; please try again later."
    )
