"""Domain and extraction models for expense tracking."""

from __future__ import annotations

import base64
import datetime as dt
import mimetypes
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

if TYPE_CHECKING:
    from pathlib import Path


class ExpenseCategory(StrEnum):
    """The closed set of expense categories."""

    FOOD = "Food"
    TRANSPORT = "Transport"
    GROCERIES = "Groceries"
    UTILITIES = "Utilities"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    HEALTH = "Health"
    OTHER = "Other"

    @classmethod
    def coerce(cls, value: Any) -> ExpenseCategory:
        """Return the matching category, or OTHER for anything outside the set."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


def new_expense_id() -> str:
    """Return a fresh, never-reused expense identifier."""
    return uuid4().hex


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Encode binary image data as a data: URI."""
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{b64}"


class LineItem(BaseModel):
    """One named, priced component of a receipt."""

    name: str = Field(description="The name of the individual item purchased.")
    price: Decimal = Field(ge=0, description="The price of the individual item.")


class ReceiptExtraction(BaseModel):
    """Structured expense fields extracted from a receipt image by the LLM.

    Item prices are not reconciled against ``amount``; both are taken as
    reported.
    """

    payee: str = Field(
        min_length=1,
        description="The name of the merchant or person the expense was paid to.",
    )
    amount: Decimal = Field(
        ge=0, description="The total amount of the expense as a numeric value."
    )
    date: dt.date = Field(description="The date of the expense in YYYY-MM-DD format.")
    category: ExpenseCategory = Field(
        description="The category of the expense. Must be one of: "
        + ", ".join(c.value for c in ExpenseCategory)
        + "."
    )
    description: str | None = Field(
        default=None,
        description="A brief, one-sentence description of the overall purchase.",
    )
    items: list[LineItem] = Field(
        default_factory=list,
        description="Each line item from the receipt with its name and price.",
    )

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> ExpenseCategory:
        return ExpenseCategory.coerce(value)

    @field_validator("date", mode="before")
    @classmethod
    def _default_unrecoverable_date(cls, value: Any) -> Any:
        # "N/A" and friends fall back to today, as manual entry does.
        if value is None:
            return dt.date.today()
        if isinstance(value, str):
            try:
                return dt.date.fromisoformat(value.strip())
            except ValueError:
                return dt.date.today()
        return value


class ExpenseRecord(BaseModel):
    """A persisted expense."""

    id: str = Field(default_factory=new_expense_id)
    payee: str = Field(min_length=1)
    amount: Decimal = Field(ge=0)
    date: dt.date
    category: ExpenseCategory = ExpenseCategory.OTHER
    description: str | None = None
    items: list[LineItem] = Field(default_factory=list)
    image_preview: str | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> ExpenseCategory:
        return ExpenseCategory.coerce(value)

    @classmethod
    def from_extraction(
        cls, extraction: ReceiptExtraction, image_preview: str | None = None
    ) -> ExpenseRecord:
        """Build a complete record from extracted fields plus a preview."""
        return cls(**extraction.model_dump(), image_preview=image_preview)


class ExpenseDraft(BaseModel):
    """A partially filled expense awaiting review before it is saved."""

    payee: str | None = None
    amount: Decimal | None = None
    date: dt.date | None = None
    category: ExpenseCategory | None = None
    description: str | None = None
    items: list[LineItem] = Field(default_factory=list)
    image_preview: str | None = None

    def to_record(self) -> ExpenseRecord:
        """Validate the draft into a record with a new id.

        Raises pydantic.ValidationError when a required field is missing.
        """
        return ExpenseRecord.model_validate(self.model_dump(exclude_none=True))


@dataclass(frozen=True)
class PageImage:
    """One rasterized PDF page, 1-indexed."""

    index: int
    data: bytes
    mime_type: str = "image/jpeg"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def preview_uri(self) -> str:
        return to_data_uri(self.data, self.mime_type)


@dataclass
class UploadedFile:
    """A file handed to the ingestion pipeline."""

    filename: str
    content_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path) -> UploadedFile:
        """Read a file from disk, guessing its content type from the name."""
        content_type, _encoding = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content_type=content_type or "application/octet-stream",
            data=path.read_bytes(),
        )
