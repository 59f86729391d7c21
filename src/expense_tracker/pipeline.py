"""Receipt ingestion: file classification, rasterization and extraction.

Two entry points mirror the two ways a receipt arrives:

- ``ingest_from_image`` returns a single ``ExpenseDraft`` for the user to
  review before saving.
- ``ingest_from_pdf`` turns every page into its own ``ExpenseRecord`` and
  returns the batch ready to save. A page whose extraction fails is skipped;
  only a document where every page fails is an error.

Neither function keeps state between calls.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from expense_tracker.errors import (
    AllPagesFailedError,
    ExtractionError,
    UnsupportedFileTypeError,
)
from expense_tracker.extraction import extract_receipt
from expense_tracker.models import (
    ExpenseDraft,
    ExpenseRecord,
    PageImage,
    ReceiptExtraction,
    UploadedFile,
    to_data_uri,
)
from expense_tracker.rasterizer import rasterize_pdf

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

StatusCallback = Callable[[str], None]
Extractor = Callable[[bytes, str], Awaitable[ReceiptExtraction]]
Rasterizer = Callable[[bytes, StatusCallback], list[PageImage]]


class UploadKind(StrEnum):
    IMAGE = "image"
    PDF = "pdf"


@dataclass(frozen=True)
class PageResult:
    """Outcome of extracting a single PDF page."""

    page: int
    record: ExpenseRecord | None = None


@dataclass
class BatchOutcome:
    """Successful records and failed page numbers of a PDF batch."""

    records: list[ExpenseRecord] = field(default_factory=list)
    failed_pages: list[int] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failed_pages)


@dataclass(frozen=True)
class IngestResult:
    """What an upload produced: a draft to review, or records to save."""

    kind: UploadKind
    draft: ExpenseDraft | None = None
    records: list[ExpenseRecord] = field(default_factory=list)


def classify_upload(upload: UploadedFile) -> UploadKind:
    """Return whether the upload is a PDF or an image."""
    content_type = upload.content_type.lower()
    if content_type == PDF_MIME_TYPE:
        return UploadKind.PDF
    if content_type.startswith("image/"):
        return UploadKind.IMAGE
    raise UnsupportedFileTypeError


async def ingest_from_image(
    upload: UploadedFile,
    *,
    on_preview: Callable[[str], None] | None = None,
    extractor: Extractor = extract_receipt,
) -> ExpenseDraft:
    """Extract one image receipt into a draft for review.

    The preview is handed to ``on_preview`` before the extraction call, so
    it is available even when extraction raises ExtractionError.
    """
    if not upload.content_type.lower().startswith("image/"):
        raise UnsupportedFileTypeError

    preview = to_data_uri(upload.data, upload.content_type)
    if on_preview is not None:
        on_preview(preview)

    extraction = await extractor(upload.data, upload.content_type)
    return ExpenseDraft(**extraction.model_dump(), image_preview=preview)


async def ingest_from_pdf(
    upload: UploadedFile,
    on_status: StatusCallback | None = None,
    *,
    extractor: Extractor = extract_receipt,
    rasterizer: Rasterizer = rasterize_pdf,
) -> list[ExpenseRecord]:
    """Extract one expense per PDF page, in page order.

    RasterizationError from the rasterizer propagates before any extraction
    is attempted. AllPagesFailedError is raised when no page could be
    extracted.
    """
    report = on_status or _ignore_status

    pages = await asyncio.to_thread(rasterizer, upload.data, report)
    results = await extract_pages(pages, report, extractor=extractor)
    outcome = fold_page_results(results)

    if not outcome.records:
        raise AllPagesFailedError
    if outcome.failed_pages:
        logger.warning(
            "Skipped %d of %d pages of %s: %s",
            outcome.failure_count,
            len(pages),
            upload.filename,
            ", ".join(str(p) for p in outcome.failed_pages),
        )
    return outcome.records


async def ingest_upload(
    upload: UploadedFile,
    on_status: StatusCallback | None = None,
    *,
    on_preview: Callable[[str], None] | None = None,
    extractor: Extractor = extract_receipt,
    rasterizer: Rasterizer = rasterize_pdf,
) -> IngestResult:
    """Route an upload to the image or PDF path."""
    kind = classify_upload(upload)
    if kind is UploadKind.PDF:
        records = await ingest_from_pdf(
            upload, on_status, extractor=extractor, rasterizer=rasterizer
        )
        return IngestResult(kind=kind, records=records)

    draft = await ingest_from_image(upload, on_preview=on_preview, extractor=extractor)
    return IngestResult(kind=kind, draft=draft)


async def extract_pages(
    pages: Sequence[PageImage],
    on_status: StatusCallback,
    *,
    extractor: Extractor = extract_receipt,
) -> list[PageResult]:
    """Extract pages strictly one after another, recording each outcome."""
    results: list[PageResult] = []
    total = len(pages)
    for position, page in enumerate(pages, start=1):
        on_status(f"Analyzing page {position} of {total}...")
        try:
            extraction = await extractor(page.data, page.mime_type)
        except ExtractionError:
            logger.warning("Failed to process page %d", page.index, exc_info=True)
            results.append(PageResult(page=page.index))
            continue
        record = ExpenseRecord.from_extraction(extraction, page.preview_uri)
        results.append(PageResult(page=page.index, record=record))
    return results


def fold_page_results(results: Sequence[PageResult]) -> BatchOutcome:
    """Split page results into records and failed page numbers, keeping order."""
    outcome = BatchOutcome()
    for result in results:
        if result.record is not None:
            outcome.records.append(result.record)
        else:
            outcome.failed_pages.append(result.page)
    return outcome


def _ignore_status(_status: str) -> None:
    pass
