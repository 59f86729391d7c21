"""PDF-to-JPEG page rasterization."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable

import pymupdf
from PIL import Image

from expense_tracker.config import DEFAULT_JPEG_QUALITY, DEFAULT_RENDER_SCALE
from expense_tracker.errors import RasterizationError
from expense_tracker.models import PageImage

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def rasterize_pdf(
    data: bytes,
    on_progress: ProgressCallback | None = None,
    *,
    scale: float = DEFAULT_RENDER_SCALE,
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
) -> list[PageImage]:
    """Render every page of a PDF to a JPEG PageImage, in page order.

    All or nothing: a corrupt, encrypted or empty document, or any page
    that fails to render, raises RasterizationError and no pages are
    returned.
    """
    report = on_progress or _ignore_progress
    report("Parsing PDF...")

    doc = _open_document(data)
    try:
        num_pages = doc.page_count
        if num_pages == 0:
            raise RasterizationError("The PDF has no pages.")

        matrix = pymupdf.Matrix(scale, scale)
        pages: list[PageImage] = []
        for index in range(1, num_pages + 1):
            report(f"Processing page {index} of {num_pages}...")
            pages.append(
                PageImage(
                    index=index,
                    data=_render_page(doc, index, matrix, jpeg_quality),
                )
            )
        return pages
    finally:
        doc.close()


def _open_document(data: bytes) -> pymupdf.Document:
    """Open PDF bytes, rejecting unreadable and password-protected files."""
    try:
        doc = pymupdf.open(stream=data, filetype="pdf")
    except Exception as exc:
        logger.warning("Failed to parse PDF", exc_info=True)
        raise RasterizationError from exc

    if doc.needs_pass:
        doc.close()
        raise RasterizationError(
            "The PDF is password protected. Please upload an unencrypted copy."
        )
    return doc


def _render_page(
    doc: pymupdf.Document, index: int, matrix: pymupdf.Matrix, jpeg_quality: int
) -> bytes:
    """Render one 1-indexed page to JPEG bytes."""
    try:
        pix = doc[index - 1].get_pixmap(matrix=matrix, alpha=False)
        img = Image.open(io.BytesIO(pix.tobytes("png")))
        buf = io.BytesIO()
        img.convert("RGB").save(buf, format="JPEG", quality=jpeg_quality)
    except Exception as exc:
        logger.warning("Failed to render PDF page %d", index, exc_info=True)
        msg = f"Could not render page {index} of the PDF."
        raise RasterizationError(msg) from exc
    return buf.getvalue()


def _ignore_progress(_status: str) -> None:
    pass
