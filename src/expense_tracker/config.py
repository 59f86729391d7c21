"""Configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_RENDER_SCALE = 1.5
DEFAULT_JPEG_QUALITY = 90


def get_store_path() -> Path:
    """Return the EXPENSE_STORE_PATH, defaulting to ./data.

    Always resolves to an absolute path to avoid issues if the
    working directory changes during execution.
    """
    return Path(os.environ.get("EXPENSE_STORE_PATH", "./data")).resolve()


def get_anthropic_api_key() -> str:
    """Return the ANTHROPIC_API_KEY from the environment."""
    key = os.environ.get("ANTHROPIC_API_KEY")
    if not key:
        msg = "ANTHROPIC_API_KEY environment variable is required"
        raise ValueError(msg)
    return key


def get_llm_model() -> str:
    """Return the LLM model identifier.

    Defaults to claude-haiku-4-5-20251001.
    """
    return os.environ.get("LLM_MODEL", "claude-haiku-4-5-20251001")


def get_render_scale() -> float:
    """Return the PDF page upscaling factor (PDF_RENDER_SCALE, default 1.5)."""
    raw = os.environ.get("PDF_RENDER_SCALE")
    if raw is None:
        return DEFAULT_RENDER_SCALE
    try:
        scale = float(raw)
    except ValueError:
        scale = 0.0
    if scale <= 0:
        msg = f"PDF_RENDER_SCALE must be a positive number, got {raw!r}"
        raise ValueError(msg)
    return scale


def get_jpeg_quality() -> int:
    """Return the JPEG quality for rendered pages (PDF_JPEG_QUALITY, 1-100)."""
    raw = os.environ.get("PDF_JPEG_QUALITY")
    if raw is None:
        return DEFAULT_JPEG_QUALITY
    try:
        quality = int(raw)
    except ValueError:
        quality = 0
    if not 1 <= quality <= 100:
        msg = f"PDF_JPEG_QUALITY must be an integer between 1 and 100, got {raw!r}"
        raise ValueError(msg)
    return quality
