"""LLM-based receipt extraction using pydantic-ai."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic_ai import Agent, BinaryContent

from expense_tracker.config import get_anthropic_api_key, get_llm_model
from expense_tracker.errors import ExtractionError
from expense_tracker.models import ExpenseCategory, ReceiptExtraction

if TYPE_CHECKING:
    from pydantic_ai.models import Model

logger = logging.getLogger(__name__)

_CATEGORIES = ", ".join(c.value for c in ExpenseCategory)

_SYSTEM_PROMPT = f"""\
You are a receipt analyzer. Given a photo or scan of a receipt, extract the \
following fields:

- payee: The merchant or person the expense was paid to
- amount: The total amount of the expense (numeric, e.g. 42.99)
- date: The purchase date (YYYY-MM-DD)
- category: Exactly one of: {_CATEGORIES}
- description: A brief, one-sentence description of the overall purchase
- items: Each individual line item from the receipt, with its name and price

If any information cannot be found, use a sensible default or "N/A". \
The sum of the item prices does not need to match the total amount.\
"""

_USER_PROMPT = "Analyze this receipt image and extract the expense details."


def create_extraction_agent(
    model: Model | None = None,
) -> Agent[None, ReceiptExtraction]:
    """Create a pydantic-ai Agent configured for receipt extraction.

    Uses the configured Anthropic model unless one is passed in. Retries are
    off, so an invalid response fails on the first attempt.
    """
    if model is None:
        # Ensure API key is available (fail fast)
        get_anthropic_api_key()

    return Agent(
        model or f"anthropic:{get_llm_model()}",
        output_type=ReceiptExtraction,
        system_prompt=_SYSTEM_PROMPT,
        retries=0,
    )


async def extract_receipt(
    data: bytes,
    mime_type: str,
    *,
    agent: Agent[None, ReceiptExtraction] | None = None,
) -> ReceiptExtraction:
    """Extract structured expense fields from one receipt image.

    Any failure of the remote call or of the response schema is raised as
    ExtractionError; nothing is retried here. Accepts an optional agent for
    dependency injection in tests.
    """
    if agent is None:
        agent = create_extraction_agent()

    try:
        result: Any = await agent.run(
            [_USER_PROMPT, BinaryContent(data=data, media_type=mime_type)]
        )
    except Exception as exc:
        logger.warning("Receipt analysis failed (%s)", mime_type, exc_info=True)
        raise ExtractionError from exc

    output = getattr(result, "output", None)
    if not isinstance(output, ReceiptExtraction):
        logger.warning("Receipt analysis returned no usable output: %r", output)
        raise ExtractionError
    return output
