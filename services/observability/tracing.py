from __future__ import annotations

import logging
import os
from typing import Any

from langfuse import Langfuse

logger = logging.getLogger(__name__)

_langfuse: Langfuse | None = None


def _client() -> Langfuse | None:
    global _langfuse
    if _langfuse is None and os.getenv("LANGFUSE_SECRET_KEY") and os.getenv("LANGFUSE_PUBLIC_KEY"):
        _langfuse = Langfuse()
    return _langfuse


def trace_llm(
    event: str, input_payload: dict[str, Any], output_text: str, tags: list[str] | None = None
) -> None:
    """No-op if Langfuse not configured. Tracing problems never reach the caller."""
    client = _client()
    if client is None:
        return
    try:
        gen = client.start_generation(
            name=event,
            input=input_payload,
            output=output_text,
            model=input_payload.get("model", ""),
        )
        if tags:
            gen.update_trace(tags=tags)
        gen.end()
    except Exception:
        logger.warning("langfuse trace failed for %s", event, exc_info=True)
