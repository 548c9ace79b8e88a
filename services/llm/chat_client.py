from __future__ import annotations

import httpx

from core.config import Settings, settings as default_settings
from core.errors import ExternalServiceError


class LLMError(ExternalServiceError):
    code = "llm_error"


def generate(
    messages: list[dict[str, str]],
    cfg: Settings | None = None,
    model: str | None = None,
    transport: httpx.BaseTransport | None = None,
) -> str:
    """Call an OpenAI-compatible /chat/completions endpoint (non-streaming)."""
    cfg = cfg or default_settings
    if not cfg.llm_configured:
        raise LLMError("generation provider not configured")
    url = f"{cfg.GROQ_BASE_URL.rstrip('/')}/chat/completions"
    payload = {
        "model": model or cfg.GROQ_MODEL,
        "max_tokens": cfg.GROQ_MAX_TOKENS,
        "messages": messages,
    }
    headers = {"Authorization": f"Bearer {cfg.GROQ_API_KEY}"}
    try:
        with httpx.Client(timeout=cfg.LLM_TIMEOUT_S, transport=transport) as client:
            r = client.post(url, json=payload, headers=headers)
        r.raise_for_status()
        data = r.json()
    except httpx.HTTPStatusError as e:
        raise LLMError(f"provider returned HTTP {e.response.status_code}: {e.response.text[:200]}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise LLMError(str(e)) from e

    try:
        text = data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError) as e:
        raise LLMError("malformed response from provider") from e
    return text.strip()
