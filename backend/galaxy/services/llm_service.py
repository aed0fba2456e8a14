"""
LLM inference service for Knowledge Galaxy.

Talks to a hosted OpenAI-compatible chat completion endpoint
(DeepSeek by default, see config.Settings.llm_*). The model name can be
overridden at runtime through the `llm_model` settings key.

Usage:
    result_dict = await chat_json(system_prompt, user_prompt)
"""
from __future__ import annotations

import json
import logging
import re

import httpx

from galaxy.config import settings

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


class LLMUnavailableError(Exception):
    """Raised when no API key is configured or the endpoint cannot be reached."""


def strip_code_fences(content: str) -> str:
    """Models often wrap JSON in ```json fences even when told not to."""
    return _FENCE_RE.sub("", content).strip()


async def _resolve_model() -> str:
    """Runtime override from the settings table, else the configured default."""
    from galaxy.db.sqlite import get_db, get_setting, is_initialized

    override = ""
    # SQLite is not initialized when called outside the app
    if is_initialized():
        async for db in get_db():
            override = (await get_setting(db, "llm_model")) or ""
    return override or settings.llm_model


async def chat_json(
    system_prompt: str,
    user_prompt: str,
    max_tokens: int = 1024,
) -> dict:
    """
    Send a chat request expecting a JSON object back.

    Returns the parsed dict.
    Raises LLMUnavailableError if no key is set, the HTTP call fails or the
    completion body is malformed.
    Raises json.JSONDecodeError if the model returns invalid JSON (caller handles).
    """
    if not settings.llm_api_key:
        raise LLMUnavailableError("No LLM configured: GALAXY_LLM_API_KEY is not set.")

    model = await _resolve_model()
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "temperature": settings.llm_temperature,
        "max_tokens": max_tokens,
        "stream": False,
    }
    url = settings.llm_base_url.rstrip("/") + "/chat/completions"
    headers = {"Authorization": f"Bearer {settings.llm_api_key}"}

    try:
        async with httpx.AsyncClient() as client:
            res = await client.post(url, json=payload, headers=headers, timeout=settings.llm_timeout)
            res.raise_for_status()
            content = res.json()["choices"][0]["message"]["content"] or "{}"
            content = strip_code_fences(content)
    except (httpx.HTTPError, KeyError, IndexError, TypeError) as e:
        logger.warning("LLM request to %s failed: %s", url, e)
        raise LLMUnavailableError(f"LLM request failed: {e}") from e

    return json.loads(content)
