"""
LLM Client

Thin wrapper around the OpenAI chat completions API with the retry policy the
tutor relies on, plus a forgiving JSON extractor for model output.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from sat_tutor_agent.config import TutorConfig

logger = logging.getLogger(__name__)

Message = Dict[str, str]

_FENCE_START = re.compile(r"^```(?:json)?\s*")
_FENCE_END = re.compile(r"```$")


class GenerationError(Exception):
    """Raised when every generation attempt failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _status_of(error: Exception) -> Optional[int]:
    status = getattr(error, "status_code", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status


class TextGenerator:
    """
    Chat-completion collaborator used by every dialogue handler.

    Fast mode uses the smaller model, a lower token cap and a single attempt.
    Other calls get two attempts with a linear backoff. Auth (401) and
    not-found (404) errors are not retried and quota errors (429) give up
    immediately.
    """

    def __init__(self, config: TutorConfig, client: Optional[AsyncOpenAI] = None):
        self.config = config
        if client is None:
            if not config.openai_api_key:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            client = AsyncOpenAI(api_key=config.openai_api_key)
        self.client = client

    async def generate(
        self,
        messages: List[Message],
        json_mode: bool = False,
        temperature: float = 0.7,
        fast_mode: bool = False,
    ) -> str:
        max_retries = 1 if fast_mode else 2
        model = self.config.fast_model if fast_mode else self.config.model
        max_tokens = self.config.fast_max_tokens if fast_mode else self.config.max_tokens

        last_error: Optional[Exception] = None
        for attempt in range(1, max_retries + 1):
            try:
                if not fast_mode:
                    logger.info(f"🔄 [LLM] Attempt {attempt}/{max_retries} ({model}, JSON: {json_mode})")

                kwargs: Dict[str, Any] = dict(
                    model=model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
                if json_mode:
                    kwargs["response_format"] = {"type": "json_object"}

                completion = await self.client.chat.completions.create(**kwargs)
                return (completion.choices[0].message.content or "").strip()

            except Exception as e:
                last_error = e
                status = _status_of(e)
                logger.warning(f"⚠️ [LLM] {model} failed: {e}")

                if status == 429:
                    logger.error("🔴 [LLM] Quota exceeded")
                    raise GenerationError("AI quota exceeded. Please check your API billing.", status=429) from e

                if attempt < max_retries and status not in (401, 404):
                    await asyncio.sleep(attempt)
                else:
                    break

        logger.error("❌ [LLM] All attempts failed")
        raise GenerationError(str(last_error) if last_error else "AI service failed", status=_status_of(last_error) if last_error else None)


def extract_json(text: Optional[str]) -> Optional[Any]:
    """
    Pull a JSON value out of model output.

    Tries, in order: the text with markdown fences removed, the span from the
    first '{' to the last '}', then the span from the first '[' to the last ']'.
    Returns None if nothing parses.
    """
    if not text:
        return None

    clean = _FENCE_END.sub("", _FENCE_START.sub("", text.strip())).strip()

    try:
        return json.loads(clean)
    except ValueError:
        pass

    for open_char, close_char in (("{", "}"), ("[", "]")):
        start = clean.find(open_char)
        end = clean.rfind(close_char)
        if start != -1 and end > start:
            try:
                return json.loads(clean[start:end + 1])
            except ValueError:
                logger.debug(f"JSON extraction failed for {open_char}...{close_char} span")

    return None
