from __future__ import annotations

import json
import logging
from typing import Any, Callable

from .. import prompts as _p
from ..errors import AuthError, ParseError, ValidationError
from ..llm.gemini import GeminiGateway
from ..state import PromptSet

logger = logging.getLogger(__name__)


def _strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_prompt_set(text: str) -> PromptSet:
    try:
        data: Any = json.loads(_strip_fences(text))
    except json.JSONDecodeError as e:
        raise ParseError("The prompt response was not valid JSON.") from e
    prompt_set = PromptSet.from_dict(data)
    n = len(prompt_set.heading_prompts)
    if not 3 <= n <= 5:
        logger.warning("expected 3-5 heading prompts, model returned %d", n)
    return prompt_set


async def run(
    credential: str,
    article: str,
    *,
    gateway_factory: Callable[[str], GeminiGateway] = GeminiGateway,
) -> PromptSet:
    """Turn one article into a prompt set with a single structured-output request."""
    if not credential:
        raise AuthError("No API key is set.")
    if not article.strip():
        raise ValidationError("Paste a blog article first.")
    gateway = gateway_factory(credential)
    text = await gateway.generate_structured(
        _p.build_prompt_request(article),
        system_instruction=_p.PROMPT_SYSTEM_INSTRUCTION,
        schema=_p.build_prompt_schema(),
    )
    return parse_prompt_set(text)
