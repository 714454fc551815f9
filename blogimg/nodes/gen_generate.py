from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from google.genai import types

from .. import prompts as _p
from ..encoding import encode_data_uri, resolve_mime
from ..errors import AuthError, NoImageProducedError
from ..llm.gemini import GeminiGateway, first_image

logger = logging.getLogger(__name__)


def image_ref_from_response(resp: Any, *, what: str = "image") -> str:
    found = first_image(resp)
    if found is None:
        raise NoImageProducedError(f"No {what} was returned by the model.")
    data, reported = found
    mime = resolve_mime(data, reported)
    logger.debug("%s: %d bytes, mime=%s (reported=%s)", what, len(data), mime, reported)
    return encode_data_uri(data, mime)


async def run(
    credential: str,
    prompt_text: str,
    style_guide: str,
    text_overlay: Optional[str] = None,
    *,
    gateway_factory: Callable[[str], GeminiGateway] = GeminiGateway,
) -> str:
    """Render one prompt into an encoded image reference."""
    if not credential:
        raise AuthError("No API key is set.")
    gateway = gateway_factory(credential)
    full_prompt = _p.build_image_prompt(prompt_text, style_guide, text_overlay)
    resp = await gateway.generate_image([types.Part.from_text(text=full_prompt)])
    return image_ref_from_response(resp, what="image")
