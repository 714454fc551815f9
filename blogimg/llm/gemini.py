from __future__ import annotations

import logging
import os
import re
from typing import Any, List, Optional

from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from ..errors import AuthError, BlogImgError, ServiceError

# Load .env if present to populate environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image-preview"

_INVALID_KEY_RE = re.compile(r"API key not valid|API_KEY_INVALID")


def text_model_name() -> str:
    return os.getenv("GEMINI_MODEL") or DEFAULT_TEXT_MODEL


def image_model_name() -> str:
    return os.getenv("GEMINI_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL


def image_edit_model_name() -> str:
    return os.getenv("GEMINI_IMAGE_EDIT_MODEL") or image_model_name()


def translate_error(exc: BaseException) -> BlogImgError:
    """Map an SDK/transport exception onto the error taxonomy."""
    if isinstance(exc, BlogImgError):
        return exc
    detail = getattr(exc, "message", None) or str(exc)
    if _INVALID_KEY_RE.search(detail) or _INVALID_KEY_RE.search(str(exc)):
        return AuthError()
    if isinstance(exc, genai_errors.APIError):
        return ServiceError(f"The Gemini API returned an error ({exc.code}).")
    return ServiceError(f"The Gemini request failed ({type(exc).__name__}).")


class GeminiGateway:
    """Thin async wrapper over google-genai for the two calls this app makes.

    One gateway per credential. Each method issues exactly one request; there is
    no retry and no timeout beyond the SDK defaults.
    """

    def __init__(self, api_key: str, *, client: Optional[genai.Client] = None) -> None:
        self._client = client or genai.Client(api_key=api_key)

    async def generate_structured(self, contents: str, *, system_instruction: str, schema: types.Schema) -> str:
        model = text_model_name()
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=schema,
        )
        logger.debug("structured request: model=%s chars=%d", model, len(contents))
        try:
            resp = await self._client.aio.models.generate_content(model=model, contents=contents, config=config)
        except Exception as e:
            raise translate_error(e) from e
        return first_text(resp)

    async def generate_image(self, parts: List[types.Part], *, edit: bool = False) -> types.GenerateContentResponse:
        model = image_edit_model_name() if edit else image_model_name()
        config = types.GenerateContentConfig(
            response_modalities=[types.Modality.IMAGE, types.Modality.TEXT],
        )
        logger.debug("image request: model=%s parts=%d edit=%s", model, len(parts), edit)
        try:
            return await self._client.aio.models.generate_content(
                model=model,
                contents=types.Content(role="user", parts=parts),
                config=config,
            )
        except Exception as e:
            raise translate_error(e) from e


def _parts(resp: Any) -> List[Any]:
    parts: List[Any] = []
    for c in getattr(resp, "candidates", None) or []:
        content = getattr(c, "content", None)
        parts.extend(getattr(content, "parts", None) or [])
    return parts


def first_text(resp: Any) -> str:
    for part in _parts(resp):
        if getattr(part, "text", None):
            return part.text
    return ""


def first_image(resp: Any) -> Optional[tuple[bytes, Optional[str]]]:
    # walk content parts and return the first inline image payload
    for part in _parts(resp):
        inline = getattr(part, "inline_data", None)
        if inline is not None and getattr(inline, "data", None):
            return inline.data, getattr(inline, "mime_type", None)
    return None
