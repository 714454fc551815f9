from __future__ import annotations

from typing import Callable

from google.genai import types

from ..encoding import decode_data_uri
from ..errors import AuthError, ValidationError
from ..llm.gemini import GeminiGateway
from .gen_generate import image_ref_from_response


async def run(
    credential: str,
    source_ref: str,
    instructions: str,
    *,
    gateway_factory: Callable[[str], GeminiGateway] = GeminiGateway,
) -> str:
    """Send an existing image plus a free-text instruction back through the image model.

    The source reference is decoded before any request is made, so a malformed
    reference never reaches the service.
    """
    if not credential:
        raise AuthError("No API key is set.")
    if not instructions.strip():
        raise ValidationError("Enter an edit instruction.")
    data, mime = decode_data_uri(source_ref)
    gateway = gateway_factory(credential)
    resp = await gateway.generate_image(
        [
            types.Part.from_bytes(data=data, mime_type=mime),
            types.Part.from_text(text=instructions),
        ],
        edit=True,
    )
    return image_ref_from_response(resp, what="edited image")
