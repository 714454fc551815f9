"""Shared pytest fixtures: a scriptable stand-in for the Gemini gateway."""

from __future__ import annotations

import asyncio
import io
import json
from typing import Any, Dict, List, Optional

import pytest
from google.genai import types
from PIL import Image

from blogimg.credentials import CredentialHolder, MemoryStore
from blogimg.session import GenerationSession

# ============================================================================
# Payloads
# ============================================================================

PROMPT_PAYLOAD: Dict[str, Any] = {
    "mainPrompt": {"english": "A cat in a garden", "japanese": "庭の猫"},
    "headingPrompts": [
        {"english": "A dog on a beach", "japanese": "ビーチの犬"},
        {"english": "A fox in the snow", "japanese": "雪の中の狐"},
        {"english": "An owl at dusk", "japanese": "夕暮れのフクロウ"},
    ],
    "styleGuide": "photorealistic, warm lighting",
}


def png_bytes(color: str = "red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


def image_response(data: bytes = b"fake-image-bytes", mime: Optional[str] = "image/png") -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(
                    role="model",
                    parts=[
                        types.Part(text="Here is your image."),
                        types.Part(inline_data=types.Blob(data=data, mime_type=mime)),
                    ],
                )
            )
        ]
    )


def text_only_response(text: str = "I cannot draw that.") -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[types.Part(text=text)]))]
    )


# ============================================================================
# Fake gateway
# ============================================================================


class FakeGateway:
    """Records every request; answers immediately or waits for the test to resolve it.

    With ``manual_images=True`` each ``generate_image`` call parks on a future
    appended to ``pending`` so tests can finish requests in any order.
    """

    def __init__(self) -> None:
        self.keys: List[str] = []
        self.structured_calls: List[Dict[str, Any]] = []
        self.image_calls: List[Dict[str, Any]] = []
        self.structured_result: Any = json.dumps(PROMPT_PAYLOAD, ensure_ascii=False)
        self.image_result: Any = image_response()
        self.manual_images = False
        self.pending: List[asyncio.Future] = []

    def factory(self, key: str) -> "FakeGateway":
        self.keys.append(key)
        return self

    async def generate_structured(self, contents: str, *, system_instruction: str, schema: types.Schema) -> str:
        self.structured_calls.append({"contents": contents, "system_instruction": system_instruction, "schema": schema})
        if isinstance(self.structured_result, BaseException):
            raise self.structured_result
        return self.structured_result

    async def generate_image(self, parts: List[types.Part], *, edit: bool = False) -> Any:
        self.image_calls.append({"parts": parts, "edit": edit})
        if self.manual_images:
            fut = asyncio.get_running_loop().create_future()
            self.pending.append(fut)
            return await fut
        if isinstance(self.image_result, BaseException):
            raise self.image_result
        return self.image_result


async def settle() -> None:
    """Let freshly created tasks run up to their first real suspension point."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def credentials() -> CredentialHolder:
    return CredentialHolder(MemoryStore({"gemini-api-key": "test-key"}), env_fallback=False)


@pytest.fixture
def session(credentials: CredentialHolder, gateway: FakeGateway) -> GenerationSession:
    s = GenerationSession(credentials, gateway_factory=gateway.factory)
    s.set_article("A long blog article about animals and their habitats.")
    return s
