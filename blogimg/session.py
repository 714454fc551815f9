from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from .credentials import CredentialHolder
from .errors import BlogImgError
from .llm.gemini import GeminiGateway
from .nodes import edit, gen_generate, prompt_gen
from .state import MAIN_PROMPT_ID, GeneratedImage, Prompt, PromptSet, SessionState

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Enter your Gemini API key."
MISSING_ARTICLE_MESSAGE = "Paste a blog article first."
MISSING_STYLE_MESSAGE = "No style guide found. Generate prompts first."
MISSING_INSTRUCTION_MESSAGE = "Enter an edit instruction."


def describe_error(operation: str, exc: BaseException) -> str:
    if isinstance(exc, BlogImgError):
        detail = exc.message
    else:
        detail = "An unexpected error occurred. See the log for details."
    return f"{operation} failed. {detail}"


class GenerationSession:
    """Holds one article's prompt set, images and error slot, and drives the three services.

    Public operations never raise: every failure ends up as a message in
    ``state.error``. Requests are keyed by prompt id (images) or image id
    (edits); a second request for a key that is already in flight is dropped.
    """

    def __init__(
        self,
        credentials: CredentialHolder,
        *,
        gateway_factory: Callable[[str], GeminiGateway] = GeminiGateway,
    ) -> None:
        self.credentials = credentials
        self.gateway_factory = gateway_factory
        self.state = SessionState()

    # ------------------------------------------------------------------ inputs

    def set_article(self, text: str) -> None:
        self.state.article = text or ""

    def set_overlay_text(self, text: str) -> None:
        self.state.main_overlay_text = text or ""

    # ----------------------------------------------------------------- queries

    @property
    def prompt_set(self) -> Optional[PromptSet]:
        return self.state.prompt_set

    @property
    def images(self) -> List[GeneratedImage]:
        return self.state.images

    @property
    def error(self) -> Optional[str]:
        return self.state.error

    def find_prompt(self, prompt_id: str) -> Optional[Prompt]:
        if self.state.prompt_set is None:
            return None
        return self.state.prompt_set.get(prompt_id)

    def find_image(self, image_id: str) -> Optional[GeneratedImage]:
        for im in self.state.images:
            if im.id == image_id:
                return im
        return None

    def is_generated(self, prompt_id: str) -> bool:
        return any(im.prompt_id == prompt_id for im in self.state.images)

    def is_loading(self, prompt_id: str) -> bool:
        return bool(self.state.loading.get(prompt_id))

    def _credential(self) -> Optional[str]:
        key = (self.credentials.get() or "").strip()
        return key or None

    # ------------------------------------------------------- prompt synthesis

    async def generate_prompts(self) -> Optional[PromptSet]:
        st = self.state
        if st.prompt_loading:
            logger.warning("prompt generation already in flight; ignoring request")
            return None
        key = self._credential()
        if not key:
            st.error = MISSING_KEY_MESSAGE
            return None
        if not st.article.strip():
            st.error = MISSING_ARTICLE_MESSAGE
            return None

        # a new prompt set invalidates everything derived from the old one
        st.epoch += 1
        st.prompt_loading = True
        st.error = None
        st.prompt_set = None
        st.images = []
        st.loading = {}
        st.main_overlay_text = ""
        st.editing_image_id = None
        st.editing = False
        logger.info("generating prompts for article (%d chars)", len(st.article))
        try:
            result = await prompt_gen.run(key, st.article, gateway_factory=self.gateway_factory)
        except Exception as e:
            logger.exception("prompt generation failed")
            st.error = describe_error("Prompt generation", e)
            return None
        finally:
            st.prompt_loading = False
        st.prompt_set = result
        logger.info("prompt set ready: 1 main + %d heading prompts", len(result.heading_prompts))
        return result

    # -------------------------------------------------------- image synthesis

    async def generate_image(self, prompt_id: str) -> Optional[GeneratedImage]:
        st = self.state
        key = self._credential()
        if not key:
            st.error = MISSING_KEY_MESSAGE
            return None
        prompt_set = st.prompt_set
        if prompt_set is None or not prompt_set.style_guide:
            st.error = MISSING_STYLE_MESSAGE
            return None
        prompt = prompt_set.get(prompt_id)
        if prompt is None:
            st.error = f"Unknown prompt: {prompt_id}"
            return None
        if st.loading.get(prompt_id):
            logger.warning("image for %s already in flight; ignoring request", prompt_id)
            return None

        # overlay is read now, not when the response arrives
        overlay = st.main_overlay_text.strip() if prompt_id == MAIN_PROMPT_ID else ""
        text_overlay = overlay or None
        epoch = st.epoch
        st.loading[prompt_id] = True
        st.error = None
        logger.info("generating image for %s", prompt_id)
        try:
            ref = await gen_generate.run(
                key,
                prompt.english,
                prompt_set.style_guide,
                text_overlay,
                gateway_factory=self.gateway_factory,
            )
        except Exception as e:
            if epoch != st.epoch:
                logger.warning("discarding failure for %s from a previous prompt set: %s", prompt_id, e)
                return None
            logger.exception("image generation failed for %s", prompt_id)
            st.error = describe_error("Image generation", e)
            return None
        finally:
            if epoch == st.epoch:
                st.loading[prompt_id] = False

        if epoch != st.epoch:
            logger.warning("discarding image for %s from a previous prompt set", prompt_id)
            return None
        image = GeneratedImage(prompt=prompt, image_ref=ref, text_overlay=text_overlay)
        st.images.append(image)
        return image

    async def generate_all_images(self) -> List[GeneratedImage]:
        """Request every prompt that has no image yet, all at once."""
        if self.state.prompt_set is None:
            return []
        pending = [
            p.id for p in self.state.prompt_set.prompts
            if not self.is_generated(p.id) and not self.is_loading(p.id)
        ]
        results = await asyncio.gather(*(self.generate_image(pid) for pid in pending))
        return [im for im in results if im is not None]

    # ------------------------------------------------------------------ edits

    def open_edit(self, image_id: str) -> bool:
        if self.find_image(image_id) is None:
            return False
        self.state.editing_image_id = image_id
        return True

    def close_edit(self) -> None:
        self.state.editing_image_id = None

    async def edit_image(self, image_id: str, instructions: str) -> Optional[GeneratedImage]:
        st = self.state
        key = self._credential()
        if not key:
            st.error = MISSING_KEY_MESSAGE
            return None
        if not (instructions or "").strip():
            st.error = MISSING_INSTRUCTION_MESSAGE
            return None
        if st.editing:
            logger.warning("an edit is already in flight; ignoring request for %s", image_id)
            return None
        image = self.find_image(image_id)
        if image is None:
            st.error = "That image is no longer part of this session."
            return None

        epoch = st.epoch
        st.editing = True
        st.error = None
        logger.info("editing image %s (%s)", image_id, image.prompt_id)
        try:
            new_ref = await edit.run(key, image.image_ref, instructions, gateway_factory=self.gateway_factory)
        except Exception as e:
            if epoch != st.epoch:
                logger.warning("discarding edit failure for %s from a previous prompt set: %s", image_id, e)
                return None
            logger.exception("image edit failed for %s", image_id)
            st.error = describe_error("Image edit", e)
            return None
        finally:
            if epoch == st.epoch:
                st.editing = False

        target = self.find_image(image_id) if epoch == st.epoch else None
        if target is None:
            logger.warning("discarding edit for %s; image is gone", image_id)
            return None
        target.apply_edit(new_ref)
        if st.editing_image_id == image_id:
            self.close_edit()
        return target
