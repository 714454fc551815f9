from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .errors import ParseError

MAIN_PROMPT_ID = "main"
EDIT_MARKER = " (edited)"


@dataclass(frozen=True)
class Prompt:
    english: str
    japanese: str
    id: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {"english": self.english, "japanese": self.japanese}


@dataclass(frozen=True)
class PromptSet:
    main_prompt: Prompt
    heading_prompts: List[Prompt]
    style_guide: str

    @property
    def prompts(self) -> List[Prompt]:
        return [self.main_prompt, *self.heading_prompts]

    def get(self, prompt_id: str) -> Optional[Prompt]:
        for p in self.prompts:
            if p.id == prompt_id:
                return p
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mainPrompt": self.main_prompt.to_dict(),
            "headingPrompts": [p.to_dict() for p in self.heading_prompts],
            "styleGuide": self.style_guide,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "PromptSet":
        """Build a prompt set from the service's JSON shape, assigning stable ids."""
        if not isinstance(data, dict):
            raise ParseError("Prompt response is not a JSON object.")
        for key in ("mainPrompt", "headingPrompts", "styleGuide"):
            if key not in data:
                raise ParseError(f"Prompt response is missing '{key}'.")
        headings = data["headingPrompts"]
        if not isinstance(headings, list):
            raise ParseError("'headingPrompts' must be an array.")
        style = data["styleGuide"]
        if not isinstance(style, str):
            raise ParseError("'styleGuide' must be a string.")
        return cls(
            main_prompt=_prompt_from(data["mainPrompt"], MAIN_PROMPT_ID, "mainPrompt"),
            heading_prompts=[
                _prompt_from(h, f"heading-{i + 1}", f"headingPrompts[{i}]") for i, h in enumerate(headings)
            ],
            style_guide=style,
        )


def _prompt_from(obj: Any, prompt_id: str, where: str) -> Prompt:
    if not isinstance(obj, dict):
        raise ParseError(f"'{where}' must be an object.")
    for key in ("english", "japanese"):
        if not isinstance(obj.get(key), str):
            raise ParseError(f"'{where}.{key}' is missing or not a string.")
    return Prompt(english=obj["english"], japanese=obj["japanese"], id=prompt_id)


def mark_edited(english: str) -> str:
    if english.endswith(EDIT_MARKER):
        return english
    return english + EDIT_MARKER


@dataclass
class GeneratedImage:
    prompt: Prompt
    image_ref: str
    text_overlay: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    edit_count: int = 0

    @property
    def prompt_id(self) -> str:
        return self.prompt.id

    def apply_edit(self, image_ref: str) -> None:
        self.image_ref = image_ref
        self.prompt = replace(self.prompt, english=mark_edited(self.prompt.english))
        self.edit_count += 1


@dataclass
class SessionState:
    article: str = ""
    prompt_set: Optional[PromptSet] = None
    images: List[GeneratedImage] = field(default_factory=list)
    loading: Dict[str, bool] = field(default_factory=dict)
    main_overlay_text: str = ""
    error: Optional[str] = None
    prompt_loading: bool = False
    editing_image_id: Optional[str] = None
    editing: bool = False
    # bumped on every prompt-synthesis request; results from older epochs are dropped
    epoch: int = 0
