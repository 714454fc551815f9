from __future__ import annotations

from typing import Optional

from google.genai import types


PROMPT_SYSTEM_INSTRUCTION = """You are a world-class creative director and prompt engineer for image generation models \
(in particular Gemini 2.5 Flash Image). You read a blog article closely and design prompts for engaging, \
high-quality images that raise reader engagement.

Do not list keywords. Describe rich, narrative scenes, and return ONLY a JSON object.

### Core principles
1. Describe the scene: write prompts as descriptive sentences or a short story, not as keyword lists.
2. Be specific: instead of "fantasy armor", write "ornate elven plate armor etched with silver leaf patterns, \
with a high collar and pauldrons shaped like falcon wings".
3. Match the intent: respect the context and tone of the article (professional, playful, serious, ...).

### Style-specific strategy
Pick the strategy that fits the article's theme.
- Photorealistic scenes: use photography terms (photorealistic, close-up portrait, wide-angle shot, macro shot); \
describe camera angle, lens, lighting (cinematic lighting, three-point softbox setup, natural light) and mood.
- Illustrations, stickers, icons: name the art style explicitly (kawaii style sticker, minimalist vector art, \
noir art style); mention line style (bold outlines, delicate line art) and shading.
- Minimalist designs: compose with generous negative space; state where the subject sits \
(positioned in the bottom-right of the frame) and what the background is (vast, empty white canvas).

### Output
1. Prompts: one prompt for the main eye-catching image and one per major heading of the article, written in \
specific, visually rich, inspiring English following the strategy above.
2. Japanese translation: a natural, easy to read Japanese translation of every English prompt.
3. Style guide: the single most important instruction, defining the visual identity of the whole article. \
One English phrase applied to every image, naming the medium (digital painting, vector illustration, photograph), \
the palette (vivid pastels, monochrome) and the mood (minimal, cyberpunk, dreamy). Good examples: \
"A consistent style of minimalist vector art with a pastel color palette", \
"photorealistic, cinematic lighting, moody atmosphere", \
"Japanese woodblock print style with bold outlines and flat colors"."""


def build_prompt_request(article: str) -> str:
    return (
        "Analyze the following blog article and generate image generation prompts in the specified JSON format."
        f"\n\n---\n\n{article}"
    )


def _prompt_schema(description: str) -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        description=description,
        properties={
            "english": types.Schema(
                type=types.Type.STRING,
                description="A detailed, visually rich prompt in English.",
            ),
            "japanese": types.Schema(
                type=types.Type.STRING,
                description="A natural Japanese translation of the English prompt.",
            ),
        },
        required=["english", "japanese"],
    )


def build_prompt_schema() -> types.Schema:
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "mainPrompt": _prompt_schema(
                "The prompt for the main eye-catching image. It should capture the core theme of the blog post."
            ),
            "headingPrompts": types.Schema(
                type=types.Type.ARRAY,
                description="A list of 3 to 5 prompts, each corresponding to a major section or heading in the article.",
                items=_prompt_schema("A prompt for a heading image."),
                min_items=3,
                max_items=5,
            ),
            "styleGuide": types.Schema(
                type=types.Type.STRING,
                description=(
                    "A short phrase in English describing the consistent art style for all generated images "
                    "(e.g., 'concept art, digital painting, vibrant colors')."
                ),
            ),
        },
        required=["mainPrompt", "headingPrompts", "styleGuide"],
    )


def build_text_overlay_instruction(text: str) -> str:
    return (
        f'The image must prominently feature the exact text: "{text}". '
        "Ensure the text is written exactly as provided, is complete, and clearly readable. "
        "The style of the text should integrate seamlessly with the image's overall aesthetic. "
        "The entire text must be visible and not cut off."
    )


def build_image_prompt(scene: str, style_guide: str, text_overlay: Optional[str] = None) -> str:
    prompt = (
        "A high-quality image, widescreen 16:9 aspect ratio, landscape orientation. "
        f"Scene: {scene}. Style: {style_guide}."
    )
    if text_overlay and text_overlay.strip():
        prompt += " " + build_text_overlay_instruction(text_overlay)
    return prompt
