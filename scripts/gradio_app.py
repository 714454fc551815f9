from __future__ import annotations

import os
from typing import Any, List, Optional, Tuple

import gradio as gr

from blogimg.credentials import CredentialHolder, MemoryStore
from blogimg.encoding import open_image
from blogimg.llm.gemini import GeminiGateway
from blogimg.session import GenerationSession

GATEWAY_FACTORY = GeminiGateway


def _new_session() -> GenerationSession:
    # each browser tab brings its own key; nothing is shared with the server or other visitors
    credentials = CredentialHolder(MemoryStore(), env_fallback=False)
    return GenerationSession(credentials, gateway_factory=GATEWAY_FACTORY)


def _session(session: Optional[GenerationSession], api_key: Optional[str] = None) -> GenerationSession:
    session = session or _new_session()
    if api_key is not None:
        session.credentials.set(api_key)
    return session


def _error_md(session: GenerationSession) -> str:
    return f"**Error:** {session.error}" if session.error else ""


def _prompts_md(session: GenerationSession) -> str:
    ps = session.prompt_set
    if ps is None:
        return ""
    lines = [f"**Style guide:** {ps.style_guide}", ""]
    for p in ps.prompts:
        flag = " (generating...)" if session.is_loading(p.id) else (" (generated)" if session.is_generated(p.id) else "")
        lines.append(f"- **{p.id}**{flag}: {p.english}  \n  {p.japanese}")
    return "\n".join(lines)


def _prompt_choices(session: GenerationSession) -> List[Tuple[str, str]]:
    ps = session.prompt_set
    if ps is None:
        return []
    return [
        (f"{p.id}: {p.english[:60]}", p.id)
        for p in ps.prompts
        if not session.is_generated(p.id) and not session.is_loading(p.id)
    ]


def _gallery(session: GenerationSession) -> List[Tuple[Any, str]]:
    items = []
    for im in session.images:
        caption = im.prompt.english if not im.text_overlay else f"{im.prompt.english} [{im.text_overlay}]"
        items.append((open_image(im.image_ref), caption))
    return items


def _image_choices(session: GenerationSession) -> List[Tuple[str, str]]:
    return [(f"{i + 1}. {im.prompt.english[:60]}", im.id) for i, im in enumerate(session.images)]


def _refresh(session: GenerationSession):
    return (
        session,
        _error_md(session),
        _prompts_md(session),
        gr.update(choices=_prompt_choices(session), value=None),
        _gallery(session),
        gr.update(choices=_image_choices(session), value=session.state.editing_image_id),
    )


def save_api_key(session: Optional[GenerationSession], key: str) -> GenerationSession:
    return _session(session, key or "")


async def on_generate_prompts(session: Optional[GenerationSession], api_key: str, article: str):
    session = _session(session, api_key)
    session.set_article(article)
    await session.generate_prompts()
    return (*_refresh(session), "")


async def on_generate_image(
    session: Optional[GenerationSession], api_key: str, prompt_id: Optional[str], overlay: str
):
    session = _session(session, api_key)
    session.set_overlay_text(overlay)
    if prompt_id:
        await session.generate_image(prompt_id)
    return _refresh(session)


def on_open_edit(session: Optional[GenerationSession], image_id: Optional[str]):
    session = _session(session)
    if image_id:
        session.open_edit(image_id)
    else:
        session.close_edit()
    return session


async def on_edit(session: Optional[GenerationSession], api_key: str, image_id: Optional[str], instructions: str):
    session = _session(session, api_key)
    edited = None
    if image_id:
        edited = await session.edit_image(image_id, instructions)
    # the instruction stays in the box until an edit actually lands
    return (*_refresh(session), "" if edited is not None else instructions)


def on_close_edit(session: Optional[GenerationSession]):
    session = _session(session)
    session.close_edit()
    return _refresh(session)


def app() -> gr.Blocks:
    with gr.Blocks(title="Blog image studio (Gemini 2.5 Flash Image)") as demo:
        gr.Markdown("""
        # Blog image studio (Gemini 2.5 Flash Image)
        Paste an article to get an eye-catch prompt, one prompt per heading and a shared style guide.
        Render each prompt, then refine any image with a follow-up instruction.
        """)
        session = gr.State(None)
        error = gr.Markdown()

        api_key = gr.Textbox(label="Google AI API key", type="password", value="")
        api_key.blur(save_api_key, inputs=[session, api_key], outputs=[session])
        api_key.submit(save_api_key, inputs=[session, api_key], outputs=[session])

        article = gr.Textbox(label="Blog article", lines=12, placeholder="Paste the full article here...")
        gen_prompts_btn = gr.Button("Generate prompts")
        prompts_md = gr.Markdown()

        with gr.Row():
            prompt_pick = gr.Dropdown(label="Prompt to render", choices=[], interactive=True)
            overlay = gr.Textbox(label="Text on the main image (optional)", placeholder="e.g. Sale 50%")
        gen_image_btn = gr.Button("Generate image")
        gallery = gr.Gallery(label="Generated images", columns=3)

        with gr.Row():
            image_pick = gr.Dropdown(label="Image to edit", choices=[], interactive=True)
            instructions = gr.Textbox(label="Edit instruction", lines=3, placeholder="e.g. Make the character smile")
        with gr.Row():
            edit_btn = gr.Button("Apply edit")
            close_btn = gr.Button("Close editor")

        outputs = [session, error, prompts_md, prompt_pick, gallery, image_pick]
        gen_prompts_btn.click(on_generate_prompts, inputs=[session, api_key, article], outputs=[*outputs, overlay])
        gen_image_btn.click(
            on_generate_image,
            inputs=[session, api_key, prompt_pick, overlay],
            outputs=outputs,
            concurrency_limit=None,
        )
        image_pick.input(on_open_edit, inputs=[session, image_pick], outputs=[session])
        edit_btn.click(on_edit, inputs=[session, api_key, image_pick, instructions], outputs=[*outputs, instructions])
        close_btn.click(on_close_edit, inputs=[session], outputs=outputs)

    return demo


if __name__ == "__main__":
    port = int(os.getenv("PORT", "7860"))
    app().launch(server_name="0.0.0.0", server_port=port)
