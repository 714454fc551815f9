from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Tuple

from .credentials import CredentialHolder
from .nodes import archive
from .session import GenerationSession
from .state import MAIN_PROMPT_ID


def _parse_edit(value: str) -> Tuple[str, str]:
    prompt_id, sep, instructions = value.partition("=")
    if not sep or not prompt_id.strip() or not instructions.strip():
        raise argparse.ArgumentTypeError("--edit expects PROMPT_ID=INSTRUCTION")
    return prompt_id.strip(), instructions.strip()


def _default_outdir() -> str:
    return f"artifacts/run_{datetime.now().strftime('%Y%m%d_%H%M%S')}"


async def run(session: GenerationSession, images: str, overlay: str, edits: List[Tuple[str, str]]) -> bool:
    ps = await session.generate_prompts()
    if ps is None:
        return False
    # the overlay field is cleared whenever a new prompt set is requested
    session.set_overlay_text(overlay)
    print(f"Style guide: {ps.style_guide}")
    for p in ps.prompts:
        print(f"[{p.id}] {p.english}\n    {p.japanese}")

    if images == "all":
        await session.generate_all_images()
    elif images == "main":
        await session.generate_image(MAIN_PROMPT_ID)
    if session.error:
        print(f"Error: {session.error}", file=sys.stderr)

    for prompt_id, instructions in edits:
        targets = [im for im in session.images if im.prompt_id == prompt_id]
        if not targets:
            print(f"Skipping edit for {prompt_id}: no image was generated", file=sys.stderr)
            continue
        if await session.edit_image(targets[-1].id, instructions) is None:
            print(f"Error: {session.error}", file=sys.stderr)
    return True


def main() -> None:
    parser = argparse.ArgumentParser(description="Blog article -> illustration prompts -> images")
    parser.add_argument("--article", type=str, required=True, help="Path to the article text ('-' for stdin)")
    parser.add_argument("--api-key", type=str, default="", help="Gemini API key (saved for later runs)")
    parser.add_argument("--images", choices=["none", "main", "all"], default="all", help="Which prompts to render")
    parser.add_argument("--overlay", type=str, default="", help="Text to render on the main image")
    parser.add_argument("--edit", type=_parse_edit, action="append", default=None, help="PROMPT_ID=INSTRUCTION (repeatable)")
    parser.add_argument("--outdir", type=str, default="", help="Output directory (optional)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.article == "-":
        article = sys.stdin.read()
    else:
        article_path = Path(args.article)
        if not article_path.exists():
            raise SystemExit(f"Article file not found: {article_path}")
        article = article_path.read_text(encoding="utf-8")

    credentials = CredentialHolder()
    if args.api_key:
        credentials.set(args.api_key)

    session = GenerationSession(credentials)
    session.set_article(article)

    if not asyncio.run(run(session, args.images, args.overlay, args.edit or [])):
        raise SystemExit(f"Error: {session.error}")

    outdir = archive.run(session.state, args.outdir or _default_outdir())
    print(f"Artifacts saved under: {outdir}")


if __name__ == "__main__":
    main()
