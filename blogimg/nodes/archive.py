from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List

from ..encoding import decode_data_uri, extension_for
from ..state import SessionState


def run(state: SessionState, outdir: str | Path) -> Path:
    out = Path(outdir)
    out.mkdir(parents=True, exist_ok=True)

    # dump prompt set
    if state.prompt_set is not None:
        (out / "prompts.json").write_text(
            json.dumps(state.prompt_set.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
        )

    # write images, numbered per prompt in append order
    seen: Counter[str] = Counter()
    meta: List[Dict[str, Any]] = []
    for im in state.images:
        data, mime = decode_data_uri(im.image_ref)
        seen[im.prompt_id] += 1
        name = f"{im.prompt_id}_{seen[im.prompt_id]}{extension_for(mime)}"
        (out / name).write_bytes(data)
        meta.append({
            "id": im.id,
            "prompt_id": im.prompt_id,
            "english": im.prompt.english,
            "japanese": im.prompt.japanese,
            "text_overlay": im.text_overlay,
            "mime": mime,
            "file": name,
            "edit_count": im.edit_count,
        })
    if meta:
        (out / "images.json").write_text(json.dumps(meta, ensure_ascii=False, indent=2), encoding="utf-8")

    return out
