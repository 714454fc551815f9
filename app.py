from __future__ import annotations

# Hugging Face Spaces entrypoint: HF serves the module-level `demo`.

from scripts.gradio_app import app as create_app

demo = create_app()
