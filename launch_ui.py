"""
ClinRx Interaction Copilot – UI Launcher
=========================================
Convenience entry-point:

  # Full mode (needs GEMINI_API_KEY in .env):
  python launch_ui.py

  # Demo / offline mode (canned report, no API key required):
  python launch_ui.py --demo-mode

  # Public share link (Gradio tunnel):
  python launch_ui.py --share

  # Custom host / port:
  python launch_ui.py --host 127.0.0.1 --port 8080
"""

import os
import sys
from pathlib import Path

# Ensure project root is first on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent))


def _find_free_port(start: int = 7860, end: int = 7880) -> int:
    import socket

    for candidate in range(start, end + 1):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            if s.connect_ex(("127.0.0.1", candidate)) != 0:
                return candidate
    return start  # let Gradio raise its own error


if __name__ == "__main__":
    import argparse

    from app.gradio_app import _CSS, build_app, set_demo_mode
    from core.logging_utils import setup_logging

    parser = argparse.ArgumentParser(description="ClinRx Interaction Copilot – Gradio UI")
    parser.add_argument("--host",      default="0.0.0.0",  help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port",      type=int, default=None, help="Port (default: auto 7860-7880)")
    parser.add_argument("--share",     action="store_true", help="Create a public Gradio share link")
    parser.add_argument("--demo-mode", action="store_true",
                        help="Use a canned report — no analysis service is called")
    args = parser.parse_args()

    setup_logging(level=os.environ.get("LOG_LEVEL", "INFO"))

    if args.demo_mode:
        set_demo_mode(True)
        print("\n[DEMO MODE] Canned report active — no analysis service will be called.\n")

    ui = build_app()
    port = args.port or _find_free_port()

    print(f"\n  Starting on http://localhost:{port}\n")
    ui.launch(
        server_name=args.host,
        server_port=port,
        share=args.share,
        css=_CSS,
        inbrowser=True,
    )
