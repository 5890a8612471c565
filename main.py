"""Entry point for the gesture-driven vision assistant."""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from utils.log_utils import tprint
from utils.settings_store import refresh_settings


def _is_enabled(name: str, default: bool = True) -> bool:
    """Read a boolean-like environment variable (1/0/true/false)."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _load_env_files() -> None:
    """Load .env files from common locations (repo, bundle, home)."""
    candidates: list[Path] = []
    cwd = Path.cwd()
    candidates.extend([cwd / "env/.env", cwd / ".env"])

    module_root = Path(__file__).resolve().parent
    candidates.extend([module_root / "env/.env", module_root / ".env"])

    home = Path.home()
    candidates.extend([home / ".aria.env", home / ".env.aria"])

    if getattr(sys, "frozen", False):
        meipass = Path(getattr(sys, "_MEIPASS", ""))
        if meipass:
            candidates.extend([meipass / "env/.env", meipass / ".env"])

    for path in candidates:
        if path.exists():
            load_dotenv(dotenv_path=str(path), override=False)


def bootstrap() -> None:
    """Load configuration, then serve the API or open the preview window."""
    _load_env_files()
    refresh_settings()

    if _is_enabled("ARIA_API", False):
        from api.server import run

        run()
        return

    from mode_controller.workflow import build_workflow
    from ui.main_window import MainWindow

    workflow = build_workflow()
    main_window = MainWindow(workflow)
    try:
        main_window.launch()
    except KeyboardInterrupt:
        tprint("[MAIN] Received interrupt. Shutting down...")
    finally:
        workflow.shutdown()


if __name__ == "__main__":
    bootstrap()
