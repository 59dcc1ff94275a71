import json
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

# Secret - stays in .env (GOOGLE_API_KEY, or GEMINI_API_KEY as a fallback)

# User config - loaded from ~/.channel_analyst/config.json (primary)
# or project-root config.json (fallback).
CONFIG_PATH = Path.home() / ".channel_analyst" / "config.json"
_LOCAL_CONFIG_PATH = Path(__file__).resolve().parent / "config.json"
_user_config: dict = {}


def _load_config() -> dict:
    # Project-local config.json as base, user home config overlaid on top
    merged: dict = {}
    for path in (_LOCAL_CONFIG_PATH, CONFIG_PATH):
        if path is not None and path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    merged.update(json.load(f))
            except (json.JSONDecodeError, OSError):
                pass
    return merged


def get(key: str, default=None):
    """Get a config value by dot-separated key. E.g. get('llm.timeout_ms', 300000)"""
    keys = key.split(".")
    val = _user_config
    for k in keys:
        if isinstance(val, dict):
            val = val.get(k)
        else:
            return default
    return val if val is not None else default


_user_config = _load_config()


# ---- Data directory -----------------------------------------------------------
# Base directory for logs and the CLI history file.
# Priority: CHANNEL_ANALYST_DIR env var > "data_dir" config key > ~/.channel_analyst

_data_dir: Optional[Path] = None


def get_data_dir() -> Path:
    """Return the resolved base data directory.

    Resolution order:
    1. ``CHANNEL_ANALYST_DIR`` environment variable
    2. ``"data_dir"`` key in config.json
    3. ``~/.channel_analyst`` (default)
    """
    global _data_dir
    if _data_dir is not None:
        return _data_dir
    env_val = os.environ.get("CHANNEL_ANALYST_DIR")
    if env_val:
        _data_dir = Path(env_val).expanduser().resolve()
    else:
        configured = get("data_dir")
        if configured:
            _data_dir = Path(configured).expanduser().resolve()
        else:
            _data_dir = Path.home() / ".channel_analyst"
    return _data_dir


def _reset_data_dir() -> None:
    """Reset the cached data directory (for testing only)."""
    global _data_dir
    _data_dir = None


# ---- LLM provider config ------------------------------------------------------

def get_api_key() -> str | None:
    """Return the Gemini API key.

    ``GOOGLE_API_KEY`` wins; ``GEMINI_API_KEY`` is accepted for setups that
    already export the older name.
    """
    return os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")


SMART_MODEL = get("model", "gemini-2.5-flash-lite")
IMAGE_MODEL = get("image_model", "gemini-2.0-flash-exp-image-generation")
LLM_TIMEOUT_MS = get("llm_timeout_ms", 300_000)


# ---- Persona -----------------------------------------------------------------
# The persona file is read once at startup by load_system_prompt() and the
# text is handed to ChatService explicitly.

SYSTEM_PROMPT_PATH = Path(
    get("system_prompt_path", str(Path(__file__).resolve().parent / "prompt_chat.txt"))
).expanduser()


def load_system_prompt(path: Path | None = None) -> str:
    """Read the persona/system instruction text.

    Returns an empty string when the file is missing or unreadable; the
    conversation then runs without a persona preamble.
    """
    target = Path(path) if path is not None else SYSTEM_PROMPT_PATH
    try:
        return target.read_text(encoding="utf-8").strip()
    except OSError:
        return ""


# ---- Setting descriptions ----------------------------------------------------
CONFIG_DESCRIPTIONS: dict[str, str] = {
    "model": "Gemini model used for chat, tool calling, search and code execution.",
    "image_model": "Gemini model used by the generate_image tool.",
    "llm_timeout_ms": "HTTP timeout for Gemini requests, in milliseconds.",
    "system_prompt_path": "Text file holding the assistant persona. Missing file means no persona.",
    "console_format": "Console log format: 'simple' (default), 'full', or 'clean' (no console output).",
    "data_dir": "Base directory for logs and CLI history. Default: ~/.channel_analyst",
    "user_name": "Name the assistant addresses you by (CLI --name overrides).",
}


def reload_config() -> None:
    """Re-read config from disk and reassign all module-level constants.

    Existing ChatService instances keep their model; only new ones pick up
    changes.
    """
    global _user_config
    global SMART_MODEL, IMAGE_MODEL, LLM_TIMEOUT_MS, SYSTEM_PROMPT_PATH

    load_dotenv(override=True)

    _user_config = _load_config()
    _reset_data_dir()

    SMART_MODEL = get("model", "gemini-2.5-flash-lite")
    IMAGE_MODEL = get("image_model", "gemini-2.0-flash-exp-image-generation")
    LLM_TIMEOUT_MS = get("llm_timeout_ms", 300_000)
    SYSTEM_PROMPT_PATH = Path(
        get("system_prompt_path", str(Path(__file__).resolve().parent / "prompt_chat.txt"))
    ).expanduser()
