import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from .render import DEFAULT_CANVAS_SIZE, DEFAULT_PLACEHOLDER_URL

RENDERERS = ("vector", "placeholder", "generative")


@dataclass(frozen=True)
class Settings:
    store_dir: Optional[Path] = None
    renderer: str = "vector"
    placeholder_url: str = DEFAULT_PLACEHOLDER_URL
    canvas_size: Tuple[int, int] = DEFAULT_CANVAS_SIZE
    font_path: Optional[str] = None
    log_level: str = "INFO"


def load_settings(env: Optional[Mapping[str, str]] = None, use_dotenv: bool = True) -> Settings:
    """
    Build Settings from environment variables.

    A local .env file is loaded first when `use_dotenv` is set (e.g.
    ENABLEMENT_STORE_DIR=.enablement). Pass `env` to read from an explicit
    mapping instead of os.environ.
    """
    if env is None:
        if use_dotenv:
            load_dotenv()
        env = os.environ

    renderer = env.get("ENABLEMENT_RENDERER", "vector").lower()
    if renderer not in RENDERERS:
        raise ValueError(f"ENABLEMENT_RENDERER must be one of {RENDERERS}, got {renderer!r}")

    store_dir = env.get("ENABLEMENT_STORE_DIR")
    width = int(env.get("ENABLEMENT_CANVAS_WIDTH", DEFAULT_CANVAS_SIZE[0]))
    height = int(env.get("ENABLEMENT_CANVAS_HEIGHT", DEFAULT_CANVAS_SIZE[1]))

    return Settings(
        store_dir=Path(store_dir) if store_dir else None,
        renderer=renderer,
        placeholder_url=env.get("ENABLEMENT_PLACEHOLDER_URL", DEFAULT_PLACEHOLDER_URL),
        canvas_size=(width, height),
        font_path=env.get("ENABLEMENT_FONT_PATH") or None,
        log_level=env.get("LOG_LEVEL", "INFO").upper(),
    )
