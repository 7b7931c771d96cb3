"""Environment loading for the ticket bridge.

Store credentials (GITHUB_TOKEN, CLICKUP_TOKEN), shared webhook tokens and
BRIDGE_* toggles can live in a local `.env` file next to manage.py; set
DJANGO_ENV=dev to also read `.env.dev`. Variables already present in the
process environment always win, so deployments configure the bridge with
real environment variables and no files.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def _should_load_dev_env() -> bool:
    return os.environ.get("DJANGO_ENV", "").lower() in {"dev", "development", "local"}


def load_env(base_dir: Path | None = None) -> None:
    """Populate os.environ from `.env` (and `.env.dev` in dev) under ``base_dir``.

    ``base_dir`` defaults to the directory holding manage.py.
    """
    if base_dir is None:
        base_dir = Path(__file__).resolve().parent.parent

    load_dotenv(base_dir / ".env", override=False)

    if _should_load_dev_env():
        load_dotenv(base_dir / ".env.dev", override=False)


def env_bool(name: str, default: bool = False) -> bool:
    """Read a "true"/"false" style flag from the environment."""
    value = os.environ.get(name)
    if not value:
        return default
    return value.strip().lower() == "true"


def env_list(name: str, default: str = "") -> list[str]:
    """Read a comma-separated list from the environment, dropping blanks."""
    raw = os.environ.get(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]
