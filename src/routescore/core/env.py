"""
Environment helpers.

Directions API keys usually live in a repo-local `.env` file. This module loads it
once (best-effort, never overriding variables already set in the process) and
resolves the project root the same way whether we run from the CLI, uvicorn or tests.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path


def _looks_like_project_root(path: Path) -> bool:
    if (path / ".env").is_file():
        return True
    if (path / ".git").exists():
        return True
    return (path / "pyproject.toml").is_file() and (path / "src").is_dir()


@lru_cache
def get_project_root() -> Path:
    """Return the best-guess project root directory (cached)."""
    override = os.getenv("ROUTESCORE_PROJECT_ROOT")
    if override:
        return Path(override).expanduser().resolve()

    start = Path.cwd().resolve()
    for candidate in [start, *start.parents]:
        if _looks_like_project_root(candidate):
            return candidate
    return start


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load `.env` once if present; returns the loaded env path (or None)."""
    from dotenv import load_dotenv

    explicit = os.getenv("ROUTESCORE_ENV_FILE")
    env_path = Path(explicit).expanduser().resolve() if explicit else get_project_root() / ".env"
    if env_path.is_file():
        load_dotenv(dotenv_path=env_path, override=False)
        return env_path
    return None
