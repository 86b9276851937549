"""typesprint package: adaptive symbol typing sprints."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .config import DEFAULT_CONFIG
from .generator import generate_snippet
from .models import CharacterStat, Config, LiveMetrics, Phase, SessionResult, TroubleEntry, WeightMix
from .service import SprintService
from .session import TypingSession, create_session, finalize_session
from .trouble import merge_into_history, record_attempt, select_top_trouble

__all__ = [
    "DEFAULT_CONFIG",
    "CharacterStat",
    "Config",
    "LiveMetrics",
    "Phase",
    "SessionResult",
    "SprintService",
    "TroubleEntry",
    "TypingSession",
    "WeightMix",
    "__version__",
    "create_session",
    "finalize_session",
    "generate_snippet",
    "merge_into_history",
    "record_attempt",
    "select_top_trouble",
]


def _version_from_pyproject() -> str | None:
    """Read [project].version from a nearby pyproject.toml when running from a source checkout."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.exists():
            continue
        in_project = False
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                in_project = stripped == "[project]"
            elif in_project and (match := re.match(r'^version\s*=\s*"([^"]+)"\s*$', stripped)):
                return match.group(1)
    return None


try:
    __version__ = _version_from_pyproject() or version("typesprint")
except PackageNotFoundError:
    __version__ = "0+unknown"
