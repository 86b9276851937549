"""Application service for sprints, results and trouble-character analytics."""

from __future__ import annotations

import logging
import random
from pathlib import Path

from .config import clamp_config
from .generator import generate_snippet
from .models import Config, SessionResult, TroubleEntry
from .progress import ProgressStore
from .session import Clock, TypingSession, create_session, finalize_session
from .trouble import CharStats, select_top_trouble

logger = logging.getLogger(__name__)


class SprintService:
    """Coordinates settings, snippet generation and session bookkeeping."""

    def __init__(self, db_path: Path | str, rng: random.Random | None = None, clock: Clock | None = None) -> None:
        """Initialize service with database path and optional randomness/clock sources."""
        self.progress = ProgressStore(db_path)
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock

    def get_config(self) -> Config:
        """Return current settings."""
        return self.progress.get_config()

    def save_config(self, config: Config) -> Config:
        """Clamp and persist settings."""
        config = clamp_config(config)
        self.progress.save_config(config)
        return config

    def reset_config(self) -> Config:
        """Restore default settings."""
        return self.progress.reset_config()

    def generate_snippet(self, config: Config | None = None) -> str:
        """Generate a snippet using saved settings and lifetime character stats."""
        config = config if config is not None else self.get_config()
        history: CharStats = self.progress.get_char_stats() if config.emphasize_trouble else {}
        return generate_snippet(config, history, self.rng)

    def create_session(self, target: str | None = None) -> TypingSession:
        """Start a session over `target`, generating one when omitted."""
        if target is None:
            target = self.generate_snippet()
        return create_session(target, clock=self.clock)

    def finalize_session(self, session: TypingSession) -> SessionResult:
        """Record a completed session: merge its character stats and store its result."""
        result = finalize_session(session)
        self.progress.merge_char_stats(session.char_stats)
        self.progress.push_result(result)
        return result

    def list_results(self, limit: int | None = None) -> list[SessionResult]:
        """Return stored results, newest first."""
        results = self.progress.get_results()
        return results if limit is None else results[: max(0, limit)]

    def get_result(self, result_id: str) -> SessionResult | None:
        """Return one stored result by id."""
        for result in self.progress.get_results():
            if result.id == result_id:
                return result
        return None

    def get_top_trouble(self, min_attempts: int = 5, limit: int = 10) -> list[TroubleEntry]:
        """Rank lifetime trouble characters."""
        return select_top_trouble(self.progress.get_char_stats(), min_attempts, limit)

    def reset_stats(self) -> None:
        """Forget lifetime character stats."""
        self.progress.reset_char_stats()
        logger.info("Character statistics reset")

    def close(self) -> None:
        """Close resources."""
        self.progress.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort cleanup for test/process teardown."""
        try:
            self.close()
        except Exception:
            pass
