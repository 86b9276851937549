"""SQLite persistence for settings, sprint results and character statistics."""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Mapping
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

from .config import DEFAULT_CONFIG, config_from_dict, config_to_dict
from .models import CharacterStat, Config, SessionResult, TroubleEntry
from .trouble import CharStats, merge_into_history

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
RESULT_HISTORY_LIMIT = 100

CONFIG_KEY = "config"
RESULTS_KEY = "results"
CHAR_STATS_KEY = "char_stats"


class ProgressStore:
    """Key-value store holding one JSON document per record."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create the record table."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def _get(self, key: str) -> object | None:
        """Return decoded record, or None when absent or unparsable."""
        row = self._conn.execute("SELECT value FROM records WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        try:
            return cast(object, json.loads(str(row["value"])))
        except json.JSONDecodeError:
            logger.warning("Ignoring unparsable %s record", key)
            return None

    def _set(self, key: str, value: object) -> None:
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO records (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, json.dumps(value), now),
            )

    def _delete(self, key: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM records WHERE key = ?", (key,))

    def get_config(self) -> Config:
        """Return saved config merged over the defaults."""
        raw = self._get(CONFIG_KEY)
        if raw is None:
            return DEFAULT_CONFIG
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed config record")
            return DEFAULT_CONFIG
        return config_from_dict(raw)

    def save_config(self, config: Config) -> None:
        """Persist config."""
        self._set(CONFIG_KEY, config_to_dict(config))

    def reset_config(self) -> Config:
        """Drop saved config and return the defaults."""
        self._delete(CONFIG_KEY)
        return DEFAULT_CONFIG

    def get_results(self) -> list[SessionResult]:
        """Return saved results, newest first."""
        raw = self._get(RESULTS_KEY)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed result history record")
            return []
        results: list[SessionResult] = []
        for item in cast(list[object], raw):
            result = _result_from_dict(item)
            if result is None:
                logger.warning("Skipping malformed result row")
                continue
            results.append(result)
        return results

    def push_result(self, result: SessionResult) -> None:
        """Prepend result and keep only the most recent entries."""
        results = [result, *self.get_results()][:RESULT_HISTORY_LIMIT]
        self._set(RESULTS_KEY, [asdict(item) for item in results])

    def get_char_stats(self) -> CharStats:
        """Return lifetime per-character counters."""
        raw = self._get(CHAR_STATS_KEY)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring malformed character stats record")
            return {}
        stats: CharStats = {}
        for char, counters in cast(dict[str, object], raw).items():
            stat = _stat_from_dict(char, counters)
            if stat is not None:
                stats[char] = stat
        return stats

    def merge_char_stats(self, delta: Mapping[str, CharacterStat]) -> CharStats:
        """Add session counters into lifetime counters and return the merged result."""
        merged = merge_into_history(self.get_char_stats(), delta)
        self._set(
            CHAR_STATS_KEY,
            {char: {"attempts": stat.attempts, "errors": stat.errors} for char, stat in merged.items()},
        )
        return merged

    def reset_char_stats(self) -> None:
        """Forget lifetime per-character counters."""
        self._delete(CHAR_STATS_KEY)

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


def _stat_from_dict(char: str, raw: object) -> CharacterStat | None:
    """Normalize stored counters; negative values clamp to zero and errors never exceed attempts."""
    if not isinstance(char, str) or len(char) != 1 or not isinstance(raw, dict):
        return None
    counters = cast(dict[str, object], raw)
    attempts = _coerce_count(counters.get("attempts"))
    errors = _coerce_count(counters.get("errors"))
    if attempts is None or errors is None:
        return None
    return CharacterStat(char=char, attempts=attempts, errors=min(errors, attempts))


def _result_from_dict(raw: object) -> SessionResult | None:
    """Rebuild a stored result, or None when a field is missing or mistyped."""
    if not isinstance(raw, dict):
        return None
    row = cast(dict[str, object], raw)
    try:
        trouble_rows = cast(list[dict[str, object]], row.get("top_trouble") or [])
        top_trouble = tuple(
            TroubleEntry(
                char=str(item["char"]),
                error_rate=float(cast(float, item["error_rate"])),
                attempts=int(cast(int, item["attempts"])),
            )
            for item in trouble_rows
        )
        return SessionResult(
            id=str(row["id"]),
            timestamp=int(cast(int, row["timestamp"])),
            duration_ms=int(cast(int, row["duration_ms"])),
            length=int(cast(int, row["length"])),
            attempts=int(cast(int, row["attempts"])),
            correct=int(cast(int, row["correct"])),
            errors=int(cast(int, row["errors"])),
            gross_wpm=float(cast(float, row["gross_wpm"])),
            net_wpm=float(cast(float, row["net_wpm"])),
            accuracy=min(1.0, max(0.0, float(cast(float, row["accuracy"])))),
            top_trouble=top_trouble,
        )
    except (KeyError, TypeError, ValueError):
        return None


def _coerce_count(value: object) -> int | None:
    """Coerce a stored counter to a non-negative int."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float) and value.is_integer():
        return max(0, int(value))
    return None
