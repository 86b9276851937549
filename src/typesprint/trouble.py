"""Per-character attempt/error counters and the trouble ranking built on them."""

from __future__ import annotations

from collections.abc import Mapping

from .models import CharacterStat, TroubleEntry

CharStats = dict[str, CharacterStat]


def record_attempt(stats: CharStats, char: str, is_error: bool) -> None:
    """Count one keystroke for `char`, and one error when `is_error`."""
    entry = stats.setdefault(char, CharacterStat(char=char))
    entry.attempts += 1
    if is_error:
        entry.errors += 1


def revert_attempt(stats: CharStats, char: str, was_error: bool) -> None:
    """Undo one recorded keystroke for `char`; counters never drop below zero."""
    entry = stats.get(char)
    if entry is None or entry.attempts <= 0:
        return
    entry.attempts -= 1
    if was_error and entry.errors > 0:
        entry.errors -= 1
    entry.errors = min(entry.errors, entry.attempts)


def merge_into_history(history: Mapping[str, CharacterStat], delta: Mapping[str, CharacterStat]) -> CharStats:
    """Return a new history with every delta counter added to it.

    Neither input is mutated. Merging is additive, so the order in which
    deltas are applied does not change the result.
    """
    merged = {
        char: CharacterStat(char=char, attempts=stat.attempts, errors=stat.errors) for char, stat in history.items()
    }
    for char, stat in delta.items():
        current = merged.setdefault(char, CharacterStat(char=char))
        current.attempts += max(0, stat.attempts)
        current.errors += max(0, stat.errors)
    return merged


def select_top_trouble(
    stats: Mapping[str, CharacterStat], min_attempts: int = 5, limit: int = 10
) -> list[TroubleEntry]:
    """Rank characters with at least `min_attempts` tries by error rate, worst first.

    Equal error rates keep the mapping's insertion order (first seen first).
    """
    rows = [
        TroubleEntry(char=char, error_rate=stat.errors / stat.attempts, attempts=stat.attempts)
        for char, stat in stats.items()
        if stat.attempts >= max(1, min_attempts)
    ]
    rows.sort(key=lambda row: row.error_rate, reverse=True)
    return rows[: max(0, limit)]
