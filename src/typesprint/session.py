"""Keystroke-driven typing session and its finalized result."""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable
from datetime import UTC, datetime

from .models import LiveMetrics, Phase, SessionResult
from .trouble import CharStats, record_attempt, revert_attempt, select_top_trouble

logger = logging.getLogger(__name__)

ENTER = "Enter"
TAB = "Tab"
SPACE = " "
BACKSPACE = "Backspace"
PAUSE_KEY = "Escape"

CHARS_PER_WORD = 5
MIN_ELAPSED_MINUTES = 1 / 60_000

SHIFT_DIGITS = {
    "!": "1",
    "@": "2",
    "#": "3",
    "$": "4",
    "%": "5",
    "^": "6",
    "&": "7",
    "*": "8",
    "(": "9",
    ")": "0",
}

Clock = Callable[[], int]


def monotonic_ms() -> int:
    """Return a monotonic clock reading in milliseconds."""
    return time.monotonic_ns() // 1_000_000


def epoch_ms() -> int:
    """Return the current wall-clock time as epoch milliseconds."""
    return int(datetime.now(UTC).timestamp() * 1000)


def shift_hint(char: str) -> str | None:
    """Return the digit key typed with Shift to produce `char`, if any."""
    return SHIFT_DIGITS.get(char)


def key_to_char(key: str) -> str | None:
    """Map a key name to the character it types, or None for keys that type nothing."""
    if key == ENTER:
        return "\n"
    if key == TAB:
        return "\t"
    if len(key) == 1:
        return key
    return None


class TypingSession:
    """State machine for one sprint: Idle -> Running <-> Paused -> Completed.

    The duration clock freezes while paused, so paused time never counts
    towards WPM or the final duration.

    A sprint completes only once the last target character is typed
    correctly; a full buffer ending in a mistake waits for a delete.
    """

    def __init__(self, target: str, clock: Clock | None = None) -> None:
        """Create an idle session for `target` text."""
        self.target = target
        self.phase = Phase.IDLE if target else Phase.COMPLETED
        self.typed: list[str] = []
        self.char_stats: CharStats = {}
        self.errors = 0
        self.started_at: int | None = None
        self._clock = clock or monotonic_ms
        self._paused_at: int | None = None
        self._paused_ms = 0
        self._completed_at: int | None = None
        self.finalized = False

    def handle_key(self, key: str) -> None:
        """Apply one key event; keys that do not fit the current phase are ignored."""
        if self.phase is Phase.COMPLETED:
            return
        if key == PAUSE_KEY:
            self._toggle_pause()
            return
        if self.phase is Phase.PAUSED:
            return
        if key == BACKSPACE:
            self._delete()
            return
        char = key_to_char(key)
        if char is None:
            return
        if self.phase is Phase.IDLE:
            self.phase = Phase.RUNNING
            self.started_at = self._clock()
        self._type(char)

    def _type(self, char: str) -> None:
        index = len(self.typed)
        if index >= len(self.target):
            return
        is_error = char != self.target[index]
        self.typed.append(char)
        if is_error:
            self.errors += 1
        record_attempt(self.char_stats, char, is_error)
        if len(self.typed) == len(self.target) and not is_error:
            self.phase = Phase.COMPLETED
            self._completed_at = self._clock()

    def _delete(self) -> None:
        if not self.typed:
            return
        index = len(self.typed) - 1
        char = self.typed.pop()
        was_error = char != self.target[index]
        if was_error:
            self.errors = max(0, self.errors - 1)
        revert_attempt(self.char_stats, char, was_error)

    def _toggle_pause(self) -> None:
        if self.phase is Phase.RUNNING:
            self.phase = Phase.PAUSED
            self._paused_at = self._clock()
        elif self.phase is Phase.PAUSED:
            if self._paused_at is not None:
                self._paused_ms += max(0, self._clock() - self._paused_at)
            self._paused_at = None
            self.phase = Phase.RUNNING

    @property
    def typed_text(self) -> str:
        return "".join(self.typed)

    @property
    def attempts(self) -> int:
        return len(self.typed)

    @property
    def correct(self) -> int:
        return sum(1 for index, char in enumerate(self.typed) if char == self.target[index])

    @property
    def current_char(self) -> str | None:
        """Next character the user has to type, or None when done."""
        index = len(self.typed)
        return self.target[index] if index < len(self.target) else None

    @property
    def progress(self) -> float:
        """Fraction of the target typed so far."""
        if not self.target:
            return 1.0
        return len(self.typed) / len(self.target)

    def is_done(self) -> bool:
        return self.phase is Phase.COMPLETED

    def elapsed_ms(self) -> int:
        """Active typing time, excluding paused intervals."""
        if self.started_at is None:
            return 0
        if self._completed_at is not None:
            end = self._completed_at
        elif self._paused_at is not None:
            end = self._paused_at
        else:
            end = self._clock()
        return max(0, end - self.started_at - self._paused_ms)

    def live_metrics(self) -> LiveMetrics:
        """Compute running speed and accuracy figures."""
        attempts = self.attempts
        correct = self.correct
        elapsed = self.elapsed_ms()
        minutes = max(MIN_ELAPSED_MINUTES, elapsed / 60_000)
        return LiveMetrics(
            attempts=attempts,
            correct=correct,
            errors=self.errors,
            elapsed_ms=elapsed,
            gross_wpm=attempts / CHARS_PER_WORD / minutes,
            net_wpm=max(0.0, (attempts - self.errors) / CHARS_PER_WORD / minutes),
            accuracy=correct / attempts if attempts else 1.0,
        )


def create_session(target: str, clock: Clock | None = None) -> TypingSession:
    """Start a new idle session over `target`."""
    return TypingSession(target, clock=clock)


def finalize_session(session: TypingSession, now_ms: int | None = None) -> SessionResult:
    """Build the immutable result of a completed session.

    Raises ValueError for sessions that are not completed or were already
    finalized; abandoned sessions never yield a result.
    """
    if not session.is_done():
        raise ValueError("Session is not completed.")
    if session.finalized:
        raise ValueError("Session was already finalized.")
    session.finalized = True

    metrics = session.live_metrics()
    result = SessionResult(
        id=str(uuid.uuid4()),
        timestamp=now_ms if now_ms is not None else epoch_ms(),
        duration_ms=metrics.elapsed_ms,
        length=len(session.target),
        attempts=metrics.attempts,
        correct=metrics.correct,
        errors=metrics.errors,
        gross_wpm=metrics.gross_wpm,
        net_wpm=metrics.net_wpm,
        accuracy=metrics.accuracy,
        top_trouble=tuple(select_top_trouble(session.char_stats)),
    )
    logger.info(
        "Session %s finished: %d chars, %.1f net WPM, %.0f%% accuracy",
        result.id,
        result.length,
        result.net_wpm,
        result.accuracy * 100,
    )
    return result
