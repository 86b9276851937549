"""Core domain models for typing sprints."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class CharacterStat:
    """Attempt and error counters for one character."""

    char: str
    attempts: int = 0
    errors: int = 0


@dataclass(frozen=True)
class TroubleEntry:
    """Ranked weakness row derived from character counters."""

    char: str
    error_rate: float
    attempts: int


@dataclass(frozen=True)
class WeightMix:
    """Relative share of letters, digits and punctuation in generated text."""

    letters: float = 0.3
    numbers: float = 0.2
    punctuation: float = 0.5


@dataclass(frozen=True)
class Config:
    """User generation settings."""

    sprint_length: int = 300
    line_width: int = 80
    weights: WeightMix = field(default_factory=WeightMix)
    emphasize_trouble: bool = True
    number_line_emphasis: float = 4.0


@dataclass(frozen=True)
class SessionResult:
    """Finalized record of one completed sprint."""

    id: str
    timestamp: int
    duration_ms: int
    length: int
    attempts: int
    correct: int
    errors: int
    gross_wpm: float
    net_wpm: float
    accuracy: float
    top_trouble: tuple[TroubleEntry, ...] = ()


@dataclass(frozen=True)
class LiveMetrics:
    """Running performance snapshot for an in-flight session."""

    attempts: int
    correct: int
    errors: int
    elapsed_ms: int
    gross_wpm: float
    net_wpm: float
    accuracy: float


class Phase(Enum):
    """Lifecycle phase of a typing session."""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
