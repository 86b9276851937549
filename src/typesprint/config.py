"""Default settings and tolerant parsing of persisted configuration."""

from __future__ import annotations

import math
from dataclasses import asdict, replace
from typing import cast

from .models import Config, WeightMix

DEFAULT_CONFIG = Config()

MIN_SPRINT_LENGTH = 1
MAX_SPRINT_LENGTH = 3000
MIN_EMPHASIS = 1.0


def clamp_config(config: Config) -> Config:
    """Return config with every value pulled into its safe range."""
    default = DEFAULT_CONFIG
    weights = WeightMix(
        letters=max(0.0, _coerce_float(config.weights.letters, default.weights.letters)),
        numbers=max(0.0, _coerce_float(config.weights.numbers, default.weights.numbers)),
        punctuation=max(0.0, _coerce_float(config.weights.punctuation, default.weights.punctuation)),
    )
    sprint_length = _coerce_int(config.sprint_length, default.sprint_length)
    return replace(
        config,
        sprint_length=max(MIN_SPRINT_LENGTH, min(sprint_length, MAX_SPRINT_LENGTH)),
        line_width=max(1, _coerce_int(config.line_width, default.line_width)),
        weights=weights,
        emphasize_trouble=bool(config.emphasize_trouble),
        number_line_emphasis=max(MIN_EMPHASIS, _coerce_float(config.number_line_emphasis, MIN_EMPHASIS)),
    )


def config_to_dict(config: Config) -> dict[str, object]:
    """Serialize config to a JSON-compatible dict."""
    return asdict(config)


def config_from_dict(raw: object) -> Config:
    """Build config from a persisted dict, merging missing keys over the defaults.

    Values of the wrong type fall back to the default for that key.
    """
    if not isinstance(raw, dict):
        return DEFAULT_CONFIG
    data = cast(dict[str, object], raw)
    default = DEFAULT_CONFIG

    weights = default.weights
    weights_obj = data.get("weights")
    if isinstance(weights_obj, dict):
        raw_weights = cast(dict[str, object], weights_obj)
        weights = WeightMix(
            letters=_coerce_float(raw_weights.get("letters"), default.weights.letters),
            numbers=_coerce_float(raw_weights.get("numbers"), default.weights.numbers),
            punctuation=_coerce_float(raw_weights.get("punctuation"), default.weights.punctuation),
        )

    emphasize = data.get("emphasize_trouble", default.emphasize_trouble)
    config = Config(
        sprint_length=_coerce_int(data.get("sprint_length"), default.sprint_length),
        line_width=_coerce_int(data.get("line_width"), default.line_width),
        weights=weights,
        emphasize_trouble=emphasize if isinstance(emphasize, bool) else default.emphasize_trouble,
        number_line_emphasis=_coerce_float(data.get("number_line_emphasis"), default.number_line_emphasis),
    )
    return clamp_config(config)


def _coerce_int(value: object, default: int) -> int:
    """Coerce value to int, keeping default for unusable input."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _coerce_float(value: object, default: float) -> float:
    """Coerce value to float, keeping default for unusable input."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default
