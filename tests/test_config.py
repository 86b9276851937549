import math

from typesprint.config import DEFAULT_CONFIG, MAX_SPRINT_LENGTH, clamp_config, config_from_dict, config_to_dict
from typesprint.models import Config, WeightMix


def test_default_config_values() -> None:
    assert DEFAULT_CONFIG.sprint_length == 300
    assert DEFAULT_CONFIG.line_width == 80
    assert DEFAULT_CONFIG.weights == WeightMix(letters=0.3, numbers=0.2, punctuation=0.5)
    assert DEFAULT_CONFIG.emphasize_trouble is True
    assert DEFAULT_CONFIG.number_line_emphasis == 4


def test_clamp_config_pulls_values_into_range() -> None:
    config = clamp_config(
        Config(
            sprint_length=10_000,
            line_width=0,
            weights=WeightMix(letters=-1.0, numbers=0.5, punctuation=math.inf),
            number_line_emphasis=-2,
        )
    )
    assert config.sprint_length == MAX_SPRINT_LENGTH
    assert config.line_width == 1
    assert config.weights == WeightMix(letters=0.0, numbers=0.5, punctuation=DEFAULT_CONFIG.weights.punctuation)
    assert config.number_line_emphasis == 1.0


def test_config_dict_round_trip() -> None:
    config = Config(sprint_length=450, emphasize_trouble=False, number_line_emphasis=2.5)
    assert config_from_dict(config_to_dict(config)) == config


def test_config_from_dict_falls_back_per_key() -> None:
    config = config_from_dict(
        {
            "sprint_length": "200",
            "line_width": True,
            "weights": {"letters": "heavy", "numbers": 1},
            "emphasize_trouble": "yes",
            "number_line_emphasis": float("nan"),
        }
    )
    assert config.sprint_length == 200
    assert config.line_width == DEFAULT_CONFIG.line_width
    assert config.weights == WeightMix(letters=0.3, numbers=1.0, punctuation=0.5)
    assert config.emphasize_trouble is DEFAULT_CONFIG.emphasize_trouble
    assert config.number_line_emphasis == DEFAULT_CONFIG.number_line_emphasis


def test_config_from_dict_rejects_non_dict() -> None:
    assert config_from_dict(["sprint_length", 10]) == DEFAULT_CONFIG
    assert config_from_dict(None) == DEFAULT_CONFIG
