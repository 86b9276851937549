from dataclasses import replace

import pytest

from typesprint.config import DEFAULT_CONFIG
from typesprint.models import Config
from typesprint.service import SprintService


def _complete(session, text: str) -> None:
    for char in text:
        session.handle_key(char)


def test_generate_snippet_uses_saved_config(service: SprintService) -> None:
    service.save_config(replace(DEFAULT_CONFIG, sprint_length=80))
    for _ in range(10):
        snippet = service.generate_snippet()
        assert 0 < len(snippet) <= 80


def test_generate_snippet_accepts_explicit_config(service: SprintService) -> None:
    snippet = service.generate_snippet(Config(sprint_length=25, emphasize_trouble=False))
    assert 0 < len(snippet) <= 25


def test_save_config_clamps_values(service: SprintService) -> None:
    saved = service.save_config(Config(sprint_length=-5, number_line_emphasis=0.2))
    assert saved.sprint_length == 1
    assert saved.number_line_emphasis == 1.0
    assert service.get_config() == saved


def test_reset_config_restores_defaults(service: SprintService) -> None:
    service.save_config(Config(sprint_length=999))
    assert service.reset_config() == DEFAULT_CONFIG
    assert service.get_config() == DEFAULT_CONFIG


def test_completed_session_is_recorded(service: SprintService, clock) -> None:
    session = service.create_session("a#b#c")
    _complete(session, "a#b")
    clock.advance(6_000)
    _complete(session, "$c")
    assert session.is_done()

    result = service.finalize_session(session)
    assert result.errors == 1
    assert result.duration_ms == 6_000
    assert service.list_results() == [result]
    assert service.get_result(result.id) == result
    assert service.get_result("missing") is None

    stats = service.progress.get_char_stats()
    assert stats["#"].attempts == 1
    assert stats["$"].errors == 1


def test_results_accumulate_newest_first(service: SprintService) -> None:
    ids = []
    for _ in range(3):
        session = service.create_session("ok")
        _complete(session, "ok")
        ids.append(service.finalize_session(session).id)
    assert [result.id for result in service.list_results()] == list(reversed(ids))
    assert len(service.list_results(limit=2)) == 2


def test_abandoned_session_records_nothing(service: SprintService) -> None:
    session = service.create_session("abc")
    _complete(session, "ab")
    with pytest.raises(ValueError):
        service.finalize_session(session)
    assert service.list_results() == []
    assert service.progress.get_char_stats() == {}


def test_create_session_generates_target(service: SprintService) -> None:
    service.save_config(Config(sprint_length=60))
    session = service.create_session()
    assert 0 < len(session.target) <= 60


def test_top_trouble_spans_sessions(service: SprintService) -> None:
    for _ in range(3):
        session = service.create_session("!!")
        _complete(session, "1!")
        service.finalize_session(session)

    trouble = service.get_top_trouble(min_attempts=3)
    assert [(entry.char, entry.error_rate, entry.attempts) for entry in trouble] == [
        ("1", 1.0, 3),
        ("!", 0.0, 3),
    ]
    assert service.get_top_trouble(min_attempts=4) == []

    service.reset_stats()
    assert service.get_top_trouble(min_attempts=0) == []
