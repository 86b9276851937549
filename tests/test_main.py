import random
from pathlib import Path

import typesprint.main as main
from typesprint.service import SprintService


class FixedSnippetService(SprintService):
    def __init__(self, snippet: str) -> None:
        super().__init__(":memory:", rng=random.Random(0), clock=lambda: 0)
        self.snippet = snippet

    def generate_snippet(self, config=None) -> str:
        return self.snippet


def _run_shell(monkeypatch, inputs: list[str], snippet: str = "ab;\ncd") -> list[str]:
    service = FixedSnippetService(snippet)
    monkeypatch.setattr(main, "_service", lambda db_path=None: service)
    answers = iter(inputs)
    output: list[str] = []
    assert main.play_shell(input_fn=lambda _prompt: next(answers), print_fn=output.append) == 0
    return [line.strip() for line in output]


def test_sprint_flow_records_result(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["1", "ab;", "cd", "2", "q"])
    assert "ab;" in output
    assert "=== Sprint Complete ===" in output
    assert "Accuracy: 100%" in output
    assert "Errors: 0 of 6 keystrokes" in output
    assert "No results yet." not in output
    assert any(line.startswith("WPM:") for line in output)


def test_sprint_flow_shows_blank_lines_and_shift_hint(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["1", "!a", "", "b", "q"], snippet="!a\n\nb")
    assert "¶" in output
    assert "Hint: ! is typed with Shift + 1" in output
    assert "=== Sprint Complete ===" in output


def test_sprint_flow_abandon_saves_nothing(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["1", "ab", ":q", "2", "q"])
    assert "Sprint abandoned. Nothing was saved." in output
    assert "No results yet." in output
    assert "Keep typing to collect stats." in output


def test_sprint_flow_pause_and_delete(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["1", "ab;x", ":p", "ignored", ":p", ":del", ":del", "", "cd", "q"])
    assert "Paused. Type :p to resume." in output
    assert "Resumed." in output
    assert "Errors: 0 of 6 keystrokes" in output


def test_pause_before_first_key_is_refused(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["1", ":p", "ab;", "cd", "q"])
    assert "Start typing before pausing." in output
    assert "Resumed." not in output
    assert "=== Sprint Complete ===" in output


def test_wrong_last_character_needs_delete(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["1", "ax", "y", ":del", "b", "q"], snippet="ab")
    assert "Last character is wrong. Type :del to fix it." in output
    assert "=== Sprint Complete ===" in output
    assert "Errors: 0 of 2 keystrokes" in output


def test_sprint_flow_reports_errors_and_trouble(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["1", "xxxxxa", "q"], snippet="aaaaaa")
    assert "Accuracy: 17%" in output
    assert "Trouble this sprint: x" in output


def test_settings_flow_updates_config(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["3", "1", "120", "2", "9", "3", "b", "q"])
    assert "Sprint length: 120 chars" in output
    assert "Number-row emphasis: 8x" in output
    assert "Emphasize trouble chars: off" in output


def test_settings_flow_reset_and_invalid_input(monkeypatch) -> None:
    output = _run_shell(
        monkeypatch,
        ["3", "1", "abc", "2", "nan", "4", "5", "no", "5", "YES", "z", "b", "q"],
    )
    assert output.count("Please enter a number.") == 2
    assert "Settings reset." in output
    assert "Reset cancelled." in output
    assert "Character stats cleared." in output
    assert "Invalid choice." in output


def test_main_menu_invalid_choice(monkeypatch) -> None:
    output = _run_shell(monkeypatch, ["9", "q"])
    assert "Invalid choice." in output


def test_progress_lists_results_and_trouble(monkeypatch) -> None:
    inputs = ["1", "xxxxxa", "1", "aaaaaa", "2", "q"]
    output = _run_shell(monkeypatch, inputs, snippet="aaaaaa")
    assert any(line.startswith("Date") for line in output)
    assert any(line.startswith("x") and "100% errors (5 tries)" in line for line in output)
    assert any(line.startswith("a") and "0% errors (7 tries)" in line for line in output)


def test_run_stats_and_config_commands(tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "progress.db"
    assert main.run(["stats", "--db", str(db_path)]) == 0
    assert main.run(["config", "--db", str(db_path)]) == 0
    out = capsys.readouterr().out
    assert "No results yet." in out
    assert "Sprint length: 300 chars" in out


def test_run_play_delegates_to_shell(monkeypatch, tmp_path: Path) -> None:
    seen: dict[str, object] = {}

    def fake_shell(db_path=None) -> int:
        seen["db_path"] = db_path
        return 0

    monkeypatch.setattr(main, "play_shell", fake_shell)
    assert main.run(["--db", str(tmp_path / "p.db")]) == 0
    assert seen["db_path"] == tmp_path / "p.db"


def test_format_helpers() -> None:
    assert main._format_char(" ") == "space"  # noqa: SLF001
    assert main._format_char("\n") == "enter"  # noqa: SLF001
    assert main._format_char("#") == "#"  # noqa: SLF001
