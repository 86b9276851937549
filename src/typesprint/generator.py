"""Adaptive generation of symbol-heavy, code-shaped practice snippets.

Generation works in four steps:

1. build a per-character weight table from the config and, optionally, the
   user's trouble characters;
2. render every template in the catalog and pick one line by roulette-wheel
   selection over the weight of the symbols it contains;
3. sprinkle number-line symbols into the chosen line;
4. reflow all lines into the width bounds and truncate to the sprint length.

All randomness comes from the `random.Random` passed in, so a seeded
instance reproduces the same snippet.
"""

from __future__ import annotations

import bisect
import logging
import random
import re
import string
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from itertools import accumulate

from .config import clamp_config
from .models import CharacterStat, Config
from .trouble import select_top_trouble

logger = logging.getLogger(__name__)

LETTERS = string.ascii_lowercase + string.ascii_uppercase
DIGITS = string.digits
NUMBER_LINE = "~`!@#$%^&*()_-+="
PUNCTUATION = "!@#$%^&*()-_=+[]{};:'\",.<>/?\\|~`"
QUOTES = "'\"`"
BREAK_CHARS = ",;:)}]"

MIN_LINE_WIDTH = 10
MAX_LINE_WIDTH = 70
NUMBER_LINE_BONUS = 1.8
SCORE_EPSILON = 0.0001
SEED_WEIGHT = 0.0001
TROUBLE_MIN_ATTEMPTS = 5
TROUBLE_LIMIT = 12
BLANK_LINE_PROBABILITY = 0.35
SEMICOLON_PROBABILITY = 0.6

Template = Callable[[random.Random], str]

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

LEXEMES = (
    "alpha",
    "beta",
    "gamma",
    "delta",
    "user",
    "item",
    "count",
    "total",
    "index",
    "key",
    "node",
    "path",
    "file",
    "token",
    "cache",
    "map",
    "list",
    "opts",
    "cfg",
    "value",
    "result",
    "status",
    "timer",
    "hash",
    "ptr",
    "safe",
    "unsafe",
    "match",
    "guard",
    "either",
    "left",
    "right",
)
TYPE_ATOMS = ("number", "string", "boolean", "unknown", "void", "never")
NUMBERS = ("0", "1", "2", "3", "10", "16", "42", "64", "99", "100", "256", "512", "1024")


def _camel(rng: random.Random) -> str:
    """Return a camelCase identifier of one or two lexemes."""
    words = [rng.choice(LEXEMES) for _ in range(rng.randint(1, 2))]
    return words[0] + "".join(word.capitalize() for word in words[1:])


def _pascal(rng: random.Random) -> str:
    name = _camel(rng)
    return name[0].upper() + name[1:]


def _num(rng: random.Random) -> str:
    return rng.choice(NUMBERS)


def _atom(rng: random.Random) -> str:
    return rng.choice(TYPE_ATOMS)


TEMPLATES: tuple[Template, ...] = (
    lambda r: f"import {{ {_camel(r)}, {_camel(r)} as {_camel(r)} }} from 'node:path';",
    lambda r: (
        f"export type {_pascal(r)}<{_pascal(r)}, {_pascal(r)}> = {{ id?: number; value: {_atom(r)} | null }}"
        f" & Partial<Record<string, {_atom(r)}>>;"
    ),
    lambda r: f"export const {_camel(r)} = (...xs: number[]): number => xs.reduce((a,b)=>a+b, {_num(r)});",
    lambda r: (
        f"function {_camel(r)}<T extends {{ id: number }} = {{ id: number }}>(arr: T[], n: number = {_num(r)}): T[]"
        " { return arr.slice(0, n ?? 0); }"
    ),
    lambda r: (
        f"const {_camel(r)} = {{ a: {_num(r)}, b: '{_camel(r)}', c: [{_num(r)}, {_num(r)}] }} as const;"
        f" {_camel(r)}?.c?.[0] ?? {_num(r)};"
    ),
    lambda r: f"interface {_pascal(r)}<T = {_atom(r)}> {{ id?: string; onChange?: (x: T) => void; data: T | null }}",
    lambda r: (
        f"class {_pascal(r)}<T> {{ #id: number; constructor(public value: T){{ this.#id = {_num(r)} }}"
        " get id(): number { return this.#id } }"
    ),
    lambda r: (
        f"const {_camel(r)} = [{_num(r)},{_num(r)},{_num(r)}].map(x=>x*{_num(r)}).filter(x=>x%{_num(r)}===0);"
    ),
    lambda r: (
        f"type {_pascal(r)} = {{ ok: true; value: unknown }} | {{ ok: false; error: Error }}"
        " & { code?: number };"
    ),
    lambda r: f"async function {_camel(r)}<T>(x: Promise<T>): Promise<T> {{ return await x; }}",
    lambda r: (
        f"const {{ {_camel(r)}, {_camel(r)}: {_camel(r)}, ...rest }} = {{ a:1, b:2, c:3 }};"
        " const arr = [...Object.values(rest)];"
    ),
    lambda r: f"const {_camel(r)} = `{_camel(r)}-{_num(r)}-{_camel(r)}`;",
    lambda r: f"let {_camel(r)} = {_num(r)}; {_camel(r)} += {_num(r)}; {_camel(r)} -= {_num(r)};",
    lambda r: (
        f"const {_camel(r)} = ({_camel(r)}: number, {_camel(r)}: number) =>"
        f" (~{_camel(r)} & {_num(r)}) ^ ({_camel(r)} | {_num(r)});"
    ),
    lambda r: f"@{_pascal(r)}()\nclass {_pascal(r)} {{ {_camel(r)}!: string; }}",
    lambda r: f"import * as {_camel(r)} from '@app/{_camel(r)}';",
    lambda r: f"const {_camel(r)} = (x: number = {_num(r)}) => x * ({_num(r)} + {_num(r)}) % ({_num(r)} || 1);",
    lambda r: "const OPS = ['+=','-=','*=','/=','%=','**='];",
    lambda r: (
        f"const {_camel(r)} = ({_camel(r)}: number) => ({_num(r)} + {_num(r)}) * ({_camel(r)} ?? {_num(r)})"
        f" >= {_num(r)};"
    ),
)


def build_weight_table(config: Config, history: Mapping[str, CharacterStat] | None = None) -> dict[str, float]:
    """Return the selection weight of every character generation can favour."""
    config = clamp_config(config)
    weights: dict[str, float] = {}

    def add(chars: str, amount: float) -> None:
        for char in chars:
            weights[char] = weights.get(char, 0.0) + amount

    add(LETTERS, config.weights.letters / len(LETTERS))
    add(DIGITS, config.weights.numbers / len(DIGITS))
    add(PUNCTUATION, config.weights.punctuation / len(PUNCTUATION))
    boost = max(1.0, config.number_line_emphasis)
    add(NUMBER_LINE, config.weights.punctuation * boost / len(NUMBER_LINE))

    if config.emphasize_trouble and history:
        for entry in select_top_trouble(history, TROUBLE_MIN_ATTEMPTS, TROUBLE_LIMIT):
            bump = min(3.0, 1.0 + entry.error_rate * 4.0)
            weights[entry.char] = (weights.get(entry.char) or SEED_WEIGHT) * bump
    return weights


def score_template(text: str, weights: Mapping[str, float]) -> float:
    """Score a rendered line by the weight of the distinct symbols it contains."""
    score = 0.0
    for char in dict.fromkeys(text):
        if char.isalnum():
            continue
        weight = weights.get(char, 0.0)
        if char in NUMBER_LINE:
            weight *= NUMBER_LINE_BONUS
        score += weight
    return score + SCORE_EPSILON


def weighted_index(scores: Sequence[float], draw: float) -> int:
    """Return the index a draw in [0, 1) lands on in a cumulative-weight table."""
    cumulative = list(accumulate(scores))
    target = draw * cumulative[-1]
    return min(bisect.bisect_left(cumulative, target), len(cumulative) - 1)


def select_template(pool: Sequence[Template], weights: Mapping[str, float], rng: random.Random) -> str:
    """Render every template in `pool` and pick one line weighted by its score."""
    candidates = [template(rng) for template in pool]
    scores = [score_template(candidate, weights) for candidate in candidates]
    return candidates[weighted_index(scores, rng.random())]


class _ScanState(Enum):
    OUTSIDE = "outside"
    INSIDE = "inside"
    ESCAPED = "escaped"


def find_string_literal(line: str) -> tuple[int, int] | None:
    """Return (open, close) quote indices of the first terminated string literal.

    A backslash inside a literal escapes the next character. An opening quote
    with no matching close is skipped and scanning resumes after it.
    """
    start = 0
    while start < len(line):
        state = _ScanState.OUTSIDE
        quote = ""
        open_at = -1
        for index in range(start, len(line)):
            char = line[index]
            if state is _ScanState.OUTSIDE:
                if char in QUOTES:
                    state = _ScanState.INSIDE
                    quote = char
                    open_at = index
            elif state is _ScanState.ESCAPED:
                state = _ScanState.INSIDE
            elif char == "\\":
                state = _ScanState.ESCAPED
            elif char == quote:
                return (open_at, index)
        if open_at < 0:
            return None
        start = open_at + 1
    return None


def _number_line_run(rng: random.Random, low: int, high: int) -> str:
    return "".join(rng.choice(NUMBER_LINE) for _ in range(rng.randint(low, high)))


def inject_into_string(line: str, rng: random.Random) -> str | None:
    """Splice 1-3 number-line symbols into the first string literal, if any."""
    span = find_string_literal(line)
    if span is None:
        return None
    open_at, close_at = span
    content = line[open_at + 1 : close_at]
    offset = rng.randint(0, len(content))
    injected = content[:offset] + _number_line_run(rng, 1, 3) + content[offset:]
    return line[: open_at + 1] + injected + line[close_at:]


def emphasize_line(line: str, emphasis: float, rng: random.Random) -> str:
    """Sprinkle number-line symbols through a line; more of them as `emphasis` grows."""
    boost = max(1.0, emphasis)

    if rng.random() < min(0.9, 0.10 * boost):
        injected = inject_into_string(line, rng)
        if injected is not None:
            line = injected

    p_affix = min(0.6, 0.08 * boost)

    def affix(match: re.Match[str]) -> str:
        prefix = rng.choice(NUMBER_LINE) if rng.random() < p_affix else ""
        suffix = rng.choice(NUMBER_LINE) if rng.random() < p_affix else ""
        return prefix + match.group(0) + suffix

    line = _IDENTIFIER.sub(affix, line)

    p_edge = min(0.4, 0.05 * boost)
    if rng.random() < p_edge:
        line = rng.choice(NUMBER_LINE) + line
    if rng.random() < p_edge:
        line = line + rng.choice(NUMBER_LINE)

    if rng.random() < min(0.6, 0.12 * boost):
        line = f"{line} // {_number_line_run(rng, 2, 5)}"
    return line


def _is_break(char: str) -> bool:
    return char.isspace() or char in BREAK_CHARS


def wrap_bounds(text: str, min_width: int = MIN_LINE_WIDTH, max_width: int = MAX_LINE_WIDTH) -> list[str]:
    """Split one line into fragments of `min_width`..`max_width` characters.

    Cuts prefer a break character at or just before the cut, scanning back
    from the widest position that still leaves `min_width` characters for
    the remainder. A short trailing fragment is folded into the previous one
    when the joined fragment still fits.
    """
    min_width = max(1, min_width)
    max_width = max(min_width, max_width)
    segments: list[str] = []
    rest = text
    while len(rest) > max_width:
        limit = min(max_width, len(rest) - min_width)
        cut = -1
        for index in range(limit, min_width - 1, -1):
            if _is_break(rest[index]) or _is_break(rest[index - 1]):
                cut = index
                break
        if cut == -1:
            cut = limit
        kept = rest[:cut].rstrip()
        if kept:
            segments.append(kept)
        rest = rest[cut:].lstrip()
    if rest:
        segments.append(rest)

    if len(segments) >= 2:
        last, previous = segments[-1], segments[-2]
        if len(last) < min_width and len(previous) + 1 + len(last) <= max_width:
            segments[-2:] = [f"{previous} {last}"]
    return segments


def reflow(lines: Sequence[str], min_width: int = MIN_LINE_WIDTH, max_width: int = MAX_LINE_WIDTH) -> list[str]:
    """Wrap every non-blank line and keep at most one blank line between them."""
    normalized: list[str] = []
    for raw in lines:
        for line in raw.split("\n"):
            if not line.strip():
                if normalized and normalized[-1] != "":
                    normalized.append("")
                continue
            normalized.extend(wrap_bounds(line, min_width, max_width))
    while normalized and normalized[-1] == "":
        normalized.pop()
    return normalized


def generate_snippet(
    config: Config,
    history: Mapping[str, CharacterStat] | None = None,
    rng: random.Random | None = None,
) -> str:
    """Generate a practice snippet of at most `config.sprint_length` characters."""
    config = clamp_config(config)
    rng = rng if rng is not None else random.Random()
    weights = build_weight_table(config, history)

    lines: list[str] = []
    joined_length = -1
    while joined_length < config.sprint_length:
        line = select_template(TEMPLATES, weights, rng)
        if not line.endswith((";", "}")) and rng.random() < SEMICOLON_PROBABILITY:
            line += ";"
        line = emphasize_line(line, config.number_line_emphasis, rng)
        lines.append(line)
        joined_length += len(line) + 1
        if rng.random() < BLANK_LINE_PROBABILITY:
            lines.append("")
            joined_length += 1

    snippet = "\n".join(reflow(lines))[: config.sprint_length]
    logger.debug("Generated %d-character snippet from %d template lines", len(snippet), len(lines))
    return snippet
