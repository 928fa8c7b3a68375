"""ResponseExtractor: recover structured data from free-form completions.

Models asked for JSON often wrap it in prose, append commentary, or ignore the
instruction entirely. ``extract`` tries, in order:

1. strict: capture from the first ``[``/``{`` to the last matching closer and
   ``json.loads`` it;
2. heuristic: walk the lines and collect ``Header`` → body text;
3. none: an explicit empty result.

Nothing here raises on malformed content. Callers branch on ``result.source``.
"""

from __future__ import annotations

import enum
import json
import re
from typing import Any, Literal

from pydantic import BaseModel

Prefer = Literal["array", "object"]

_BRACKETS: dict[str, tuple[str, str]] = {
    "array": ("[", "]"),
    "object": ("{", "}"),
}


class ExtractionSource(str, enum.Enum):
    STRICT = "strict"
    HEURISTIC = "heuristic"
    NONE = "none"


class ExtractionResult(BaseModel):
    """Tagged extraction outcome.

    ``data`` is the parsed JSON value for ``strict``, a ``{label: text}`` dict
    for ``heuristic`` (a list of idea dicts for ``extract_ideas``), and None
    for ``none``.
    """

    source: ExtractionSource
    data: Any = None
    raw_text: str = ""

    @property
    def degraded(self) -> bool:
        return self.source is not ExtractionSource.STRICT

    @classmethod
    def empty(cls, raw_text: str = "") -> "ExtractionResult":
        return cls(source=ExtractionSource.NONE, data=None, raw_text=raw_text)


# ── Strict ────────────────────────────────────────────────────────────────────


def _strict_candidates(text: str, prefer: Prefer | None) -> list[str]:
    found: list[tuple[bool, int, str]] = []
    for kind, (opener, closer) in _BRACKETS.items():
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            found.append((kind != prefer if prefer else False, start, text[start : end + 1]))
    found.sort(key=lambda c: (c[0], c[1]))
    return [snippet for _, _, snippet in found]


def extract_strict(text: str, prefer: Prefer | None = None) -> Any | None:
    """Parse the greedy bracketed span of ``text``; None when nothing parses."""
    for snippet in _strict_candidates(text, prefer):
        try:
            return json.loads(snippet)
        except ValueError:
            continue
    return None


# ── Heuristic ─────────────────────────────────────────────────────────────────

_MD_HEADING = re.compile(r"^#{1,6}\s+(?P<label>.+?)\s*#*$")
_NUMBERED = re.compile(r"^\**\s*\d{1,2}[.)]\s+(?P<label>.+?)$")
_COLON = re.compile(r"^\**(?P<label>[A-Z][^:]{0,60}?)\**\s*:\s*\**\s*(?P<inline>.*)$")
_BOLD = re.compile(r"^\*\*(?P<label>[^*]+?)\*\*:?$")
_WORD = re.compile(r"[A-Za-z][A-Za-z'-]*")
_LEADING_NUMBER = re.compile(r"^\d{1,2}[.)]\s*")


def _clean_label(label: str) -> str:
    label = label.strip().strip("*").strip()
    label = _LEADING_NUMBER.sub("", label)
    return label.rstrip(":").strip().strip("*").strip()


def _is_title(label: str, sentence_case: bool = False) -> bool:
    """Header labels are capitalized: ALL CAPS or Title Case, at most 8 words.

    With ``sentence_case`` only the first word needs a capital, as in
    ``"1. Market analysis"``.
    """
    words = _WORD.findall(label)
    if not words or len(words) > 8 or label.endswith("."):
        return False
    if not words[0][0].isupper():
        return False
    return sentence_case or all(w[0].isupper() for w in words if len(w) > 3)


def normalize_label(label: str) -> str:
    """``"3. MARKET ANALYSIS:"`` → ``"market_analysis"``."""
    return re.sub(r"[^a-z0-9]+", "_", _clean_label(label).lower()).strip("_")


def _match_header(line: str) -> tuple[str, str] | None:
    """Return ``(label, inline_text)`` when ``line`` opens a new section."""
    m = _MD_HEADING.match(line)
    if m:
        label = _clean_label(m.group("label"))
        return (label, "") if label[:1].isupper() else None

    m = _BOLD.match(line)
    if m:
        label = _clean_label(m.group("label"))
        return (label, "") if _is_title(label) else None

    m = _NUMBERED.match(line)
    if m:
        label, _, inline = m.group("label").partition(":")
        label = _clean_label(label)
        if len(label) <= 80 and _is_title(label, sentence_case=True):
            return label, inline.strip().strip("*").strip()
        return None

    m = _COLON.match(line)
    if m:
        label = _clean_label(m.group("label"))
        inline = m.group("inline").strip().strip("*").strip()
        # "Tourism: 100,000 visitors" is body text; "Market Analysis: ..." opens a section
        if _is_title(label) and (not inline or len(_WORD.findall(label)) >= 2):
            return label, inline
    return None


def extract_heuristic(text: str) -> dict[str, str]:
    """Map normalized header labels to the body lines that follow them.

    Text before the first header is dropped, as are headers with no body.
    Repeated headers append to the same key.
    """
    sections: dict[str, list[str]] = {}
    current: str | None = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("```"):
            continue
        header = _match_header(line)
        if header is not None:
            label, inline = header
            key = normalize_label(label)
            if not key:
                continue
            current = key
            sections.setdefault(current, [])
            if inline:
                sections[current].append(inline)
        elif current is not None:
            sections[current].append(line)

    return {key: "\n".join(body) for key, body in sections.items() if body}


def extract(text: str | None, prefer: Prefer | None = None) -> ExtractionResult:
    """Run the strict → heuristic → none chain over a completion."""
    text = text or ""
    value = extract_strict(text, prefer)
    if value is not None:
        return ExtractionResult(source=ExtractionSource.STRICT, data=value, raw_text=text)

    sections = extract_heuristic(text)
    if sections:
        return ExtractionResult(source=ExtractionSource.HEURISTIC, data=sections, raw_text=text)

    return ExtractionResult.empty(text)


# ── Idea lists ────────────────────────────────────────────────────────────────

_IDEA_START = re.compile(
    r"^(?:#{1,6}\s*)?\**\s*(?:\d{1,2}[.)]\s+|(?:business\s+)?title\s*:\s*)(?P<title>.+)$",
    re.IGNORECASE,
)
_TITLE_PREFIX = re.compile(r"^(?:business\s+)?(?:title|idea)\s*:\s*", re.IGNORECASE)
_IDEA_FIELD = re.compile(
    r"^[-*•\s]*\**(?P<key>[A-Za-z][A-Za-z /()]{1,40}?)\**\s*:\s*\**\s*(?P<value>.*)$"
)
_AMOUNT = re.compile(r"\d{1,3}(?:[,\s]\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?")


def parse_amount(value: Any) -> int | float | None:
    """Read the first figure in ``value``: ``"150,000 RWF"`` → ``150000``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if not isinstance(value, str):
        return None
    m = _AMOUNT.search(value)
    if not m:
        return None
    number = float(re.sub(r"[,\s]", "", m.group()))
    return int(number) if number.is_integer() else number


def _idea_field(key: str) -> str | None:
    key = key.lower()
    if "description" in key:
        return "description"
    if "target" in key or "market" in key:
        return "targetMarket"
    if "industry" in key or "sector" in key:
        return "industry"
    if "investment" in key:
        return "initialInvestment"
    if "revenue" in key:
        return "expectedRevenue"
    if "probability" in key:
        return "successProbability"
    if "factor" in key:
        return "successFactors"
    if "challenge" in key:
        return "challenges"
    return None


def _parse_idea_blocks(text: str) -> list[dict[str, Any]]:
    ideas: list[dict[str, Any]] = []
    current: dict[str, Any] = {}

    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue

        start = _IDEA_START.match(line)
        if start:
            if current:
                ideas.append(current)
            title = _TITLE_PREFIX.sub("", start.group("title").strip().strip("*").strip())
            current = {"title": title.strip().strip("*").strip()}
            continue

        field = _IDEA_FIELD.match(line)
        if not field or not current:
            continue
        name = _idea_field(field.group("key"))
        value = field.group("value").strip().strip("*").strip()
        if name is None or not value:
            continue
        if name in ("initialInvestment", "expectedRevenue", "successProbability"):
            current[name] = parse_amount(value) or 0
        else:
            current[name] = value

    if current:
        ideas.append(current)
    return ideas


def extract_ideas(text: str | None) -> ExtractionResult:
    """Extract a list of idea dicts; strict JSON first, then idea blocks."""
    text = text or ""
    value = extract_strict(text, prefer="array")
    if isinstance(value, dict):
        nested = value.get("ideas")
        value = nested if isinstance(nested, list) else [value]
    if isinstance(value, list):
        ideas = [item for item in value if isinstance(item, dict)]
        if ideas:
            return ExtractionResult(source=ExtractionSource.STRICT, data=ideas, raw_text=text)

    blocks = _parse_idea_blocks(text)
    if blocks:
        return ExtractionResult(source=ExtractionSource.HEURISTIC, data=blocks, raw_text=text)

    return ExtractionResult.empty(text)
