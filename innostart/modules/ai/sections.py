"""SectionMapper: reconcile extracted or stored plan data with the six columns.

Every value handed to a consumer is a display-ready string. Structured values
are flattened into indented text; stored rows are normalized on every read,
including rows from before the per-column layout, which kept the whole plan as a
JSON object inside ``executive_summary``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import structlog

from innostart.models.enums import PlanSection
from innostart.modules.ai.extraction import (
    ExtractionResult,
    ExtractionSource,
    normalize_label,
    parse_amount,
)

logger = structlog.get_logger()

SECTION_NAMES: tuple[str, ...] = tuple(s.value for s in PlanSection)

_INDENT = "  "
_BULLET = "• "

# Normalized key → canonical column. Keys are normalized with ``_snake`` first,
# so ``marketingSales``, ``marketing_sales`` and ``MARKETING & SALES`` meet here.
SECTION_ALIASES: dict[str, str] = {
    "executive_summary": "executive_summary",
    "summary": "executive_summary",
    "overview": "executive_summary",
    "market_analysis": "market_analysis",
    "market": "market_analysis",
    "market_research": "market_analysis",
    "financial_projections": "financial_projections",
    "financial_projection": "financial_projections",
    "financials": "financial_projections",
    "financial_plan": "financial_projections",
    "marketing_strategy": "marketing_strategy",
    "marketing_sales": "marketing_strategy",
    "marketing_and_sales": "marketing_strategy",
    "marketing": "marketing_strategy",
    "marketing_plan": "marketing_strategy",
    "operations_plan": "operations_plan",
    "operations": "operations_plan",
    "operational_plan": "operations_plan",
    "risk_analysis": "risk_analysis",
    "risks": "risk_analysis",
    "risk_assessment": "risk_analysis",
    "risk_management": "risk_analysis",
}

# Keys of the monolithic JSON blob stored by the legacy whole-plan layout.
LEGACY_KEYS: dict[str, str] = {
    "executiveSummary": "executive_summary",
    "marketAnalysis": "market_analysis",
    "financialProjections": "financial_projections",
    "marketingSales": "marketing_strategy",
    "operationsPlan": "operations_plan",
    "riskAnalysis": "risk_analysis",
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _snake(key: str) -> str:
    return normalize_label(_CAMEL_BOUNDARY.sub(" ", key))


def canonical_section(key: str) -> str | None:
    """Resolve a model- or user-provided key to one of the six column names."""
    return SECTION_ALIASES.get(_snake(key))


def titleize(key: str) -> str:
    """``revenueProjections`` / ``revenue_projections`` → ``Revenue Projections``.

    Existing capitals are kept, so acronyms such as ``ROI`` survive.
    """
    spaced = _CAMEL_BOUNDARY.sub(" ", str(key)).replace("_", " ").replace("-", " ")
    words = [w for w in spaced.split(" ") if w]
    return " ".join(w[0].upper() + w[1:] for w in words)


# ── Flattening ────────────────────────────────────────────────────────────────


def _scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal):
        return format(value.normalize(), "f")
    return str(value)


def _format_mapping(obj: Mapping[str, Any], depth: int) -> str:
    pad = _INDENT * depth
    blocks: list[str] = []
    for key, value in obj.items():
        label = titleize(key)
        if isinstance(value, Mapping):
            body = _format_mapping(value, depth + 1)
            blocks.append(f"{pad}{label}:\n{body}" if body else f"{pad}{label}:")
        elif isinstance(value, (list, tuple)):
            body = _format_sequence(value, depth + 1)
            blocks.append(f"{pad}{label}:\n{body}" if body else f"{pad}{label}:")
        else:
            blocks.append(f"{pad}{label}: {_scalar(value)}")
    # Top-level entries are separated by a blank line, nested ones are not.
    return ("\n\n" if depth == 0 else "\n").join(blocks)


def _format_sequence(items: list[Any] | tuple[Any, ...], depth: int) -> str:
    pad = _INDENT * depth
    lines: list[str] = []
    for item in items:
        if isinstance(item, Mapping):
            body = _format_mapping(item, depth + 1)
            # First line of the nested block carries the bullet.
            lines.append(f"{pad}{_BULLET}{body[len(pad) + len(_INDENT):]}")
        elif isinstance(item, (list, tuple)):
            lines.append(f"{pad}{_BULLET}" + ", ".join(_scalar(i) for i in item))
        else:
            lines.append(f"{pad}{_BULLET}{_scalar(item)}")
    return "\n".join(lines)


def flatten(value: Any) -> str:
    """Render any section value as display text.

    Strings come back unchanged, so flattening is idempotent.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return _format_mapping(value, 0)
    if isinstance(value, (list, tuple)):
        return _format_sequence(value, 0)
    return _scalar(value)


def decode_stored(value: str | None) -> str:
    """Display text for one stored column.

    Columns written from a structured value hold serialized JSON; those are
    decoded and flattened. Anything else is returned as stored.
    """
    if not value:
        return ""
    stripped = value.strip()
    if stripped[:1] in ("{", "[") and stripped[-1:] in ("}", "]"):
        try:
            return flatten(json.loads(stripped))
        except ValueError:
            return value
    return value


def serialize_section(value: Any) -> str | None:
    """Storage form for a section value: JSON for structures, text otherwise."""
    if value is None:
        return None
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


# ── Whole-plan mapping ────────────────────────────────────────────────────────


def sections_from_mapping(data: Mapping[str, Any]) -> dict[str, Any]:
    """Pick the six canonical sections out of a model-provided mapping.

    The first key that resolves to a section wins; unknown keys are ignored.
    Values keep their shape (``financial_projections`` may stay a dict).
    """
    sections: dict[str, Any] = {name: None for name in SECTION_NAMES}
    for key, value in data.items():
        name = canonical_section(str(key))
        if name is not None and sections[name] in (None, ""):
            sections[name] = value
    return sections


def sections_from_extraction(result: ExtractionResult) -> dict[str, Any]:
    """Six canonical sections from a whole-plan extraction result.

    A completion with no usable structure keeps its raw text as the executive
    summary so the user still sees what the model produced.
    """
    if result.source is not ExtractionSource.NONE and isinstance(result.data, Mapping):
        return sections_from_mapping(result.data)

    sections: dict[str, Any] = {name: None for name in SECTION_NAMES}
    sections["executive_summary"] = result.raw_text.strip() or None
    return sections


# ── Read-time normalization ───────────────────────────────────────────────────


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def is_legacy_layout(row: Mapping[str, Any]) -> bool:
    """True when the whole plan is a JSON blob inside ``executive_summary``."""
    summary = row.get("executive_summary")
    if _is_blank(summary) or not str(summary).strip().startswith("{"):
        return False
    return all(_is_blank(row.get(name)) for name in SECTION_NAMES if name != "executive_summary")


def _legacy_sections(blob: str) -> dict[str, str]:
    sections = {name: "" for name in SECTION_NAMES}
    try:
        parsed = json.loads(blob)
    except ValueError:
        parsed = None

    if not isinstance(parsed, Mapping):
        logger.info("legacy_plan_blob_unparseable", blob_chars=len(blob))
        sections["executive_summary"] = blob
        return sections

    for key, value in parsed.items():
        name = LEGACY_KEYS.get(key) or canonical_section(key)
        if name is not None and not sections[name]:
            sections[name] = flatten(value)

    if not sections["executive_summary"] and isinstance(parsed.get("content"), str):
        sections["executive_summary"] = parsed["content"]
    return sections


def normalize_plan(row: Mapping[str, Any]) -> dict[str, str]:
    """The six display-ready section strings for a stored plan row."""
    if is_legacy_layout(row):
        return _legacy_sections(str(row["executive_summary"]).strip())
    return {name: decode_stored(row.get(name)) for name in SECTION_NAMES}


def split_legacy_plan(row: Mapping[str, Any]) -> dict[str, str | None] | None:
    """Per-column values for a legacy row, or None if the row is not legacy.

    Each column renders to the same display text as the blob did, so a single
    column can then be written without disturbing the other five.
    """
    if not is_legacy_layout(row):
        return None
    return {name: text or None for name, text in normalize_plan(row).items()}


# ── Ideas ─────────────────────────────────────────────────────────────────────

_IDEA_ALIASES: dict[str, str] = {
    "title": "title",
    "business_title": "title",
    "name": "title",
    "description": "description",
    "brief_description": "description",
    "industry": "industry",
    "sector": "industry",
    "target_market": "target_market",
    "initial_investment": "initial_investment",
    "initial_investment_required": "initial_investment",
    "investment": "initial_investment",
    "expected_revenue": "expected_revenue",
    "expected_monthly_revenue": "expected_revenue",
    "revenue": "expected_revenue",
    "success_probability": "success_probability",
}


def _idea_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in raw.items():
        name = _IDEA_ALIASES.get(_snake(str(key)))
        if name is not None and name not in fields:
            fields[name] = value
    return fields


def _text(value: Any, default: str) -> str:
    text = flatten(value).strip() if value is not None else ""
    return text or default


def ideas_from_extraction(result: ExtractionResult) -> list[dict[str, Any]]:
    """Persistable idea field dicts from an ``extract_ideas`` result.

    Figures are parsed but never range-checked against the requested budget;
    the prompt asks for in-range values and whatever the model returns is kept.
    """
    if result.source is ExtractionSource.NONE or not isinstance(result.data, list):
        return []

    ideas: list[dict[str, Any]] = []
    for raw in result.data:
        if not isinstance(raw, Mapping):
            continue
        fields = _idea_fields(raw)
        probability = parse_amount(fields.get("success_probability"))
        if probability is not None and 0 < probability < 1:
            # fraction of one, e.g. 0.85
            probability *= 100
        ideas.append(
            {
                "title": _text(fields.get("title"), "Untitled Business Idea")[:255],
                "description": _text(fields.get("description"), ""),
                "industry": _text(fields.get("industry"), "General")[:100],
                "target_market": _text(fields.get("target_market"), ""),
                "initial_investment": Decimal(str(parse_amount(fields.get("initial_investment")) or 0)),
                "expected_revenue": Decimal(str(parse_amount(fields.get("expected_revenue")) or 0)),
                "success_probability": (
                    int(round(min(100, max(0, probability)))) if probability is not None else 50
                ),
            }
        )
    return ideas
