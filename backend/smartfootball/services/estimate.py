"""Parse the language model's JSON into a typed estimate.

The payload is untrusted: every field is checked for presence and type, and
numeric values are clamped into their plausible range. A payload that cannot
be salvaged becomes an ``EstimateRejected`` value rather than an exception so
the caller can count it and move on.
"""

import math
from dataclasses import dataclass, field
from typing import Any

XG_MIN, XG_MAX = 0.1, 6.0
CONFIDENCE_MIN, CONFIDENCE_MAX = 30, 95
WINNER_LABELS = frozenset({"home", "draw", "away"})


@dataclass(frozen=True)
class MatchEstimate:
    home_xg: float
    away_xg: float
    confidence_score: int
    advisory_winner: str | None = None
    analysis: str = ""
    key_facts: list[str] = field(default_factory=list)
    seo_title: str = ""
    meta_description: str = ""


@dataclass(frozen=True)
class EstimateRejected:
    reason: str


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _number(payload: dict, key: str) -> float | None:
    value = payload.get(key)
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def _text(payload: dict, key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


def parse_estimate(payload: Any) -> MatchEstimate | EstimateRejected:
    if not isinstance(payload, dict):
        return EstimateRejected(f"expected a JSON object, got {type(payload).__name__}")

    home_xg = _number(payload, "homeXG")
    away_xg = _number(payload, "awayXG")
    if home_xg is None or away_xg is None:
        return EstimateRejected(
            f"unusable expected goals: homeXG={payload.get('homeXG')!r} "
            f"awayXG={payload.get('awayXG')!r}"
        )

    confidence = _number(payload, "confidenceScore")
    if confidence is None:
        return EstimateRejected(
            f"unusable confidenceScore: {payload.get('confidenceScore')!r}"
        )

    winner = _text(payload, "predictedWinner").lower() or None
    if winner not in WINNER_LABELS:
        winner = None

    raw_facts = payload.get("keyFacts")
    key_facts = (
        [f.strip() for f in raw_facts if isinstance(f, str) and f.strip()]
        if isinstance(raw_facts, list)
        else []
    )

    return MatchEstimate(
        home_xg=round(_clamp(home_xg, XG_MIN, XG_MAX), 2),
        away_xg=round(_clamp(away_xg, XG_MIN, XG_MAX), 2),
        confidence_score=int(round(_clamp(confidence, CONFIDENCE_MIN, CONFIDENCE_MAX))),
        advisory_winner=winner,
        analysis=_text(payload, "analysis"),
        key_facts=key_facts,
        seo_title=_text(payload, "seoTitle"),
        meta_description=_text(payload, "metaDescription"),
    )
