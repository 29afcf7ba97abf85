from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Optional, Union

from .models import DeltaSentiment, Trend

HIGHER_SCORE_BETTER_PATTERNS = (
    "emotionalintelligence",
    "teiquesf",
    "personality",
    "personalityminiipip",
)

TREND_LABELS: Mapping[Trend, str] = MappingProxyType({
    Trend.IMPROVING: "Improving",
    Trend.STABLE: "Stable",
    Trend.BASELINE: "Baseline",
    Trend.MIXED: "Mixed",
})

TREND_COLORS: Mapping[Trend, str] = MappingProxyType({
    Trend.IMPROVING: "emerald",
    Trend.DECLINING: "rose",
    Trend.STABLE: "blue",
    Trend.MIXED: "amber",
})
DEFAULT_TREND_COLOR = "slate"


def sanitize_type(assessment_type: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]", "", (assessment_type or "").lower())


def is_higher_better(assessment_type: Optional[str]) -> bool:
    normalized = sanitize_type(assessment_type)
    if not normalized:
        return False
    return any(pattern in normalized for pattern in HIGHER_SCORE_BETTER_PATTERNS)


def _as_trend(trend: Union[Trend, str, None]) -> Optional[Trend]:
    if isinstance(trend, Trend):
        return trend
    try:
        return Trend(trend)
    except ValueError:
        return None


def label_for_trend(assessment_type: Optional[str], trend: Union[Trend, str, None]) -> str:
    resolved = _as_trend(trend)
    if resolved is None:
        return str(trend or "")
    if resolved is Trend.DECLINING:
        return "Declining" if is_higher_better(assessment_type) else "Worsening"
    return TREND_LABELS[resolved]


def trend_color(trend: Union[Trend, str, None]) -> str:
    resolved = _as_trend(trend)
    return TREND_COLORS.get(resolved, DEFAULT_TREND_COLOR)


def delta_sentiment(assessment_type: Optional[str], change: Optional[float]) -> DeltaSentiment:
    if change is None or change == 0:
        return DeltaSentiment.NEUTRAL
    if (change > 0) == is_higher_better(assessment_type):
        return DeltaSentiment.POSITIVE
    return DeltaSentiment.NEGATIVE
