from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .activity_engine import to_day_bucket
from .aliases import normalize_assessment_type
from .models import (
    AssessmentHistoryEntry,
    AssessmentTypeSummary,
    MetricSummary,
    PlanModuleWithState,
    PlanProgress,
    ProgressEntry,
    TimelineRow,
    Trend,
    round_half_up,
)
from .settings import local_today
from .trend_labels import is_higher_better

logger = logging.getLogger("mindinsight.timeline")


def build_timeline(history: Sequence[AssessmentHistoryEntry]) -> List[TimelineRow]:
    """One row per calendar date; the latest completion of each type that day wins.

    ``overall`` is the mean of that row's own type scores.
    """
    rows: Dict[date, TimelineRow] = {}
    for entry in sorted(history, key=lambda item: item.completed_at):
        day = to_day_bucket(entry.completed_at)
        row = rows.get(day)
        if row is None:
            row = rows[day] = TimelineRow(date=day.isoformat(), first_completed_at=entry.completed_at)
        row.scores[normalize_assessment_type(entry.assessment_type)] = round_half_up(entry.score, 1)
    return [rows[day] for day in sorted(rows)]


def metric_key(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (name or "").lower())


def entries_within_days(
    entries: Sequence[ProgressEntry],
    days: int,
    today: Optional[date] = None,
) -> List[ProgressEntry]:
    today = today or local_today()
    cutoff = today - timedelta(days=max(days, 1) - 1)
    return [entry for entry in entries if to_day_bucket(entry.date) >= cutoff]


def build_metric_summaries(
    filtered_entries: Sequence[ProgressEntry],
    fallback_entries: Sequence[ProgressEntry],
) -> Dict[str, MetricSummary]:
    """Latest/previous/change/average per metric.

    An empty time-range selection falls back to the full entry set so a
    summary still exists.
    """
    source = filtered_entries if filtered_entries else fallback_entries
    grouped: Dict[str, List[ProgressEntry]] = {}
    for entry in source:
        key = metric_key(entry.metric)
        if not key:
            logger.debug("Skipping progress entry with empty metric name")
            continue
        grouped.setdefault(key, []).append(entry)

    summaries: Dict[str, MetricSummary] = {}
    for key, group in grouped.items():
        ordered = sorted(group, key=lambda item: item.date)
        latest = ordered[-1]
        previous = ordered[-2] if len(ordered) > 1 else None
        summaries[key] = MetricSummary(
            metric=latest.metric,
            latest=latest.value,
            previous=previous.value if previous else None,
            change=latest.value - previous.value if previous else None,
            average=sum(item.value for item in ordered) / len(ordered),
            count=len(ordered),
            latest_date=latest.date.date().isoformat(),
        )
    return summaries


def _insights_by_type(insights: Optional[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
    if not isinstance(insights, Mapping):
        return {}
    by_type = insights.get("byType") or insights.get("by_type") or {}
    if not isinstance(by_type, Mapping):
        return {}
    return {
        normalize_assessment_type(key): value
        for key, value in by_type.items()
        if isinstance(value, Mapping)
    }


def _dedupe(history: Sequence[AssessmentHistoryEntry]) -> List[AssessmentHistoryEntry]:
    seen = set()
    unique: List[AssessmentHistoryEntry] = []
    for entry in history:
        key = (
            normalize_assessment_type(entry.assessment_type),
            entry.completed_at.replace(microsecond=0),
            entry.score,
            entry.raw_score,
        )
        if key in seen:
            continue
        seen.add(key)
        unique.append(entry)
    return unique


def summarize_assessment_history(
    history: Sequence[AssessmentHistoryEntry],
    insights: Optional[Mapping[str, Any]] = None,
) -> Dict[str, AssessmentTypeSummary]:
    external = _insights_by_type(insights)
    grouped: Dict[str, List[AssessmentHistoryEntry]] = {}
    for entry in _dedupe(history):
        grouped.setdefault(normalize_assessment_type(entry.assessment_type), []).append(entry)

    summaries: Dict[str, AssessmentTypeSummary] = {}
    for assessment_type, records in grouped.items():
        records.sort(key=lambda item: item.completed_at, reverse=True)
        latest = records[0]
        previous = records[1] if len(records) > 1 else None
        scores = [record.score for record in records]
        best = max(scores) if is_higher_better(assessment_type) else min(scores)

        supplied = external.get(assessment_type, {})
        try:
            trend = Trend(supplied.get("trend"))
        except ValueError:
            trend = Trend.BASELINE
        recommendations = supplied.get("recommendations")
        if isinstance(recommendations, str):
            recommendations = [recommendations]
        elif not isinstance(recommendations, (list, tuple)):
            recommendations = []

        summaries[assessment_type] = AssessmentTypeSummary(
            latest_score=latest.score,
            previous_score=previous.score if previous else None,
            change=latest.score - previous.score if previous else None,
            average_score=round_half_up(sum(scores) / len(scores), 1),
            best_score=best,
            trend=trend,
            interpretation=supplied.get("interpretation") or latest.interpretation,
            recommendations=[str(item) for item in recommendations],
            last_completed_at=latest.completed_at,
            history_count=len(records),
        )
    return summaries


def summarize_plan_progress(modules: Sequence[PlanModuleWithState]) -> PlanProgress:
    total = len(modules)
    completed = sum(1 for module in modules if module.completed)
    in_progress = sum(1 for module in modules if module.started and not module.completed)
    overall = int(round_half_up(completed / total * 100, 0)) if total else 0
    return PlanProgress(
        completed=completed,
        in_progress=in_progress,
        not_started=total - completed - in_progress,
        total=total,
        overall_progress=overall,
    )
