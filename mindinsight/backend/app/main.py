from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .activity_engine import (
    average_mood_score,
    build_calendar_heatmap,
    build_streak_data,
    mood_distribution,
    next_milestone,
    streak_status,
)
from .aliases import friendly_assessment_label, normalize_assessment_type, normalize_assessment_types
from .models import (
    AssessmentHistoryEntry,
    AssessmentTemplate,
    MoodEntry,
    PlanModuleWithState,
    ProgressEntry,
)
from .scoring_engine import build_response_details, compute_scores
from .settings import (
    APP_VERSION,
    configure_logging,
    heatmap_days,
    is_dev_mode,
    local_timezone,
    local_today,
)
from .timeline_engine import (
    build_metric_summaries,
    build_timeline,
    entries_within_days,
    summarize_assessment_history,
    summarize_plan_progress,
)
from .trend_labels import delta_sentiment, is_higher_better, label_for_trend, trend_color

logger = logging.getLogger("mindinsight.api")

T = TypeVar("T")

app = FastAPI(title="MindInsight API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


class NormalizeTypesRequest(BaseModel):
    ids: List[str]


class ScoreRequest(BaseModel):
    template: Dict[str, Any]
    answers: Dict[str, Any] = Field(default_factory=dict)


class LabelRequest(BaseModel):
    assessmentType: str
    trend: Optional[str] = None
    change: Optional[float] = None


class HistoryRequest(BaseModel):
    history: List[Dict[str, Any]] = Field(default_factory=list)
    insights: Optional[Dict[str, Any]] = None


class MoodEntriesRequest(BaseModel):
    entries: List[Dict[str, Any]] = Field(default_factory=list)
    days: Optional[int] = Field(None, ge=1, le=366)
    today: Optional[date] = None


class ProgressRequest(BaseModel):
    entries: List[Dict[str, Any]] = Field(default_factory=list)
    days: int = Field(30, ge=1, le=366)
    today: Optional[date] = None


class PlanProgressRequest(BaseModel):
    modules: List[Dict[str, Any]] = Field(default_factory=list)


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    logger.info("MindInsight API %s starting (dev_mode=%s)", APP_VERSION, is_dev_mode())


def parse_payload(parser: Callable[[Any], T], payload: Any) -> T:
    try:
        return parser(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def parse_entries(parser: Callable[[Any], Optional[T]], payloads: List[Dict[str, Any]]) -> List[T]:
    parsed = [parse_payload(parser, payload) for payload in payloads]
    skipped = sum(1 for item in parsed if item is None)
    if skipped:
        logger.debug("Skipped %d entries without a usable timestamp or value", skipped)
    return [item for item in parsed if item is not None]


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "version": APP_VERSION, "dev_mode": is_dev_mode()}


@app.get("/meta")
def meta() -> dict:
    payload = {"version": APP_VERSION, "dev_mode": is_dev_mode()}
    if is_dev_mode():
        zone = local_timezone()
        payload["timezone"] = str(zone) if zone else "local"
        payload["heatmap_days"] = heatmap_days()
    return payload


@app.post("/assessments/normalize-type")
def normalize_types(payload: NormalizeTypesRequest) -> dict:
    return {"types": normalize_assessment_types(payload.ids)}


@app.post("/assessments/score")
def score_assessment(payload: ScoreRequest) -> dict:
    template = parse_payload(AssessmentTemplate.from_dict, payload.template)
    score = compute_scores(template, payload.answers)
    details = build_response_details(template, payload.answers)
    logger.info(
        "Scored %s: raw=%s normalized=%s",
        template.assessment_type or "unknown",
        score.raw_score,
        score.normalized_score,
    )
    return {
        "assessmentType": normalize_assessment_type(template.assessment_type),
        "score": score.to_dict(),
        "responses": [detail.to_dict() for detail in details],
    }


@app.post("/assessments/labels")
def assessment_labels(payload: LabelRequest) -> dict:
    canonical = normalize_assessment_type(payload.assessmentType)
    return {
        "assessmentType": canonical,
        "label": friendly_assessment_label(canonical),
        "higherIsBetter": is_higher_better(canonical),
        "trendLabel": label_for_trend(canonical, payload.trend) if payload.trend else None,
        "trendColor": trend_color(payload.trend),
        "deltaSentiment": delta_sentiment(canonical, payload.change).value,
    }


@app.post("/insights/history")
def insights_history(payload: HistoryRequest) -> dict:
    history = parse_entries(AssessmentHistoryEntry.from_dict, payload.history)
    summaries = summarize_assessment_history(history, payload.insights)
    return {
        "byType": {key: summary.to_dict() for key, summary in summaries.items()},
        "timeline": [row.to_dict() for row in build_timeline(history)],
    }


@app.post("/activity/streak")
def activity_streak(payload: MoodEntriesRequest) -> dict:
    entries = parse_entries(MoodEntry.from_dict, payload.entries)
    today = payload.today or local_today()
    streak = build_streak_data(entries, today)
    return {
        "streak": streak.to_dict(),
        "status": streak_status(streak.last_check_in_date, today),
        "nextMilestone": next_milestone(streak.current_streak),
        "averageMood": round(average_mood_score(entries), 2),
    }


@app.post("/activity/heatmap")
def activity_heatmap(payload: MoodEntriesRequest) -> dict:
    entries = parse_entries(MoodEntry.from_dict, payload.entries)
    days = payload.days or heatmap_days()
    cells = build_calendar_heatmap(entries, days, payload.today or local_today())
    return {
        "days": days,
        "cells": [cell.to_dict() for cell in cells],
        "distribution": mood_distribution(entries),
    }


@app.post("/progress/summary")
def progress_summary(payload: ProgressRequest) -> dict:
    entries = parse_entries(ProgressEntry.from_dict, payload.entries)
    in_range = entries_within_days(entries, payload.days, payload.today or local_today())
    summaries = build_metric_summaries(in_range, entries)
    return {
        "days": payload.days,
        "usedFallback": not in_range and bool(entries),
        "metrics": {key: summary.to_dict() for key, summary in summaries.items()},
    }


@app.post("/plans/progress")
def plan_progress(payload: PlanProgressRequest) -> dict:
    modules = [parse_payload(PlanModuleWithState.from_dict, item) for item in payload.modules]
    return summarize_plan_progress(modules).to_dict()
