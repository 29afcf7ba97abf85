from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .bands import InterpretationBand, parse_bands
from .settings import local_timezone


class UiType(str, Enum):
    LIKERT = "likert"
    BINARY = "binary"
    MULTIPLE_CHOICE = "multiple-choice"


class ContentType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    ARTICLE = "article"
    PLAYLIST = "playlist"


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"
    BASELINE = "baseline"
    MIXED = "mixed"


class DeltaSentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class MoodLabel(str, Enum):
    GREAT = "Great"
    GOOD = "Good"
    OKAY = "Okay"
    STRUGGLING = "Struggling"
    ANXIOUS = "Anxious"


def _pick(payload: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


def _require_mapping(payload: Any, kind: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValueError(f"{kind} payload must be an object")
    return payload


def _as_list(value: Any) -> List[Any]:
    """Sequence fields of a payload; anything that is not a list reads as empty."""
    return list(value) if isinstance(value, (list, tuple)) else []


def _parse_enum(enum_cls, value: Any):
    try:
        return enum_cls(value)
    except ValueError:
        return None


def to_number(value: Any) -> Optional[float]:
    """Numeric reading of an option value or score; None when not numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def format_option_value(value: Union[int, float, str, None]) -> str:
    """Stringify an option value the way answers are stored (3.0 -> "3")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if value is None:
        return ""
    return str(value)


def round_half_up(value: float, precision: int = 1) -> float:
    factor = 10 ** precision
    return math.floor(value * factor + 0.5) / factor


def parse_datetime_safe(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp into a naive local datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo:
        parsed = parsed.astimezone(tz=local_timezone()).replace(tzinfo=None)
    return parsed


@dataclass(frozen=True)
class Option:
    id: str
    value: Union[int, float, str, None]
    text: str
    order: int

    @property
    def numeric_value(self) -> float:
        number = to_number(self.value)
        return number if number is not None else float(self.order - 1)

    @classmethod
    def from_dict(cls, payload: Any, position: int = 0) -> "Option":
        data = _require_mapping(payload, "option")
        try:
            order = int(_pick(data, "order", default=position + 1))
        except (TypeError, ValueError):
            order = position + 1
        return cls(
            id=str(_pick(data, "id", default=f"opt-{position + 1}")),
            value=_pick(data, "value"),
            text=str(_pick(data, "text", "label", default="")),
            order=order,
        )


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    options: List[Option] = field(default_factory=list)
    response_type: Optional[str] = None
    ui_type: Optional[UiType] = None
    reverse_scored: bool = False
    domain: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> "Question":
        data = _require_mapping(payload, "question")
        options = [Option.from_dict(item, index) for index, item in enumerate(_as_list(_pick(data, "options")))]
        return cls(
            id=str(_pick(data, "id", default="")),
            text=str(_pick(data, "text", "prompt", default="")),
            options=options,
            response_type=_pick(data, "responseType", "response_type"),
            ui_type=_parse_enum(UiType, _pick(data, "uiType", "ui_type")),
            reverse_scored=bool(_pick(data, "reverseScored", "reverse_scored", default=False)),
            domain=_pick(data, "domain"),
        )


@dataclass(frozen=True)
class Domain:
    id: str
    label: str
    items: List[str] = field(default_factory=list)
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    interpretation_bands: List[InterpretationBand] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "Domain":
        data = _require_mapping(payload, "domain")
        domain_id = str(_pick(data, "id", "label", default=""))
        return cls(
            id=domain_id,
            label=str(_pick(data, "label", default=domain_id)),
            items=[str(item) for item in _as_list(_pick(data, "items"))],
            min_score=to_number(_pick(data, "minScore", "min_score")),
            max_score=to_number(_pick(data, "maxScore", "max_score")),
            interpretation_bands=parse_bands(_pick(data, "interpretationBands", "interpretation_bands")),
        )


@dataclass(frozen=True)
class ScoringScheme:
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    interpretation_bands: List[InterpretationBand] = field(default_factory=list)
    reverse_scored: frozenset = frozenset()
    domains: List[Domain] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "ScoringScheme":
        data = _require_mapping(payload or {}, "scoring")
        return cls(
            min_score=to_number(_pick(data, "minScore", "min_score")),
            max_score=to_number(_pick(data, "maxScore", "max_score")),
            interpretation_bands=parse_bands(_pick(data, "interpretationBands", "interpretation_bands")),
            reverse_scored=frozenset(str(item) for item in _as_list(_pick(data, "reverseScored", "reverse_scored"))),
            domains=[Domain.from_dict(item) for item in _as_list(_pick(data, "domains"))],
        )


@dataclass(frozen=True)
class AssessmentTemplate:
    assessment_type: str
    title: str = ""
    description: str = ""
    estimated_time: Optional[str] = None
    scoring: ScoringScheme = field(default_factory=ScoringScheme)
    questions: List[Question] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> "AssessmentTemplate":
        data = _require_mapping(payload, "template")
        estimated = _pick(data, "estimatedTime", "estimated_time")
        return cls(
            assessment_type=str(_pick(data, "assessmentType", "assessment_type", default="")),
            title=str(_pick(data, "title", default="")),
            description=str(_pick(data, "description", default="")),
            estimated_time=str(estimated) if estimated is not None else None,
            scoring=ScoringScheme.from_dict(_pick(data, "scoring", default={})),
            questions=[Question.from_dict(item) for item in _as_list(_pick(data, "questions"))],
        )


@dataclass(frozen=True)
class CategoryScore:
    raw: float
    normalized: float
    interpretation: Optional[str] = None


@dataclass(frozen=True)
class ComputedScore:
    raw_score: float
    normalized_score: float
    min_score: float
    max_score: float
    interpretation: Optional[str]
    category_breakdown: Dict[str, CategoryScore]

    def to_dict(self) -> dict:
        return {
            "rawScore": self.raw_score,
            "normalizedScore": self.normalized_score,
            "minScore": self.min_score,
            "maxScore": self.max_score,
            "interpretation": self.interpretation,
            "categoryBreakdown": {key: asdict(value) for key, value in self.category_breakdown.items()},
        }


@dataclass(frozen=True)
class ResponseDetail:
    question_id: str
    question_text: str
    answer_label: str
    answer_value: str
    answer_score: float

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "questionText": self.question_text,
            "answerLabel": self.answer_label,
            "answerValue": self.answer_value,
            "answerScore": self.answer_score,
        }


@dataclass(frozen=True)
class AssessmentHistoryEntry:
    id: str
    assessment_type: str
    score: float
    completed_at: datetime
    interpretation: Optional[str] = None
    change_from_previous: Optional[float] = None
    trend: Optional[Trend] = None
    responses: Optional[Dict[str, Any]] = None
    raw_score: Optional[float] = None
    max_score: Optional[float] = None
    category_breakdown: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["AssessmentHistoryEntry"]:
        """Parse one completion; None when it has no usable score or timestamp."""
        data = _require_mapping(payload, "history entry")
        completed_at = parse_datetime_safe(_pick(data, "completedAt", "completed_at"))
        score = to_number(_pick(data, "score"))
        if completed_at is None or score is None:
            return None
        return cls(
            id=str(_pick(data, "id", default="")),
            assessment_type=str(_pick(data, "assessmentType", "assessment_type", default="")),
            score=score,
            completed_at=completed_at,
            interpretation=_pick(data, "interpretation"),
            change_from_previous=to_number(_pick(data, "changeFromPrevious", "change_from_previous")),
            trend=_parse_enum(Trend, _pick(data, "trend")),
            responses=_pick(data, "responses"),
            raw_score=to_number(_pick(data, "rawScore", "raw_score")),
            max_score=to_number(_pick(data, "maxScore", "max_score")),
            category_breakdown=_pick(data, "categoryBreakdown", "category_breakdown"),
        )


@dataclass(frozen=True)
class AssessmentTypeSummary:
    latest_score: float
    previous_score: Optional[float]
    change: Optional[float]
    average_score: float
    best_score: float
    trend: Trend
    interpretation: Optional[str]
    recommendations: List[str]
    last_completed_at: datetime
    history_count: int

    def to_dict(self) -> dict:
        return {
            "latestScore": self.latest_score,
            "previousScore": self.previous_score,
            "change": self.change,
            "averageScore": self.average_score,
            "bestScore": self.best_score,
            "trend": self.trend.value,
            "interpretation": self.interpretation,
            "recommendations": list(self.recommendations),
            "lastCompletedAt": self.last_completed_at.isoformat(),
            "historyCount": self.history_count,
        }


@dataclass(frozen=True)
class MoodEntry:
    mood: str
    created_at: datetime
    notes: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["MoodEntry"]:
        data = _require_mapping(payload, "mood entry")
        created_at = parse_datetime_safe(_pick(data, "createdAt", "created_at", "date"))
        if created_at is None:
            return None
        entry_id = _pick(data, "id")
        return cls(
            mood=str(_pick(data, "mood", default="")),
            created_at=created_at,
            notes=_pick(data, "notes"),
            id=str(entry_id) if entry_id is not None else None,
        )


@dataclass(frozen=True)
class ProgressEntry:
    metric: str
    value: float
    date: datetime
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["ProgressEntry"]:
        data = _require_mapping(payload, "progress entry")
        when = parse_datetime_safe(_pick(data, "date", "createdAt", "created_at"))
        value = to_number(_pick(data, "value"))
        if when is None or value is None:
            return None
        return cls(
            metric=str(_pick(data, "metric", default="")),
            value=value,
            date=when,
            notes=_pick(data, "notes"),
        )


@dataclass(frozen=True)
class PlanModuleWithState:
    id: str
    title: str
    content_type: Optional[ContentType] = None
    started: bool = False
    completed: bool = False
    progress: float = 0.0

    @classmethod
    def from_dict(cls, payload: Any) -> "PlanModuleWithState":
        data = _require_mapping(payload, "plan module")
        state = _pick(data, "userState", "user_state")
        if not isinstance(state, Mapping):
            state = None
        progress = to_number(state.get("progress")) if state is not None else None
        return cls(
            id=str(_pick(data, "id", default="")),
            title=str(_pick(data, "title", default="")),
            content_type=_parse_enum(ContentType, _pick(data, "type", "contentType", "content_type")),
            started=state is not None,
            completed=bool(state is not None and state.get("completed")),
            progress=progress or 0.0,
        )


@dataclass(frozen=True)
class StreakData:
    current_streak: int
    longest_streak: int
    total_check_ins: int
    this_week_check_ins: int
    last_check_in_date: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalCheckIns": self.total_check_ins,
            "thisWeekCheckIns": self.this_week_check_ins,
            "lastCheckInDate": self.last_check_in_date,
        }


@dataclass(frozen=True)
class HeatmapCell:
    date: str
    mood: Optional[str]
    weekday: int
    week_index: int

    def to_dict(self) -> dict:
        return {"date": self.date, "mood": self.mood, "weekday": self.weekday, "weekIndex": self.week_index}


@dataclass(frozen=True)
class MetricSummary:
    metric: str
    latest: float
    previous: Optional[float]
    change: Optional[float]
    average: float
    count: int
    latest_date: str

    def to_dict(self) -> dict:
        return {
            "metric": self.metric,
            "latest": self.latest,
            "previous": self.previous,
            "change": self.change,
            "average": self.average,
            "count": self.count,
            "latestDate": self.latest_date,
        }


@dataclass(frozen=True)
class PlanProgress:
    completed: int
    in_progress: int
    not_started: int
    total: int
    overall_progress: int

    def to_dict(self) -> dict:
        return {
            "completed": self.completed,
            "inProgress": self.in_progress,
            "notStarted": self.not_started,
            "total": self.total,
            "overallProgress": self.overall_progress,
        }


@dataclass
class TimelineRow:
    """One calendar date of assessment scores, keyed by canonical type."""

    date: str
    first_completed_at: datetime
    scores: Dict[str, float] = field(default_factory=dict)

    @property
    def overall(self) -> Optional[float]:
        if not self.scores:
            return None
        return round_half_up(sum(self.scores.values()) / len(self.scores), 1)

    def to_dict(self) -> dict:
        # Row fields are written last so a type id cannot shadow them.
        row: Dict[str, Any] = dict(self.scores)
        row["date"] = self.date
        row["iso"] = self.first_completed_at.isoformat()
        row["overall"] = self.overall
        return row
