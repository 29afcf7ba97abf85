import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from mindinsight.backend.app.models import (
    AssessmentHistoryEntry,
    AssessmentTemplate,
    ContentType,
    MoodEntry,
    PlanModuleWithState,
    ProgressEntry,
    Trend,
    UiType,
    format_option_value,
    parse_datetime_safe,
    round_half_up,
)


def test_template_from_camel_case_payload():
    template = AssessmentTemplate.from_dict({
        "assessmentType": "depression_phq9",
        "title": "PHQ-9",
        "estimatedTime": 3,
        "scoring": {
            "minScore": 0,
            "maxScore": "27",
            "reverseScored": ["q2"],
            "interpretationBands": [{"max": 4, "label": "Minimal"}],
            "domains": [{"id": "mood", "label": "Mood", "items": ["q1"]}],
        },
        "questions": [
            {
                "id": "q1",
                "text": "Little interest?",
                "uiType": "likert",
                "options": [{"id": "a", "value": 0, "text": "Not at all", "order": 1}],
            },
            {"id": "q2", "text": "Odd one", "uiType": "slider", "options": []},
        ],
    })
    assert template.estimated_time == "3"
    assert template.scoring.max_score == 27
    assert template.scoring.reverse_scored == frozenset({"q2"})
    assert template.scoring.domains[0].max_score is None
    assert template.questions[0].ui_type is UiType.LIKERT
    assert template.questions[1].ui_type is None


def test_non_mapping_payload_raises():
    with pytest.raises(ValueError):
        AssessmentTemplate.from_dict(["not", "a", "template"])
    with pytest.raises(ValueError):
        AssessmentTemplate.from_dict({"questions": ["broken"]})


def test_entries_without_timestamp_are_dropped():
    assert MoodEntry.from_dict({"mood": "Good"}) is None
    assert ProgressEntry.from_dict({"metric": "sleep", "value": "n/a", "date": "2024-01-01"}) is None
    assert AssessmentHistoryEntry.from_dict({"score": 10, "completedAt": "yesterday"}) is None


def test_history_entry_parsing():
    entry = AssessmentHistoryEntry.from_dict({
        "id": "h1",
        "assessmentType": "gad2",
        "score": "42.5",
        "completedAt": "2024-01-02T08:30:00",
        "trend": "improving",
    })
    assert entry.score == 42.5
    assert entry.trend is Trend.IMPROVING
    assert entry.completed_at.hour == 8


def test_plan_module_state():
    module = PlanModuleWithState.from_dict({
        "id": "m1",
        "title": "Breathing basics",
        "type": "audio",
        "userState": {"completed": False, "progress": 40},
    })
    assert module.content_type is ContentType.AUDIO
    assert module.started and not module.completed
    assert module.progress == 40
    untouched = PlanModuleWithState.from_dict({"id": "m2", "title": "Sleep", "userState": None})
    assert not untouched.started


def test_parse_datetime_safe():
    aware = parse_datetime_safe("2024-01-03T10:00:00Z")
    assert aware is not None and aware.tzinfo is None
    assert parse_datetime_safe("2024-01-03T10:00:00").hour == 10
    assert parse_datetime_safe("not a date") is None
    assert parse_datetime_safe(None) is None


def test_helpers():
    assert format_option_value(3.0) == "3"
    assert format_option_value(2.5) == "2.5"
    assert format_option_value("often") == "often"
    assert round_half_up(0.25, 1) == 0.3
    assert round_half_up(42.45, 0) == 42


def test_scalar_where_list_expected_reads_as_empty():
    template = AssessmentTemplate.from_dict({
        "assessmentType": "stress",
        "scoring": {"reverseScored": True, "interpretationBands": 1, "domains": "calm"},
        "questions": [{"id": "q1", "text": "Tense?", "options": 3}],
    })
    assert template.scoring.reverse_scored == frozenset()
    assert template.scoring.interpretation_bands == []
    assert template.scoring.domains == []
    assert template.questions[0].options == []

    with_domain = AssessmentTemplate.from_dict({
        "scoring": {"domains": [{"id": "worry", "items": 5}]},
        "questions": "q1",
    })
    assert with_domain.scoring.domains[0].items == []
    assert with_domain.questions == []
