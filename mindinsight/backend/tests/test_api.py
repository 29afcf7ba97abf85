import os
import sys

from fastapi.testclient import TestClient

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from mindinsight.backend.app import main

client = TestClient(main.app)

TEMPLATE = {
    "assessmentType": "gad2",
    "title": "GAD-2",
    "scoring": {
        "minScore": 0,
        "maxScore": 6,
        "interpretationBands": [{"max": 2, "label": "Minimal"}, {"max": 6, "label": "Elevated"}],
    },
    "questions": [
        {
            "id": f"q{number}",
            "text": f"Question {number}",
            "uiType": "likert",
            "options": [
                {"id": f"q{number}-{value}", "value": value, "text": f"Option {value}", "order": value + 1}
                for value in range(4)
            ],
        }
        for number in (1, 2)
    ],
}


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_normalize_types_dedupes():
    response = client.post("/assessments/normalize-type", json={"ids": ["GAD2", "anxiety", "phq9", "custom"]})
    assert response.json()["types"] == ["anxiety_assessment", "depression_phq9", "custom"]


def test_score_assessment():
    response = client.post("/assessments/score", json={"template": TEMPLATE, "answers": {"q1": "3", "q2": "1"}})
    assert response.status_code == 200
    body = response.json()
    assert body["assessmentType"] == "anxiety_assessment"
    assert body["score"]["rawScore"] == 4
    assert body["score"]["normalizedScore"] == 66.7
    assert body["score"]["interpretation"] == "Elevated"
    assert [item["questionId"] for item in body["responses"]] == ["q1", "q2"]


def test_malformed_template_is_rejected():
    response = client.post("/assessments/score", json={"template": {"questions": ["x"]}, "answers": {}})
    assert response.status_code == 400


def test_scalar_template_fields_still_score():
    template = dict(TEMPLATE)
    template["scoring"] = dict(TEMPLATE["scoring"], reverseScored=True, domains=[{"id": "worry", "items": 5}])
    response = client.post("/assessments/score", json={"template": template, "answers": {"q1": "3", "q2": "1"}})
    assert response.status_code == 200
    body = response.json()
    assert body["score"]["rawScore"] == 4
    assert body["score"]["categoryBreakdown"]["worry"]["raw"] == 0


def test_labels():
    response = client.post(
        "/assessments/labels",
        json={"assessmentType": "phq9", "trend": "declining", "change": -3},
    )
    body = response.json()
    assert body["label"] == "Depression"
    assert body["higherIsBetter"] is False
    assert body["trendLabel"] == "Worsening"
    assert body["trendColor"] == "rose"
    assert body["deltaSentiment"] == "positive"


def test_insights_history():
    history = [
        {"assessmentType": "phq9", "score": 40, "completedAt": "2024-01-01T09:00:00"},
        {"assessmentType": "depression", "score": 30, "completedAt": "2024-01-08T09:00:00"},
        {"assessmentType": "phq9", "score": 30},
    ]
    body = client.post("/insights/history", json={"history": history}).json()
    summary = body["byType"]["depression_phq9"]
    assert summary["historyCount"] == 2
    assert summary["change"] == -10
    assert summary["trend"] == "baseline"
    assert [row["date"] for row in body["timeline"]] == ["2024-01-01", "2024-01-08"]


def test_streak():
    entries = [
        {"mood": "Good", "createdAt": "2024-01-04T08:00:00"},
        {"mood": "Great", "createdAt": "2024-01-05T21:00:00"},
    ]
    body = client.post("/activity/streak", json={"entries": entries, "today": "2024-01-05"}).json()
    assert body["streak"]["currentStreak"] == 2
    assert body["status"]["message"] == "Checked in today!"
    assert body["nextMilestone"]["days"] == 3
    assert body["averageMood"] == 4.5


def test_heatmap_window():
    entries = [{"mood": "Okay", "createdAt": "2024-01-03T10:00:00"}]
    body = client.post("/activity/heatmap", json={"entries": entries, "days": 7, "today": "2024-01-06"}).json()
    assert body["days"] == 7
    assert len(body["cells"]) == 8
    assert body["distribution"] == {"Okay": 1}


def test_progress_summary_falls_back_to_all_entries():
    entries = [
        {"metric": "Sleep Hours", "value": 6, "date": "2023-03-01"},
        {"metric": "Sleep Hours", "value": 8, "date": "2023-03-02"},
    ]
    body = client.post("/progress/summary", json={"entries": entries, "days": 30, "today": "2024-06-01"}).json()
    assert body["usedFallback"] is True
    assert body["metrics"]["sleephours"]["change"] == 2


def test_plan_progress():
    modules = [
        {"id": "1", "title": "Breathing", "userState": {"completed": True}},
        {"id": "2", "title": "Sleep", "userState": {"progress": 20}},
        {"id": "3", "title": "Journaling"},
        {"id": "4", "title": "Gratitude"},
    ]
    body = client.post("/plans/progress", json={"modules": modules}).json()
    assert body == {"completed": 1, "inProgress": 1, "notStarted": 2, "total": 4, "overallProgress": 25}
