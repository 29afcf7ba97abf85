from __future__ import annotations

import logging
from collections import Counter
from datetime import date, datetime, timedelta
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import HeatmapCell, MoodEntry, MoodLabel, StreakData
from .settings import local_today

logger = logging.getLogger("mindinsight.activity")

# Consecutive day buckets are one calendar day apart; anything more than
# a day and a half apart breaks a streak.
GAP_TOLERANCE_DAYS = 1.5

MOOD_SCORES: Mapping[str, int] = MappingProxyType({
    MoodLabel.GREAT.value: 5,
    MoodLabel.GOOD.value: 4,
    MoodLabel.OKAY.value: 3,
    MoodLabel.STRUGGLING.value: 2,
    MoodLabel.ANXIOUS.value: 1,
})

STREAK_MILESTONES = (
    (3, "Getting Started"),
    (7, "One Week Strong"),
    (14, "Two Weeks!"),
    (30, "Monthly Warrior"),
    (60, "Consistency Champion"),
    (90, "90-Day Legend"),
    (180, "Half-Year Hero"),
    (365, "Year of Growth"),
)


def entry_timestamp(entry) -> Optional[datetime]:
    """Timestamp of a mood entry, progress entry or bare datetime."""
    if isinstance(entry, datetime):
        return entry
    return getattr(entry, "created_at", None) or getattr(entry, "date", None)


def to_day_bucket(timestamp: datetime) -> date:
    return timestamp.date()


def day_buckets(entries: Iterable) -> List[date]:
    """Unique local-midnight buckets, ascending."""
    buckets = set()
    for entry in entries:
        timestamp = entry_timestamp(entry)
        if timestamp is None:
            logger.debug("Skipping entry without timestamp: %r", entry)
            continue
        buckets.add(to_day_bucket(timestamp))
    return sorted(buckets)


def _gap_days(later: date, earlier: date) -> int:
    return (later - earlier).days


def current_streak(entries: Sequence, today: Optional[date] = None) -> int:
    buckets = day_buckets(entries)
    if not buckets:
        return 0
    today = today or local_today()
    descending = buckets[::-1]
    if _gap_days(today, descending[0]) > GAP_TOLERANCE_DAYS:
        return 0
    streak = 1
    for newer, older in zip(descending, descending[1:]):
        if _gap_days(newer, older) > GAP_TOLERANCE_DAYS:
            break
        streak += 1
    return streak


def longest_streak(entries: Sequence) -> int:
    buckets = day_buckets(entries)
    if not buckets:
        return 0
    longest = 1
    running = 1
    for earlier, later in zip(buckets, buckets[1:]):
        if _gap_days(later, earlier) <= GAP_TOLERANCE_DAYS:
            running += 1
            longest = max(longest, running)
        else:
            running = 1
    return longest


def count_in_range(entries: Sequence, days: int, today: Optional[date] = None) -> int:
    """Distinct check-in days within the last ``days`` calendar days, today included."""
    if days <= 0:
        return 0
    today = today or local_today()
    cutoff = today - timedelta(days=days - 1)
    return sum(1 for bucket in day_buckets(entries) if cutoff <= bucket <= today)


def mood_score(mood: Optional[str]) -> Optional[int]:
    return MOOD_SCORES.get(mood or "")


def average_mood_score(entries: Sequence[MoodEntry]) -> float:
    scores = [score for score in (mood_score(entry.mood) for entry in entries) if score is not None]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def last_check_in_date(entries: Sequence) -> Optional[str]:
    timestamps = [timestamp for timestamp in (entry_timestamp(entry) for entry in entries) if timestamp]
    if not timestamps:
        return None
    return to_day_bucket(max(timestamps)).isoformat()


def build_streak_data(entries: Sequence[MoodEntry], today: Optional[date] = None) -> StreakData:
    today = today or local_today()
    return StreakData(
        current_streak=current_streak(entries, today),
        longest_streak=longest_streak(entries),
        total_check_ins=len(entries),
        this_week_check_ins=count_in_range(entries, 7, today),
        last_check_in_date=last_check_in_date(entries),
    )


def streak_status(last_check_in: Optional[str], today: Optional[date] = None) -> dict:
    if not last_check_in:
        return {"isActive": False, "message": "Start your first check-in today!"}
    today = today or local_today()
    days_since = _gap_days(today, date.fromisoformat(last_check_in))
    if days_since <= 0:
        return {"isActive": True, "message": "Checked in today!"}
    if days_since == 1:
        return {"isActive": True, "message": "Check in today to keep your streak!"}
    return {"isActive": False, "message": f"Streak ended {days_since} days ago. Start fresh!"}


def next_milestone(streak: int) -> dict:
    upcoming = next((item for item in STREAK_MILESTONES if item[0] > streak), STREAK_MILESTONES[-1])
    reached = [days for days, _ in STREAK_MILESTONES if days <= streak]
    previous_days = reached[-1] if reached else 0
    if streak >= upcoming[0]:
        progress = 100
    else:
        progress = round((streak - previous_days) / (upcoming[0] - previous_days) * 100)
    return {
        "days": upcoming[0],
        "label": upcoming[1],
        "remaining": max(0, upcoming[0] - streak),
        "progressPercent": progress,
    }


def heatmap_mood(mood: Optional[str]) -> str:
    return mood if mood in MOOD_SCORES else MoodLabel.OKAY.value


def build_calendar_heatmap(
    entries: Sequence[MoodEntry],
    days: int = 90,
    today: Optional[date] = None,
) -> List[HeatmapCell]:
    """Day cells from ``today - days`` through today, grouped into Sunday-first weeks."""
    today = today or local_today()
    latest_by_day: Dict[date, MoodEntry] = {}
    for entry in sorted(entries, key=lambda item: item.created_at):
        latest_by_day[to_day_bucket(entry.created_at)] = entry

    cells: List[HeatmapCell] = []
    week_index = 0
    current = today - timedelta(days=max(days, 0))
    while current <= today:
        weekday = (current.weekday() + 1) % 7
        if weekday == 0 and cells:
            week_index += 1
        entry = latest_by_day.get(current)
        cells.append(HeatmapCell(
            date=current.isoformat(),
            mood=heatmap_mood(entry.mood) if entry else None,
            weekday=weekday,
            week_index=week_index,
        ))
        current += timedelta(days=1)
    return cells


def mood_distribution(entries: Sequence[MoodEntry]) -> Dict[str, int]:
    return dict(Counter(entry.mood for entry in entries))
