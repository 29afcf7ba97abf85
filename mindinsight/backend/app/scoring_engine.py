from __future__ import annotations

import logging
import math
from typing import Dict, List, Mapping, Optional, Set, Tuple

from .bands import resolve_band
from .models import (
    AssessmentTemplate,
    CategoryScore,
    ComputedScore,
    Option,
    Question,
    ResponseDetail,
    format_option_value,
    round_half_up,
)

logger = logging.getLogger("mindinsight.scoring")

OVERALL_KEY = "overall"


def normalize_score(value: float, min_score: float, max_score: float) -> float:
    """Rescale value from [min_score, max_score] into 0-100, one decimal place.

    Out-of-range values are clamped first. A degenerate range returns 0.
    """
    if not all(math.isfinite(item) for item in (value, min_score, max_score)) or max_score == min_score:
        return 0.0
    bounded = min(max(value, min_score), max_score)
    return round_half_up((bounded - min_score) / (max_score - min_score) * 100, 1)


def reverse_scored_ids(template: AssessmentTemplate) -> Set[str]:
    reverse_ids = set(template.scoring.reverse_scored)
    reverse_ids.update(question.id for question in template.questions if question.reverse_scored)
    return reverse_ids


def question_range(question: Question) -> Tuple[float, float]:
    values = [option.numeric_value for option in question.options]
    if not values:
        return 0.0, 0.0
    return min(values), max(values)


def find_selected_option(question: Question, answers: Mapping[str, object]) -> Optional[Option]:
    if question.id not in answers or answers[question.id] is None:
        return None
    stored = format_option_value(answers[question.id])
    for option in question.options:
        if format_option_value(option.value) == stored:
            return option
    logger.debug("Answer %r matches no option of question %s", stored, question.id)
    return None


def _item_contributions(
    template: AssessmentTemplate,
    answers: Mapping[str, object],
) -> List[Tuple[str, Optional[float]]]:
    """(question id, contribution) for every question in template order.

    Contributions are reverse-scored where configured; unanswered or
    unmatched questions carry None. Questions sharing an id each count.
    """
    reverse_ids = reverse_scored_ids(template)
    contributions: List[Tuple[str, Optional[float]]] = []
    for question in template.questions:
        option = find_selected_option(question, answers)
        if option is None:
            contributions.append((question.id, None))
            continue
        value = option.numeric_value
        if question.id in reverse_ids:
            low, high = question_range(question)
            value = low + high - value
        contributions.append((question.id, value))
    return contributions


def compute_scores(template: AssessmentTemplate, answers: Mapping[str, object]) -> ComputedScore:
    """Score one submission.

    Interpretation bands are evaluated against raw scores (template and
    domain alike), while the displayed number is the normalized score.
    A scheme without ``maxScore`` uses the raw score itself as the maximum,
    which always normalizes to 100; templates must set it explicitly.
    """
    contributions = _item_contributions(template, answers)
    raw_score = sum(value for _, value in contributions if value is not None)
    # Domain items resolve to the first question with that id.
    by_id: Dict[str, Optional[float]] = {}
    for question_id, value in contributions:
        by_id.setdefault(question_id, value)

    scoring = template.scoring
    min_score = scoring.min_score if scoring.min_score is not None else 0.0
    max_score = scoring.max_score if scoring.max_score is not None else raw_score
    normalized = normalize_score(raw_score, min_score, max_score)
    interpretation = resolve_band(scoring.interpretation_bands, raw_score)

    breakdown: Dict[str, CategoryScore] = {}
    for domain in scoring.domains:
        domain_raw = sum(by_id.get(item_id) or 0.0 for item_id in domain.items)
        domain_min = domain.min_score if domain.min_score is not None else 0.0
        domain_max = domain.max_score if domain.max_score is not None else domain_raw
        breakdown[domain.id] = CategoryScore(
            raw=round_half_up(domain_raw, 1),
            normalized=normalize_score(domain_raw, domain_min, domain_max),
            interpretation=resolve_band(domain.interpretation_bands, domain_raw),
        )

    breakdown[OVERALL_KEY] = CategoryScore(
        raw=round_half_up(raw_score, 1),
        normalized=normalized,
        interpretation=interpretation,
    )

    return ComputedScore(
        raw_score=round_half_up(raw_score, 1),
        normalized_score=normalized,
        min_score=min_score,
        max_score=max_score,
        interpretation=interpretation,
        category_breakdown=breakdown,
    )


def build_response_details(template: AssessmentTemplate, answers: Mapping[str, object]) -> List[ResponseDetail]:
    details: List[ResponseDetail] = []
    for question in template.questions:
        option = find_selected_option(question, answers)
        if option is None:
            continue
        details.append(ResponseDetail(
            question_id=question.id,
            question_text=question.text,
            answer_label=option.text,
            answer_value=format_option_value(option.value),
            answer_score=option.numeric_value,
        ))
    return details
