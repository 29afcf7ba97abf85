from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Iterable, List, Mapping

logger = logging.getLogger("mindinsight.aliases")

ASSESSMENT_TYPE_ALIASES: Mapping[str, str] = MappingProxyType({
    "anxiety": "anxiety_assessment",
    "anxiety_assessment": "anxiety_assessment",
    "anxiety_gad2": "anxiety_assessment",
    "gad2": "anxiety_assessment",
    "depression": "depression_phq9",
    "depression_phq2": "depression_phq9",
    "depression_phq9": "depression_phq9",
    "phq2": "depression_phq9",
    "phq9": "depression_phq9",
    "stress": "stress_pss10",
    "stress_pss4": "stress_pss10",
    "stress_pss10": "stress_pss10",
    "pss4": "stress_pss10",
    "pss10": "stress_pss10",
    "overthinking": "overthinking_ptq",
    "overthinking_rrs4": "overthinking_ptq",
    "overthinking_ptq": "overthinking_ptq",
    "rrs4": "overthinking_ptq",
    "ptq": "overthinking_ptq",
    "trauma": "trauma_pcl5",
    "trauma_pcptsd5": "trauma_pcl5",
    "trauma_pcl5": "trauma_pcl5",
    "pcl5": "trauma_pcl5",
    "emotional_intelligence": "emotional_intelligence_teique",
    "emotional_intelligence_eq5": "emotional_intelligence_teique",
    "emotional_intelligence_ei10": "emotional_intelligence_teique",
    "emotional_intelligence_teique": "emotional_intelligence_teique",
    "teique_sf": "emotional_intelligence_teique",
    "personality": "personality_mini_ipip",
    "personality_bigfive10": "personality_mini_ipip",
    "personality_mini_ipip": "personality_mini_ipip",
    "archetypes": "personality_mini_ipip",
    "mini_ipip": "personality_mini_ipip",
})

FRIENDLY_LABELS: Mapping[str, str] = MappingProxyType({
    "anxiety": "Anxiety",
    "anxiety_assessment": "Anxiety",
    "depression": "Depression",
    "depression_phq9": "Depression",
    "phq9": "Depression",
    "stress": "Stress",
    "stress_pss10": "Stress",
    "emotionalIntelligence": "Emotional Intelligence",
    "emotional-intelligence": "Emotional Intelligence",
    "emotional_intelligence": "Emotional Intelligence",
    "emotional_intelligence_teique": "Emotional Intelligence",
    "emotional_intelligence_ei10": "Emotional Intelligence",
    "emotional_intelligence_eq5": "Emotional Intelligence",
    "teique_sf": "Emotional Intelligence",
    "overthinking": "Overthinking",
    "overthinking_ptq": "Overthinking",
    "overthinking_brooding": "Overthinking",
    "trauma-fear": "Trauma & Fear Response",
    "traumaFear": "Trauma & Fear Response",
    "trauma": "Trauma & Fear Response",
    "trauma_pcl5": "Trauma & Fear Response",
    "trauma_pcptsd5": "Trauma & Fear Response",
    "archetypes": "Personality (Mini-IPIP)",
    "psychologicalArchetypes": "Personality (Mini-IPIP)",
    "psychological_archetypes": "Personality (Mini-IPIP)",
    "personality_mini_ipip": "Personality (Mini-IPIP)",
    "personality": "Personality (Mini-IPIP)",
    "personality_bigfive10": "Personality Snapshot (Big Five)",
})


def normalize_assessment_type(raw_id: str) -> str:
    """Map a loosely-specified assessment id onto its canonical type.

    Unknown ids are returned lower-cased and trimmed. Canonical ids map to
    themselves, so normalizing twice is a no-op.
    """
    key = (raw_id or "").strip().lower()
    canonical = ASSESSMENT_TYPE_ALIASES.get(key)
    if canonical is None:
        logger.debug("No alias for assessment type %r, passing through", key)
        return key
    return canonical


def normalize_assessment_types(raw_ids: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(normalize_assessment_type(raw_id) for raw_id in raw_ids))


def friendly_assessment_label(assessment_type: str) -> str:
    label = FRIENDLY_LABELS.get(assessment_type)
    if label:
        return label
    spaced = re.sub(r"[-_]", " ", assessment_type or "")
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", spaced)
    spaced = re.sub(r"\s+", " ", spaced).strip()
    return spaced[:1].upper() + spaced[1:]
