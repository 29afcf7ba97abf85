from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence


@dataclass(frozen=True)
class InterpretationBand:
    max: float
    label: str


def parse_bands(raw: Optional[Iterable[object]]) -> List[InterpretationBand]:
    bands: List[InterpretationBand] = []
    if not isinstance(raw, (list, tuple)):
        return bands
    for item in raw:
        if isinstance(item, InterpretationBand):
            bands.append(item)
            continue
        if not isinstance(item, dict):
            continue
        try:
            upper = float(item.get("max"))
        except (TypeError, ValueError):
            continue
        bands.append(InterpretationBand(max=upper, label=str(item.get("label", ""))))
    return bands


def resolve_band(bands: Optional[Sequence[InterpretationBand]], value: float) -> Optional[str]:
    """Return the label of the first band whose ``max`` is >= value.

    Bands are consulted in the order given. A value above every threshold
    falls into the last band, so the result is only None for an empty list.
    Bands are authored in raw-score units, not percentages.
    """
    if not bands:
        return None
    for band in bands:
        if value <= band.max:
            return band.label
    return bands[-1].label
