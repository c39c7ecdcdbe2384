"""Diversity-first shortlist selection.

Round-robin over source types: every type that still has candidates gets
one slot per round before any type gets a second. Within a round, and
within a type, candidates are ordered by a single ranking key:

    confidence (high first), retrieved_at (newest first, missing last),
    text length (longest first), canonical URL, taxonomy position.

The key is total over distinct URLs, so output never depends on input order.
"""

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Tuple
from ..log import get_logger
from ..retrieval.url import canonical_key
from ..schemas.evidence import ExtractedSource, SourceType

logger = get_logger("shortlist")

TYPE_ORDER = {t: i for i, t in enumerate(SourceType)}
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

def _timestamp(value) -> float:
    if value is None:
        return float("-inf")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - _EPOCH).total_seconds()

def rank_key(source: ExtractedSource) -> Tuple:
    return (
        -source.confidence.rank,
        -_timestamp(source.retrieved_at),
        -len(source.text),
        canonical_key(source.url),
        TYPE_ORDER[source.source_type],
    )

def select_shortlist(candidates: Sequence[ExtractedSource], quota: int) -> List[ExtractedSource]:
    """
    Picks up to `quota` candidates, maximizing source-type diversity.
    Same input (in any order) always yields the same output.
    """
    if quota <= 0:
        raise ValueError(f"quota must be > 0, got {quota}")

    # Dedupe by canonical URL, keeping the best-ranked copy
    seen = set()
    unique = []
    for source in sorted(candidates, key=rank_key):
        key = canonical_key(source.url)
        if key in seen:
            continue
        seen.add(key)
        unique.append(source)

    by_type: Dict[SourceType, List[ExtractedSource]] = defaultdict(list)
    for source in unique:
        by_type[source.source_type].append(source)

    selected: List[ExtractedSource] = []
    round_index = 0
    while len(selected) < quota:
        round_picks = [group[round_index] for group in by_type.values() if round_index < len(group)]
        if not round_picks:
            break
        for source in sorted(round_picks, key=rank_key):
            if len(selected) >= quota:
                break
            selected.append(source)
        round_index += 1

    logger.info(
        f"Shortlisted {len(selected)}/{len(unique)} candidates "
        f"across {len({s.source_type for s in selected})} source types (quota {quota})"
    )
    return selected
