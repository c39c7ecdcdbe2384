"""Coverage / confidence scoring for evidence bundles.

Pure function of (bundle, threshold, first-party domains, config, as_of).
Without an explicit config the YAML at SCORING_CONFIG_PATH is read on each call.
Ages are measured against `as_of`, which defaults to the bundle's own
created_at, so repeated calls with the same arguments give identical results.

    coverage    = min(types_present / types_considered, 1)
    recency     = 1.0 up to fresh_window_days, linear to recency_knee_score at
                  recency_knee_days, linear to 0.0 at max_median_age_days,
                  0.5 when nothing is dated
    first_party = first / (first + third), 0 with no items
    score10     = round_half_up(10 * (w_c*coverage + w_r*recency + w_f*first_party), 1)
"""

import math
import statistics
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from ..config import load_scoring_config
from ..quality.gates import run_advisory_checks, run_sufficiency_gate
from ..retrieval.url import domain_matches, normalize_domain
from ..schemas.evidence import EvidenceItem, NormalizedEvidenceBundle
from ..schemas.scoring import (
    CoverageReasons,
    CoverageScoreResult,
    ScoringConfig,
    Threshold,
)

NEUTRAL_RECENCY = 0.5
SECONDS_PER_DAY = 86400

def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)

def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))

def round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor

def _interpolate(x: float, x0: float, y0: float, x1: float, y1: float) -> float:
    return y0 + (y1 - y0) * (x - x0) / (x1 - x0)

def recency_score(
    median_age_days: Optional[float],
    fresh_window_days: int,
    knee_days: int,
    knee_score: float,
    max_age_days: int,
) -> float:
    """
    Piecewise linear: 1.0 up to fresh_window_days, down to knee_score at knee_days,
    down to 0.0 at max_age_days. Points past max_age_days are pulled back to it,
    so a tighter max age always wins over a wider fresh window.
    """
    if median_age_days is None:
        return NEUTRAL_RECENCY
    fresh_window_days = min(fresh_window_days, max_age_days)
    knee_days = min(max(knee_days, fresh_window_days), max_age_days)
    if median_age_days >= max_age_days:
        return 0.0
    if median_age_days <= fresh_window_days:
        return 1.0
    if median_age_days <= knee_days:
        return _interpolate(median_age_days, fresh_window_days, 1.0, knee_days, knee_score)
    return _interpolate(median_age_days, knee_days, knee_score, max_age_days, 0.0)

def item_domain(item: EvidenceItem) -> str:
    return normalize_domain(item.domain or item.url)

def _ordered_types(present: set, considered: Sequence[str]) -> List[str]:
    # Configured order first, then anything unexpected alphabetically
    known = [t for t in considered if t in present]
    extra = sorted(t for t in present if t not in considered)
    return known + extra

def compute_coverage_score(
    bundle: Optional[NormalizedEvidenceBundle],
    threshold: Optional[Threshold] = None,
    first_party_domains: Optional[Sequence[str]] = None,
    config: Optional[ScoringConfig] = None,
    as_of: Optional[datetime] = None,
) -> CoverageScoreResult:
    """
    Scores an evidence bundle. An insufficient bundle is a normal result
    (is_sufficient=False, score10=None, failed_checks populated), not an error.
    config defaults to load_scoring_config(); a threshold override is scored
    against the config's recency points, clamped to its max_median_age_days.
    """
    config = config or load_scoring_config()
    threshold = threshold or config.threshold
    considered = list(config.evidence_types)
    items = list(bundle.items) if bundle else []

    # Types
    present = {item.type for item in items}
    types_present = _ordered_types(present, considered)
    types_missing = [t for t in considered if t not in present]
    type_count = len(types_present)
    coverage = _clamp(type_count / len(considered), 0.0, 1.0)

    # First-party share
    owned = []
    if bundle and bundle.primary_url:
        owned.append(bundle.primary_url)
    owned.extend(first_party_domains or [])
    first_party_count = sum(1 for item in items if domain_matches(item_domain(item), owned))
    third_party_count = len(items) - first_party_count
    total_sources = first_party_count + third_party_count
    first_party_ratio = first_party_count / total_sources if total_sources else 0.0

    # Recency
    reference = _aware(as_of or (bundle.created_at if bundle else datetime.now(timezone.utc)))
    dates = []
    for item in items:
        stamp = item.published_at or item.retrieved_at
        if stamp is not None:
            dates.append(_aware(stamp))
    ages = [max(0, math.floor((reference - d).total_seconds() / SECONDS_PER_DAY)) for d in dates]
    median_age = float(statistics.median(ages)) if ages else None
    recency = recency_score(
        median_age,
        config.fresh_window_days,
        config.recency_knee_days,
        config.recency_knee_score,
        threshold.max_median_age_days,
    )

    failed_checks = run_sufficiency_gate(total_sources, type_count, threshold)
    warnings = run_advisory_checks(first_party_ratio, median_age, threshold) if items else []

    reasons = CoverageReasons(
        types_present=types_present,
        types_missing=types_missing,
        type_count=type_count,
        total_types_considered=len(considered),
        total_sources=total_sources,
        first_party_count=first_party_count,
        third_party_count=third_party_count,
        first_party_ratio=first_party_ratio,
        newest_at=max(dates) if dates else None,
        oldest_at=min(dates) if dates else None,
        median_age_days=median_age,
        recency_score=recency,
        coverage_score=coverage,
        first_party_score=first_party_ratio,
        threshold=threshold,
        weights=config.weights,
        failed_checks=failed_checks,
        warnings=warnings,
    )

    if failed_checks:
        return CoverageScoreResult(
            is_sufficient=False,
            score_label=config.insufficient_label,
            reasons=reasons,
        )

    weights = config.weights
    score01 = weights.coverage * coverage + weights.recency * recency + weights.first_party * first_party_ratio
    score10 = _clamp(round_half_up(score01 * 10, 1), 0.0, 10.0)
    return CoverageScoreResult(
        is_sufficient=True,
        score10=score10,
        score_label=config.label_for(score10),
        reasons=reasons,
    )
