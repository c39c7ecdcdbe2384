from typing import List, Optional
from ..schemas.scoring import Threshold

def run_sufficiency_gate(total_sources: int, type_count: int, threshold: Threshold) -> List[str]:
    """
    Returns list of failure reasons. Empty list = pass.
    Source volume and type diversity are checked independently.
    """
    failures = []

    if total_sources == 0:
        failures.append("No evidence available")

    # 1. Volume
    if total_sources < threshold.min_total_sources:
        failures.append(f"Need {threshold.min_total_sources} sources, have {total_sources}")

    # 2. Diversity
    if type_count < threshold.min_evidence_types:
        failures.append(f"Need {threshold.min_evidence_types} evidence types, have {type_count}")

    return failures

def run_advisory_checks(
    first_party_ratio: float,
    median_age_days: Optional[float],
    threshold: Threshold,
) -> List[str]:
    """
    Soft checks reported alongside the score. They never block it.
    """
    warnings = []

    if first_party_ratio < threshold.min_first_party_ratio:
        warnings.append(
            f"First-party share {first_party_ratio * 100:.0f}% is below "
            f"{threshold.min_first_party_ratio * 100:.0f}%"
        )

    if median_age_days is None:
        warnings.append("No dated evidence; recency scored as neutral")
    elif median_age_days > threshold.max_median_age_days:
        warnings.append(
            f"Median evidence age {median_age_days:g} days exceeds {threshold.max_median_age_days} days"
        )

    return warnings
