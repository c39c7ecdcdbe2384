"""Pydantic schemas for coverage scoring configuration and results.

Defines Threshold, ScoringWeights, ScoreBucket, ScoringConfig,
CoverageReasons and CoverageScoreResult.
"""

import math
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime

from .evidence import SourceType

WEIGHT_SUM_TOLERANCE = 1e-6

class Threshold(BaseModel):
    min_total_sources: int = Field(5, ge=0)
    min_evidence_types: int = Field(3, ge=0)
    min_first_party_ratio: float = Field(0.3, ge=0.0, le=1.0)
    max_median_age_days: int = Field(180, gt=0)

class ScoringWeights(BaseModel):
    coverage: float = Field(0.45, ge=0.0, le=1.0)
    recency: float = Field(0.35, ge=0.0, le=1.0)
    first_party: float = Field(0.20, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _sum_to_one(self):
        total = self.coverage + self.recency + self.first_party
        if not math.isclose(total, 1.0, abs_tol=WEIGHT_SUM_TOLERANCE):
            raise ValueError(f"Scoring weights must sum to 1.0, got {total:.4f}")
        return self

class ScoreBucket(BaseModel):
    label: str
    min_score: float = Field(..., ge=0.0, le=10.0)

def _default_buckets() -> List[ScoreBucket]:
    return [ScoreBucket(label="High", min_score=7.5), ScoreBucket(label="Medium", min_score=5.0)]

class ScoringConfig(BaseModel):
    threshold: Threshold = Field(default_factory=Threshold)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    buckets: List[ScoreBucket] = Field(default_factory=_default_buckets)
    fallback_label: str = "Low"
    insufficient_label: str = "Insufficient"
    evidence_types: List[str] = Field(default_factory=lambda: [t.value for t in SourceType])
    fresh_window_days: int = Field(14, ge=0)
    recency_knee_days: int = Field(90, gt=0)
    recency_knee_score: float = Field(0.2, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_consistency(self):
        mins = [b.min_score for b in self.buckets]
        if mins != sorted(mins, reverse=True) or len(set(mins)) != len(mins):
            raise ValueError("Score buckets must be listed in strictly descending min_score order")
        if not self.evidence_types:
            raise ValueError("evidence_types must not be empty")
        if len(set(self.evidence_types)) != len(self.evidence_types):
            raise ValueError("evidence_types must not contain duplicates")
        if not self.fresh_window_days < self.recency_knee_days < self.threshold.max_median_age_days:
            raise ValueError(
                "Recency points must satisfy fresh_window_days < recency_knee_days < threshold.max_median_age_days"
            )
        return self

    def label_for(self, score10: float) -> str:
        for bucket in self.buckets:
            if score10 >= bucket.min_score:
                return bucket.label
        return self.fallback_label

class CoverageReasons(BaseModel):
    types_present: List[str]
    types_missing: List[str]
    type_count: int
    total_types_considered: int
    total_sources: int
    first_party_count: int
    third_party_count: int
    first_party_ratio: float # 0..1
    newest_at: Optional[datetime] = None
    oldest_at: Optional[datetime] = None
    median_age_days: Optional[float] = None
    recency_score: float # 0..1
    coverage_score: float # 0..1
    first_party_score: float # 0..1
    threshold: Threshold
    weights: ScoringWeights
    failed_checks: List[str] = []
    warnings: List[str] = []

class CoverageScoreResult(BaseModel):
    is_sufficient: bool
    score10: Optional[float] = None # only set when sufficient
    score_label: str
    reasons: CoverageReasons
