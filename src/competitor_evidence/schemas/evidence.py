"""Pydantic schemas for evidence and retrieval data.

Defines the source-type taxonomy, the per-run records (TargetUrl,
FetchedPage, ExtractedSource) and the persisted bundle shape that the
coverage scorer reads (EvidenceItem, NormalizedEvidenceBundle).
"""

from enum import Enum
from pydantic import BaseModel, Field, model_validator
from typing import List, Optional
from datetime import datetime, timezone

from ..retrieval.url import canonical_key

class SourceType(str, Enum):
    MARKETING_SITE = "marketing_site"
    PRICING = "pricing"
    CHANGELOG = "changelog"
    REVIEWS = "reviews"
    JOBS = "jobs"
    DOCS = "docs"
    STATUS = "status"

class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"

    @property
    def rank(self) -> int:
        return 2 if self is Confidence.HIGH else 1

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class TargetUrl(BaseModel):
    url: str
    label: str
    expected_source_type: Optional[SourceType] = None

class FetchedPage(BaseModel):
    url: str
    text: str = ""
    title: Optional[str] = None
    truncated: bool = False
    error: Optional[str] = None
    label: Optional[str] = None
    status_code: Optional[int] = None
    final_url: Optional[str] = None
    published_at: Optional[datetime] = None
    retrieved_at: datetime = Field(default_factory=utcnow)

    @property
    def ok(self) -> bool:
        return not self.error and bool(self.text)

class FetchStats(BaseModel):
    total: int = 0
    successes: int = 0
    failures: int = 0
    abandoned: int = 0 # still in flight when the budget ran out
    elapsed_ms: int = 0

class ExtractedSource(BaseModel):
    url: str
    text: str
    title: Optional[str] = None
    source_type: SourceType
    confidence: Confidence
    date_range: Optional[str] = None
    label: Optional[str] = None
    published_at: Optional[datetime] = None
    retrieved_at: Optional[datetime] = None

class EvidenceItem(BaseModel):
    id: str
    type: str
    url: str
    domain: Optional[str] = None
    published_at: Optional[datetime] = None
    retrieved_at: Optional[datetime] = None

class NormalizedEvidenceBundle(BaseModel):
    id: str
    project_id: str
    created_at: datetime
    primary_url: Optional[str] = None
    items: List[EvidenceItem] = []

    @model_validator(mode="after")
    def _unique_urls(self):
        seen = set()
        for item in self.items:
            key = canonical_key(item.url)
            if key in seen:
                raise ValueError(f"Duplicate evidence URL in bundle: {item.url}")
            seen.add(key)
        return self

class SearchResult(BaseModel):
    url: str
    title: Optional[str] = None
    snippet: Optional[str] = None

class CollectionResult(BaseModel):
    competitor: str
    domain: str
    targets: List[TargetUrl]
    pages: List[FetchedPage]
    sources: List[ExtractedSource]
    shortlist: List[ExtractedSource]
    stats: FetchStats
