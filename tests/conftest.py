import pytest
from datetime import datetime, timedelta, timezone
import httpx

from competitor_evidence.schemas.evidence import (
    Confidence,
    EvidenceItem,
    ExtractedSource,
    NormalizedEvidenceBundle,
    SourceType,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

@pytest.fixture
def now() -> datetime:
    return NOW

@pytest.fixture
def make_source():
    """
    Builds ExtractedSource candidates with sensible defaults for shortlist tests.
    """
    def _make(url, source_type, confidence=Confidence.HIGH, text="x" * 100, retrieved_at=NOW):
        return ExtractedSource(
            url=url,
            text=text,
            source_type=source_type,
            confidence=confidence,
            retrieved_at=retrieved_at,
        )
    return _make

@pytest.fixture
def make_bundle():
    """
    Builds a NormalizedEvidenceBundle from (type, url, age_days) tuples.
    """
    def _make(specs, primary_url="https://example.com", created_at=NOW):
        items = [
            EvidenceItem(
                id=f"item-{i}",
                type=t.value if isinstance(t, SourceType) else t,
                url=url,
                retrieved_at=None if age is None else created_at - timedelta(days=age),
            )
            for i, (t, url, age) in enumerate(specs)
        ]
        return NormalizedEvidenceBundle(
            id="bundle-1",
            project_id="project-1",
            created_at=created_at,
            primary_url=primary_url,
            items=items,
        )
    return _make

@pytest.fixture
def html_page():
    def _make(title="Page", body="<p>Hello world</p>"):
        return f"<html><head><title>{title}</title></head><body>{body}</body></html>"
    return _make

@pytest.fixture
def mock_transport():
    """
    Wraps an async handler into an httpx.MockTransport for Fetcher tests.
    """
    def _make(handler):
        return httpx.MockTransport(handler)
    return _make
