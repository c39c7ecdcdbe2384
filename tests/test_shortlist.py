import random
from datetime import timedelta
import pytest

from competitor_evidence.schemas.evidence import Confidence, SourceType
from competitor_evidence.selection.shortlist import select_shortlist

@pytest.fixture
def candidates(make_source, now):
    return [
        make_source("https://acme.io/pricing", SourceType.PRICING),
        make_source("https://acme.io/plans", SourceType.PRICING, confidence=Confidence.MEDIUM),
        make_source("https://acme.io/docs", SourceType.DOCS),
        make_source("https://acme.io/docs/api", SourceType.DOCS, retrieved_at=now - timedelta(days=3)),
        make_source("https://acme.io/careers", SourceType.JOBS),
        make_source("https://www.g2.com/products/acme/reviews", SourceType.REVIEWS, confidence=Confidence.MEDIUM),
    ]

def test_quota_smaller_than_type_count_is_all_distinct(candidates):
    """
    WHY: A small shortlist should spread across as many kinds of evidence as possible.
    HOW: Quota 3 over 6 candidates spanning 4 types.
    EXPECTED: 3 picks, 3 different types, high-confidence types first.
    """
    picked = select_shortlist(candidates, 3)
    assert len(picked) == 3
    assert len({s.source_type for s in picked}) == 3
    assert all(s.confidence == Confidence.HIGH for s in picked)

def test_no_type_repeats_until_all_types_seen(candidates):
    """
    WHY: Diversity comes before depth.
    HOW: Quota large enough to take every candidate.
    EXPECTED: The first 4 picks cover all 4 types; the 2 repeats come after.
    """
    picked = select_shortlist(candidates, 6)
    assert len(picked) == 6
    assert len({s.source_type for s in picked[:4]}) == 4
    assert {s.url for s in picked[4:]} == {"https://acme.io/plans", "https://acme.io/docs/api"}

def test_within_type_best_ranked_first(candidates):
    picked = select_shortlist(candidates, 6)
    pricing = [s.url for s in picked if s.source_type == SourceType.PRICING]
    docs = [s.url for s in picked if s.source_type == SourceType.DOCS]
    # higher confidence first, then newer retrieval
    assert pricing == ["https://acme.io/pricing", "https://acme.io/plans"]
    assert docs == ["https://acme.io/docs", "https://acme.io/docs/api"]

def test_output_independent_of_input_order(candidates):
    """
    WHY: The same evidence must always yield the same shortlist.
    HOW: Shuffle the candidates several times with fixed seeds.
    EXPECTED: Identical URL sequence every time.
    """
    expected = [s.url for s in select_shortlist(candidates, 4)]
    for seed in range(5):
        shuffled = list(candidates)
        random.Random(seed).shuffle(shuffled)
        assert [s.url for s in select_shortlist(shuffled, 4)] == expected

def test_ties_broken_by_text_length_then_url(make_source):
    sources = [
        make_source("https://acme.io/b", SourceType.MARKETING_SITE, text="short"),
        make_source("https://acme.io/a", SourceType.MARKETING_SITE, text="short"),
        make_source("https://acme.io/c", SourceType.MARKETING_SITE, text="much longer text"),
    ]
    assert [s.url for s in select_shortlist(sources, 3)] == [
        "https://acme.io/c",
        "https://acme.io/a",
        "https://acme.io/b",
    ]

def test_duplicate_urls_collapse(make_source):
    sources = [
        make_source("https://acme.io/pricing", SourceType.PRICING, confidence=Confidence.MEDIUM),
        make_source("http://www.acme.io/pricing/", SourceType.PRICING),
    ]
    picked = select_shortlist(sources, 5)
    assert len(picked) == 1
    assert picked[0].confidence == Confidence.HIGH

def test_fewer_candidates_than_quota(make_source):
    picked = select_shortlist([make_source("https://acme.io/", SourceType.MARKETING_SITE)], 8)
    assert len(picked) == 1
    assert select_shortlist([], 8) == []

def test_non_positive_quota_rejected(candidates):
    with pytest.raises(ValueError):
        select_shortlist(candidates, 0)
