import pytest
from competitor_evidence.retrieval.url import (
    canonical_key,
    dedupe_urls,
    domain_matches,
    normalize_domain,
    normalize_url,
)
from competitor_evidence.retrieval.targets import build_target_urls
from competitor_evidence.schemas.evidence import SourceType

def test_normalize_domain_strips_scheme_www_and_path():
    """
    WHY: Competitors are entered as bare domains, full URLs, or anything in between.
    HOW: Normalize several spellings of the same site.
    EXPECTED: All reduce to the bare lowercase host.
    """
    for value in ["monday.com", "www.monday.com", "https://www.Monday.com/pricing?x=1", "http://monday.com:8080/"]:
        assert normalize_domain(value) == "monday.com"

def test_normalize_domain_never_raises():
    """
    WHY: Bad input must degrade, not crash a collection run.
    HOW: Feed an unparsable bracketed host and an empty string.
    EXPECTED: A best-effort string, no exception.
    """
    assert normalize_domain("") == ""
    assert normalize_domain("http://[broken/path") == "[broken"

def test_normalize_url_adds_scheme_and_drops_fragment():
    assert normalize_url("Example.COM/Pricing#plans") == "https://example.com/Pricing"
    assert normalize_url("http://example.com") == "http://example.com/"

def test_canonical_key_collapses_scheme_and_www():
    """
    WHY: The same page must not be fetched or shortlisted twice.
    HOW: Compare keys of URLs differing only by scheme, www. and trailing slash.
    EXPECTED: Identical keys.
    """
    assert canonical_key("http://www.example.com/pricing/") == canonical_key("https://example.com/pricing")
    assert dedupe_urls(["https://a.com/x", "http://www.a.com/x/", "https://a.com/y"]) == [
        "https://a.com/x",
        "https://a.com/y",
    ]

def test_domain_matches_subdomains():
    assert domain_matches("docs.example.com", ["example.com"])
    assert domain_matches("https://www.example.com/pricing", ["https://example.com"])
    assert not domain_matches("notexample.com", ["example.com"])
    assert not domain_matches(None, ["example.com"])

def test_build_targets_priority_order():
    """
    WHY: If the fetch budget runs out early, the highest-value pages must already have been tried.
    HOW: Build targets for a domain.
    EXPECTED: Homepage, pricing and changelog come first; every URL lives on the normalized domain.
    """
    targets = build_target_urls("https://www.acme.io/about", max_pages=10)
    assert [t.label for t in targets[:3]] == ["Homepage", "Pricing", "Changelog"]
    assert targets[1].expected_source_type == SourceType.PRICING
    assert all(t.url.startswith("https://acme.io/") for t in targets)

def test_build_targets_cap():
    """
    WHY: Target lists are bounded per competitor.
    HOW: Ask for 3 pages.
    EXPECTED: Exactly 3, in priority order.
    """
    targets = build_target_urls("acme.io", max_pages=3)
    assert len(targets) == 3
    assert targets[-1].label == "Changelog"

def test_build_targets_dedup_across_spellings():
    """
    WHY: 'http://www.acme.io' and 'acme.io' name the same competitor.
    HOW: Build targets for both spellings.
    EXPECTED: Identical lists with no duplicate URLs.
    """
    a = build_target_urls("http://www.acme.io")
    b = build_target_urls("acme.io")
    assert [t.url for t in a] == [t.url for t in b]
    assert len({canonical_key(t.url) for t in a}) == len(a)

def test_build_targets_rejects_non_positive_cap():
    with pytest.raises(ValueError):
        build_target_urls("acme.io", max_pages=0)

def test_build_targets_empty_input():
    assert build_target_urls("   ") == []
