"""Source-type classification.

An ordered list of (predicate, source type) rules. URL rules are listed
before title rules, and title rules before content rules; the first match
wins and marketing_site is the fallback, so classification always succeeds.
Adding a type means adding rules here, nothing else.
"""

from typing import Callable, NamedTuple, Optional, Tuple
from urllib.parse import urlsplit
from ..schemas.evidence import SourceType

# How much page text content rules look at
CONTENT_SCAN_CHARS = 5000

class PageSignals(NamedTuple):
    host: str
    path_segments: Tuple[str, ...]
    title: str
    text: str

class ClassificationRule(NamedTuple):
    name: str
    source_type: SourceType
    predicate: Callable[[PageSignals], bool]

def page_signals(url: str, title: Optional[str], text: Optional[str]) -> PageSignals:
    raw = (url or "").strip()
    if "://" not in raw:
        raw = "https://" + raw
    try:
        parts = urlsplit(raw)
        host = (parts.hostname or "").lower()
        path = parts.path.lower()
    except ValueError:
        host, path = "", ""
    return PageSignals(
        host=host,
        path_segments=tuple(s for s in path.split("/") if s),
        title=(title or "").lower(),
        text=(text or "")[:CONTENT_SCAN_CHARS].lower(),
    )

def path_has(*keywords: str) -> Callable[[PageSignals], bool]:
    """Matches a path segment equal to a keyword or starting with 'keyword-'/'keyword_'/'keyword.'."""
    def predicate(s: PageSignals) -> bool:
        for seg in s.path_segments:
            for kw in keywords:
                if seg == kw or seg.startswith((kw + "-", kw + "_", kw + ".")):
                    return True
        return False
    return predicate

def host_is(*domains: str) -> Callable[[PageSignals], bool]:
    def predicate(s: PageSignals) -> bool:
        return any(s.host == d or s.host.endswith("." + d) for d in domains)
    return predicate

def host_starts(*prefixes: str) -> Callable[[PageSignals], bool]:
    def predicate(s: PageSignals) -> bool:
        return s.host.startswith(prefixes)
    return predicate

def title_has(*phrases: str) -> Callable[[PageSignals], bool]:
    def predicate(s: PageSignals) -> bool:
        return any(p in s.title for p in phrases)
    return predicate

def text_has(*phrases: str) -> Callable[[PageSignals], bool]:
    def predicate(s: PageSignals) -> bool:
        return any(p in s.text for p in phrases)
    return predicate

REVIEW_SITES = ("g2.com", "capterra.com", "trustpilot.com", "trustradius.com", "getapp.com", "softwareadvice.com")
JOB_BOARDS = ("greenhouse.io", "lever.co", "workable.com", "ashbyhq.com")
STATUS_HOSTS = ("statuspage.io", "status.io")

CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    # 1. URL host/path
    ClassificationRule("url:review_site", SourceType.REVIEWS, host_is(*REVIEW_SITES)),
    ClassificationRule("url:job_board", SourceType.JOBS, host_is(*JOB_BOARDS)),
    ClassificationRule("url:status_host", SourceType.STATUS, host_is(*STATUS_HOSTS)),
    ClassificationRule("url:status_subdomain", SourceType.STATUS, host_starts("status.")),
    ClassificationRule("url:docs_subdomain", SourceType.DOCS, host_starts("docs.", "developer.", "developers.")),
    ClassificationRule(
        "url:changelog_path", SourceType.CHANGELOG,
        path_has("changelog", "release-notes", "releases", "release", "updates", "whats-new", "what-s-new"),
    ),
    ClassificationRule("url:pricing_path", SourceType.PRICING, path_has("pricing", "plans", "price", "prices", "billing")),
    ClassificationRule("url:reviews_path", SourceType.REVIEWS, path_has("reviews", "testimonials")),
    ClassificationRule("url:jobs_path", SourceType.JOBS, path_has("careers", "jobs", "hiring", "openings", "join-us")),
    ClassificationRule(
        "url:docs_path", SourceType.DOCS,
        path_has("docs", "documentation", "api", "developers", "guide", "guides", "reference"),
    ),
    ClassificationRule("url:status_path", SourceType.STATUS, path_has("status", "uptime")),
    # 2. Title
    ClassificationRule("title:changelog", SourceType.CHANGELOG, title_has("changelog", "release notes", "what's new")),
    ClassificationRule("title:pricing", SourceType.PRICING, title_has("pricing", "plans & pricing", "plans and pricing")),
    ClassificationRule("title:reviews", SourceType.REVIEWS, title_has("reviews", "ratings")),
    ClassificationRule("title:jobs", SourceType.JOBS, title_has("careers", "jobs", "we're hiring", "open positions")),
    ClassificationRule("title:docs", SourceType.DOCS, title_has("documentation", "api reference", "developer docs")),
    ClassificationRule("title:status", SourceType.STATUS, title_has("system status", "service status", "uptime")),
    # 3. Content
    ClassificationRule("text:reviews", SourceType.REVIEWS, text_has("customer reviews", "verified reviewer", "write a review")),
    ClassificationRule("text:status", SourceType.STATUS, text_has("all systems operational", "incident history")),
)

DEFAULT_SOURCE_TYPE = SourceType.MARKETING_SITE

def match_rule(url: str, title: Optional[str] = None, text: Optional[str] = None) -> Optional[ClassificationRule]:
    signals = page_signals(url, title, text)
    for rule in CLASSIFICATION_RULES:
        if rule.predicate(signals):
            return rule
    return None

def detect_source_type(url: str, title: Optional[str] = None, text: Optional[str] = None) -> SourceType:
    """
    Maps a page to exactly one source type. Deterministic; never fails.
    """
    rule = match_rule(url, title, text)
    return rule.source_type if rule else DEFAULT_SOURCE_TYPE
