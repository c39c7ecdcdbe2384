"""Target URL builder.

Turns a competitor domain into a bounded, priority-ordered list of pages
to fetch. Highest-signal pages come first so that a fetch budget that runs
out early has already spent itself on them.
"""

from typing import List, Optional, Tuple
from ..config import get_settings
from ..log import get_logger
from ..schemas.evidence import SourceType, TargetUrl
from .url import canonical_key, normalize_domain

logger = get_logger("targets")

# (path, label, expected source type), in fetch priority order
TARGET_PATHS: Tuple[Tuple[str, str, SourceType], ...] = (
    ("/", "Homepage", SourceType.MARKETING_SITE),
    ("/pricing", "Pricing", SourceType.PRICING),
    ("/changelog", "Changelog", SourceType.CHANGELOG),
    ("/releases", "Releases", SourceType.CHANGELOG),
    ("/updates", "Updates", SourceType.CHANGELOG),
    ("/docs", "Documentation", SourceType.DOCS),
    ("/careers", "Careers", SourceType.JOBS),
    ("/jobs", "Jobs", SourceType.JOBS),
    ("/features", "Features", SourceType.MARKETING_SITE),
    ("/product", "Product", SourceType.MARKETING_SITE),
)

def build_target_urls(domain_or_url: str, max_pages: Optional[int] = None) -> List[TargetUrl]:
    """
    Builds the ordered, deduplicated target list for one competitor.
    Returns an empty list when no domain can be recovered from the input.
    """
    if max_pages is None:
        max_pages = get_settings().MAX_PAGES_PER_COMPETITOR
    if max_pages <= 0:
        raise ValueError(f"max_pages must be > 0, got {max_pages}")

    domain = normalize_domain(domain_or_url)
    if not domain:
        logger.warning(f"No domain recoverable from {domain_or_url!r}")
        return []

    targets = []
    seen = set()
    for path, label, source_type in TARGET_PATHS:
        url = f"https://{domain}{path}"
        key = canonical_key(url)
        if key in seen:
            continue
        seen.add(key)
        targets.append(TargetUrl(url=url, label=label, expected_source_type=source_type))
        if len(targets) >= max_pages:
            break
    return targets
