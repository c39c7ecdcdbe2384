"""Search-backed target augmentation.

The search capability is passed in by the caller (a SearchProvider), never
looked up from a module-level global, so tests can hand in a fake.
"""

from typing import List, Optional, Protocol
from ..log import get_logger
from ..schemas.evidence import SearchResult, SourceType, TargetUrl
from .url import dedupe_urls

logger = get_logger("search")

REVIEW_QUERY_TEMPLATE = "{name} reviews G2 Capterra Trustpilot"

class SearchProvider(Protocol):
    async def search(self, query: str, max_results: int) -> List[SearchResult]:
        ...

async def find_review_targets(
    provider: Optional[SearchProvider],
    competitor_name: str,
    max_results: int,
) -> List[TargetUrl]:
    """
    Looks up review-site pages for a competitor.
    Any provider failure is logged and yields an empty list; collection carries on without reviews.
    """
    if provider is None or max_results <= 0 or not competitor_name.strip():
        return []
    query = REVIEW_QUERY_TEMPLATE.format(name=competitor_name.strip())
    try:
        results = await provider.search(query, max_results)
    except Exception as e:
        logger.warning(f"Review search failed for {competitor_name!r}: {e}")
        return []

    urls = dedupe_urls(r.url for r in (results or []) if r.url)
    return [
        TargetUrl(url=url, label="Review", expected_source_type=SourceType.REVIEWS)
        for url in urls[:max_results]
    ]
