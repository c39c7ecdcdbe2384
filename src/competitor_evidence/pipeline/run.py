import asyncio
from typing import List, Optional
from ..config import Settings, get_settings
from ..log import get_logger
from ..retrieval.fetch import Fetcher
from ..retrieval.search import SearchProvider, find_review_targets
from ..retrieval.specialized import extract_source
from ..retrieval.targets import build_target_urls
from ..retrieval.url import normalize_domain
from ..schemas.evidence import CollectionResult, ExtractedSource
from ..selection.shortlist import select_shortlist

logger = get_logger("pipeline")

class EvidenceCollector:
    """
    One collection run per call: targets -> review search -> parallel fetch -> extract -> shortlist.
    Holds no state between calls; persistence and scheduling belong to the caller.
    """

    def __init__(
        self,
        search_provider: Optional[SearchProvider] = None,
        fetcher: Optional[Fetcher] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.search_provider = search_provider
        self.fetcher = fetcher or Fetcher(
            user_agent=self.settings.USER_AGENT,
            max_chars=self.settings.MAX_EXTRACTED_CHARS,
            max_response_chars=self.settings.MAX_RESPONSE_CHARS,
            retry_attempts=self.settings.FETCH_RETRY_ATTEMPTS,
            retry_wait_ms=self.settings.FETCH_RETRY_WAIT_MS,
        )

    async def collect(self, competitor_name: str, domain_or_url: str) -> CollectionResult:
        s = self.settings
        domain = normalize_domain(domain_or_url)
        logger.info(f"Collecting evidence for {competitor_name} ({domain})")

        # 1. Targets
        targets = build_target_urls(domain, max_pages=s.MAX_PAGES_PER_COMPETITOR)

        # 2. Review search; failures degrade to the target list alone
        review_targets = await find_review_targets(
            self.search_provider, competitor_name, s.REVIEW_SEARCH_MAX_RESULTS
        )
        if review_targets:
            logger.info(f"Added {len(review_targets)} review targets from search")

        # 3. Fetch
        pages, stats = await self.fetcher.fetch_pages(
            targets + review_targets,
            budget_ms=s.FETCH_BUDGET_MS,
            timeout_ms=s.FETCH_TIMEOUT_MS,
            concurrency=s.FETCH_CONCURRENCY,
        )

        # 4. Classify + extract
        sources: List[ExtractedSource] = []
        for page in pages:
            source = extract_source(
                page,
                max_chars=s.MAX_EXTRACTED_CHARS,
                window_months=s.CHANGELOG_WINDOW_MONTHS,
            )
            if source is not None:
                sources.append(source)

        # 5. Shortlist
        shortlist = select_shortlist(sources, s.SHORTLIST_QUOTA) if sources else []

        logger.info(
            f"Collection for {domain} done: {len(sources)} sources, "
            f"{len(shortlist)} shortlisted, {stats.failures} fetch failures"
        )
        return CollectionResult(
            competitor=competitor_name,
            domain=domain,
            targets=targets + review_targets,
            pages=pages,
            sources=sources,
            shortlist=shortlist,
            stats=stats,
        )

    def collect_sync(self, competitor_name: str, domain_or_url: str) -> CollectionResult:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.collect(competitor_name, domain_or_url))
