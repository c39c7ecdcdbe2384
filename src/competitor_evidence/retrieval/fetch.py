"""Concurrent HTTP fetching under a shared time budget.

Every target gets its own task and its own timeout; the batch as a whole is
bounded by an aggregate budget. Failures of any kind come back as
FetchedPage.error so one bad URL never takes the batch down.
"""

import asyncio
import time
import httpx
from typing import List, Optional, Sequence, Tuple
from tenacity import AsyncRetrying, stop_after_attempt, wait_fixed, retry_if_exception_type
from ..config import get_settings
from ..log import get_logger
from ..schemas.evidence import FetchedPage, FetchStats, TargetUrl
from .extract import extract_content
from .url import canonical_key, normalize_url

logger = get_logger("fetch")

HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

class NonHtmlContentError(Exception):
    pass

class Fetcher:
    def __init__(
        self,
        user_agent: Optional[str] = None,
        max_chars: Optional[int] = None,
        max_response_chars: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_wait_ms: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.headers = {
            "User-Agent": user_agent or settings.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }
        self.max_chars = max_chars or settings.MAX_EXTRACTED_CHARS
        self.max_response_chars = max_response_chars or settings.MAX_RESPONSE_CHARS
        self.retry_attempts = retry_attempts or settings.FETCH_RETRY_ATTEMPTS
        self.retry_wait_s = (settings.FETCH_RETRY_WAIT_MS if retry_wait_ms is None else retry_wait_ms) / 1000.0
        # Injected in tests (httpx.MockTransport); None means real network
        self.transport = transport

    async def _get(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        """
        GET with retries on transport errors only. HTTP status errors are not retried.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_fixed(self.retry_wait_s),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                resp = await client.get(url)
        return resp

    async def _fetch_one(self, client: httpx.AsyncClient, target: TargetUrl) -> FetchedPage:
        resp = await self._get(client, target.url)
        resp.raise_for_status()
        content_type = resp.headers.get("content-type", "").split(";")[0].strip().lower()
        if content_type and content_type not in HTML_CONTENT_TYPES:
            raise NonHtmlContentError(f"Unsupported content type: {content_type}")

        # CPU-bound parse runs in a worker thread, never on the event loop
        html = resp.text[:self.max_response_chars]
        data = await asyncio.to_thread(extract_content, html, target.url, self.max_chars)
        if not data["text"]:
            return FetchedPage(
                url=target.url,
                label=target.label,
                status_code=resp.status_code,
                final_url=str(resp.url),
                error="No extractable text",
            )
        return FetchedPage(
            url=target.url,
            text=data["text"],
            title=data["title"],
            truncated=data["truncated"],
            label=target.label,
            status_code=resp.status_code,
            final_url=str(resp.url),
            published_at=data["published_at"],
        )

    async def fetch_page(
        self,
        client: httpx.AsyncClient,
        target: TargetUrl,
        timeout_s: float,
        semaphore: asyncio.Semaphore,
    ) -> FetchedPage:
        """
        Fetches one target. The timeout starts once a concurrency slot is held.
        Never raises; every failure is folded into FetchedPage.error.
        """
        async with semaphore:
            try:
                return await asyncio.wait_for(self._fetch_one(client, target), timeout=timeout_s)
            except asyncio.TimeoutError:
                error = f"Timeout after {int(timeout_s * 1000)}ms"
                status = None
            except httpx.HTTPStatusError as e:
                error = f"HTTP {e.response.status_code}: {e.response.reason_phrase}"
                status = e.response.status_code
            except httpx.HTTPError as e:
                error = f"{e.__class__.__name__}: {e}"
                status = None
            except NonHtmlContentError as e:
                error = str(e)
                status = None
            except Exception as e:
                logger.exception(f"Unexpected error fetching {target.url}")
                error = f"{e.__class__.__name__}: {e}"
                status = None
        logger.warning(f"Fetch failed for {target.url}: {error}")
        return FetchedPage(url=target.url, label=target.label, status_code=status, error=error)

    async def fetch_pages(
        self,
        targets: Sequence[TargetUrl],
        budget_ms: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        concurrency: Optional[int] = None,
    ) -> Tuple[List[FetchedPage], FetchStats]:
        """
        Fetches all targets concurrently and returns whatever settled within the budget.
        Targets still in flight when the budget elapses are cancelled, not awaited,
        and reported with a 'Budget exceeded' error.
        """
        settings = get_settings()
        budget_s = (settings.FETCH_BUDGET_MS if budget_ms is None else budget_ms) / 1000.0
        timeout_s = (settings.FETCH_TIMEOUT_MS if timeout_ms is None else timeout_ms) / 1000.0
        if concurrency is None:
            concurrency = settings.FETCH_CONCURRENCY
        if budget_s <= 0 or timeout_s <= 0 or concurrency <= 0:
            raise ValueError("budget, timeout and concurrency must all be > 0")

        unique = dedupe_targets(targets)
        stats = FetchStats(total=len(unique))
        started = time.monotonic()
        if not unique:
            return [], stats

        semaphore = asyncio.Semaphore(concurrency)
        async with httpx.AsyncClient(
            headers=self.headers,
            follow_redirects=True,
            timeout=httpx.Timeout(timeout_s),
            transport=self.transport,
        ) as client:
            tasks = [
                asyncio.create_task(self.fetch_page(client, target, timeout_s, semaphore))
                for target in unique
            ]
            _, pending = await asyncio.wait(tasks, timeout=budget_s)
            for task in pending:
                task.cancel()

        pages = []
        for target, task in zip(unique, tasks):
            if task in pending:
                stats.abandoned += 1
                pages.append(FetchedPage(
                    url=target.url,
                    label=target.label,
                    error=f"Budget exceeded after {int(budget_s * 1000)}ms",
                ))
            else:
                pages.append(task.result())

        stats.successes = sum(1 for p in pages if p.ok)
        stats.failures = len(pages) - stats.successes
        stats.elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Parallel fetch completed: {stats.successes}/{stats.total} ok, "
            f"{stats.failures} failed ({stats.abandoned} abandoned) in {stats.elapsed_ms}ms"
        )
        return pages, stats

def dedupe_targets(targets: Sequence[TargetUrl]) -> List[TargetUrl]:
    """Normalizes target URLs and drops later targets that share a canonical key."""
    seen = set()
    out = []
    for target in targets:
        url = normalize_url(target.url)
        key = canonical_key(url)
        if key in seen:
            continue
        seen.add(key)
        out.append(target.model_copy(update={"url": url}))
    return out
