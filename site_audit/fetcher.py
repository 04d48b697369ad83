"""
Page Fetcher

Turns a prioritized URL list into PageRecords using one of two strategies:
- Static: httpx GET + BeautifulSoup extraction, fetched sequentially
- Rendered: dispatched to the RenderPool, awaited in parallel up to the
  pool's concurrency

Both strategies are best-effort per URL: a URL that still fails after its
retries is logged and skipped, never aborting the batch.
"""

import asyncio
import time
from typing import Callable, Dict, List, Optional, Sequence

import httpx

from runner.logging_setup import get_logger
from site_audit.config import AuditConfig
from site_audit.exceptions import AuditCancelledError, NetworkError, ParseError
from site_audit.extraction import extract_page_record
from site_audit.models import FetchMethod, PageRecord
from site_audit.retry import retry_with_backoff

logger = get_logger("page_fetcher")

# Called after each URL finishes (successfully or not): (done, total)
ProgressHook = Callable[[int, int], None]


class PageFetcher:
    """Fetches pages for one audit run."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: AuditConfig,
        render_pool=None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        """
        Args:
            client: Shared httpx client owned by the run
            config: Audit configuration
            render_pool: Started RenderPool (required for rendered fetches)
            cancel_event: Run cancellation signal
        """
        self.client = client
        self.config = config
        self.render_pool = render_pool
        self.cancel_event = cancel_event or asyncio.Event()
        self.stats: Dict[str, int] = {"fetched": 0, "failed": 0}

    async def _get_once(self, url: str) -> PageRecord:
        start = time.monotonic()
        try:
            response = await self.client.get(
                url,
                timeout=self.config.request_timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timed out after {self.config.request_timeout:.0f}s", url=url) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Request failed: {e}", url=url) from e

        duration = time.monotonic() - start
        content = response.content
        logger.info(f"HTTP {response.status_code} {url} ({duration:.2f}s, {len(content)} bytes)")

        if response.status_code >= 500:
            raise NetworkError(f"Server error {response.status_code}", url=url, status=response.status_code)
        if response.status_code >= 400:
            raise NetworkError(
                f"Client error {response.status_code}",
                url=url,
                status=response.status_code,
                retryable=False,
            )

        content_type = response.headers.get("content-type", "text/html")
        if "html" not in content_type.lower():
            raise ParseError(f"Not an HTML page ({content_type}): {url}")

        return extract_page_record(
            url=str(response.url),
            html=response.text,
            status_code=response.status_code,
            fetch_method=FetchMethod.STATIC,
            load_time_ms=duration * 1000,
            byte_size=len(content),
            response_headers=dict(response.headers),
        )

    async def fetch_static(self, url: str) -> PageRecord:
        """
        Static fetch with retry and backoff.

        Raises:
            NetworkError: All attempts failed
            ParseError: The response is not usable HTML
        """
        return await retry_with_backoff(
            lambda: self._get_once(url),
            description=url,
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_backoff,
            cancel_event=self.cancel_event,
        )

    async def fetch_rendered(self, url: str) -> PageRecord:
        """
        Render through the pool and run the shared extraction on the DOM.

        Raises:
            NetworkError: All render attempts failed
            ParseError: The rendered DOM could not be parsed
        """
        if self.render_pool is None:
            raise NetworkError("No render pool available for rendered fetch", url=url, retryable=False)
        rendered = await self.render_pool.render(url)
        return extract_page_record(
            url=rendered.url,
            html=rendered.html,
            status_code=rendered.status_code,
            fetch_method=FetchMethod.RENDERED,
            load_time_ms=rendered.load_time_ms,
            response_headers=rendered.headers,
            render_metrics=rendered.render_metrics,
        )

    async def fetch_page(self, url: str, rendered: bool) -> Optional[PageRecord]:
        """Fetch one URL; None when it failed and was skipped."""
        try:
            if rendered:
                record = await self.fetch_rendered(url)
            else:
                record = await self.fetch_static(url)
        except (NetworkError, ParseError) as e:
            self.stats["failed"] += 1
            logger.warning(f"Skipping {url}: {e}")
            return None
        self.stats["fetched"] += 1
        return record

    async def fetch_batch(
        self,
        urls: Sequence[str],
        rendered: bool,
        progress: Optional[ProgressHook] = None,
    ) -> List[PageRecord]:
        """
        Fetch a prioritized URL list.

        Args:
            urls: URLs in submission order (tier 1 and 2 first)
            rendered: Use the render pool (parallel) instead of static GETs (sequential)
            progress: Optional hook called after every URL

        Returns:
            PageRecords for the URLs that succeeded. Completion order is not
            guaranteed for rendered batches.

        Raises:
            AuditCancelledError: The run was cancelled; remaining work is abandoned
        """
        total = len(urls)
        records: List[PageRecord] = []
        if total == 0:
            return records

        logger.info(f"Fetching {total} pages ({'rendered' if rendered else 'static'})")

        if not rendered:
            for done, url in enumerate(urls, start=1):
                if self.cancel_event.is_set():
                    raise AuditCancelledError("Audit cancelled during static fetch")
                record = await self.fetch_page(url, rendered=False)
                if record is not None:
                    records.append(record)
                if progress:
                    progress(done, total)
            return records

        # Tasks are created in priority order; the pool serves waiters FIFO
        tasks = [asyncio.ensure_future(self.fetch_page(url, rendered=True)) for url in urls]
        done = 0
        try:
            for next_done in asyncio.as_completed(tasks):
                record = await next_done
                done += 1
                if record is not None:
                    records.append(record)
                if progress:
                    progress(done, total)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return records
