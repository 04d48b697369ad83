"""
Headless Render Pool

Bounded pool of Playwright browser contexts for render-dependent sites.

Features:
- One Chromium process per pool, one browser context per worker slot
- Idle contexts are reused across tasks and refreshed after max_uses_per_context pages
- Fixed max concurrency (default 4), per-task timeout (default 60s)
- Automatic retry with backoff (default 2 retries)
- Cooperative cancellation: no new task starts once the cancel event is set
- Scoped lifetime: use as an async context manager so every exit path
  closes all contexts and stops the browser process

The pool is owned by exactly one audit run. Startup failure raises
WorkerPoolInitError, which aborts the run.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from runner.logging_setup import get_logger
from site_audit.config import AuditConfig
from site_audit.exceptions import AuditCancelledError, NetworkError, WorkerPoolInitError
from site_audit.retry import retry_with_backoff

logger = get_logger("render_pool")

# Collected inside the rendered DOM after the settle interval
RENDER_METRICS_SCRIPT = """
() => ({
    viewport: document.querySelector('meta[name="viewport"]')?.getAttribute('content') || null,
    charset: document.characterSet || null,
    lang: document.documentElement.lang || null,
    hasServiceWorker: 'serviceWorker' in navigator,
    isInteractive: document.readyState === 'complete' || document.readyState === 'interactive',
    clientHeight: document.documentElement.clientHeight,
    scrollHeight: document.documentElement.scrollHeight,
    isScrollable: document.documentElement.scrollHeight > document.documentElement.clientHeight,
    firstContentfulPaint: performance.getEntriesByName('first-contentful-paint')[0]?.startTime || null,
})
"""

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
]


@dataclass
class RenderedPage:
    """Raw result of rendering one URL."""
    url: str
    status_code: int
    html: str
    load_time_ms: float
    headers: Dict[str, str] = field(default_factory=dict)
    render_metrics: Dict[str, Any] = field(default_factory=dict)


class RenderPool:
    """
    Run-owned pool of headless browser contexts.

    Usage:
        async with RenderPool(config, cancel_event) as pool:
            page = await pool.render("https://example.com/")
    """

    def __init__(
        self,
        config: AuditConfig,
        cancel_event: Optional[asyncio.Event] = None,
        max_uses_per_context: int = 25,
        playwright_factory: Callable = async_playwright,
    ):
        """
        Initialize render pool (nothing is launched until start()).

        Args:
            config: Audit configuration (pool size, timeouts, retries)
            cancel_event: Run cancellation signal
            max_uses_per_context: Recreate a context after this many pages
            playwright_factory: Callable returning a Playwright context manager
        """
        self.config = config
        self.cancel_event = cancel_event or asyncio.Event()
        self.max_uses = max_uses_per_context
        self._playwright_factory = playwright_factory

        self.playwright_instance: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self._idle: Optional[asyncio.Queue] = None
        self._contexts: List[BrowserContext] = []
        self.usage_counts: Dict[int, int] = {}
        self.lock = asyncio.Lock()
        self.pages_rendered = 0
        self.failures = 0

    async def __aenter__(self) -> "RenderPool":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def start(self):
        """
        Launch the browser and create one context per worker slot.

        Raises:
            WorkerPoolInitError: If Playwright or Chromium cannot start
        """
        try:
            self.playwright_instance = await self._playwright_factory().start()
            self.browser = await self.playwright_instance.chromium.launch(
                headless=True,
                args=BROWSER_ARGS,
            )
            self._idle = asyncio.Queue()
            for worker_id in range(self.config.pool_size):
                context = await self._new_context()
                self._contexts.append(context)
                self.usage_counts[worker_id] = 0
                self._idle.put_nowait(worker_id)
        except Exception as e:
            logger.error(f"Render pool failed to start: {e}")
            await self.close()
            raise WorkerPoolInitError(f"Could not start headless browser pool: {e}") from e

        logger.info(
            f"Render pool started: {self.config.pool_size} workers, "
            f"task timeout {self.config.task_timeout:.0f}s, "
            f"max {self.max_uses} pages per context"
        )

    async def _new_context(self) -> BrowserContext:
        return await self.browser.new_context(
            user_agent=self.config.user_agent,
            viewport={"width": 1366, "height": 768},
            ignore_https_errors=True,
        )

    async def _refresh_context(self, worker_id: int):
        """Replace a worker's context (after max uses or a failed task)."""
        old = self._contexts[worker_id]
        try:
            await old.close()
        except PlaywrightError as e:
            logger.warning(f"Error closing context for worker {worker_id}: {e}")
        self._contexts[worker_id] = await self._new_context()
        self.usage_counts[worker_id] = 0

    async def _render_once(self, url: str) -> RenderedPage:
        """One attempt, bounded by the per-task timeout."""
        if self.cancel_event.is_set():
            raise AuditCancelledError(f"Cancelled before rendering {url}")

        worker_id = await self._idle.get()
        healthy = True
        try:
            if self.usage_counts[worker_id] >= self.max_uses:
                logger.debug(f"Context for worker {worker_id} reached max uses, refreshing")
                await self._refresh_context(worker_id)
            self.usage_counts[worker_id] += 1
            return await asyncio.wait_for(
                self._navigate(self._contexts[worker_id], url),
                timeout=self.config.task_timeout,
            )
        except asyncio.TimeoutError as e:
            healthy = False
            raise NetworkError(f"Render timed out after {self.config.task_timeout:.0f}s", url=url) from e
        except PlaywrightError as e:
            healthy = False
            raise NetworkError(f"Render failed: {e}", url=url) from e
        finally:
            if not healthy and self.browser is not None:
                try:
                    await self._refresh_context(worker_id)
                except PlaywrightError as e:
                    logger.warning(f"Could not refresh context for worker {worker_id}: {e}")
            self._idle.put_nowait(worker_id)

    async def _navigate(self, context: BrowserContext, url: str) -> RenderedPage:
        page = await context.new_page()
        try:
            start = time.monotonic()
            response = await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout * 1000,
            )
            try:
                await page.wait_for_load_state(
                    "networkidle",
                    timeout=self.config.navigation_timeout * 1000,
                )
            except PlaywrightTimeoutError:
                logger.debug(f"Network never went idle for {url}, continuing")
            await asyncio.sleep(self.config.settle_delay)
            load_time_ms = (time.monotonic() - start) * 1000

            html = await page.content()
            metrics = await page.evaluate(RENDER_METRICS_SCRIPT)
            status = response.status if response is not None else 200
            headers = await response.all_headers() if response is not None else {}

            logger.info(
                f"RENDER {status} {page.url} ({load_time_ms / 1000:.2f}s, "
                f"{len(html.encode('utf-8'))} bytes)"
            )
            return RenderedPage(
                url=page.url,
                status_code=status,
                html=html,
                load_time_ms=load_time_ms,
                headers=headers,
                render_metrics=metrics,
            )
        finally:
            await page.close()

    async def render(self, url: str) -> RenderedPage:
        """
        Render a URL with retry and backoff.

        Raises:
            NetworkError: After all retries failed
            AuditCancelledError: If cancellation was observed
        """
        if self._idle is None:
            raise WorkerPoolInitError("Render pool used before start()")
        try:
            result = await retry_with_backoff(
                lambda: self._render_once(url),
                description=url,
                max_retries=self.config.max_retries,
                base_delay=self.config.retry_backoff,
                cancel_event=self.cancel_event,
            )
        except NetworkError:
            self.failures += 1
            raise
        self.pages_rendered += 1
        return result

    async def close(self):
        """Close every context, the browser and Playwright. Safe to call twice."""
        async with self.lock:
            if self._contexts:
                stats = self.get_stats()
                logger.info(
                    f"Render pool stats: {stats['pages_rendered']} pages rendered, "
                    f"{stats['failures']} failures, context uses {stats['usage_counts']}"
                )
            for worker_id, context in enumerate(self._contexts):
                try:
                    await context.close()
                except PlaywrightError as e:
                    logger.warning(f"Error closing context {worker_id}: {e}")
            self._contexts = []
            self._idle = None

            if self.browser is not None:
                try:
                    await self.browser.close()
                except PlaywrightError as e:
                    logger.warning(f"Error closing browser: {e}")
                finally:
                    self.browser = None

            if self.playwright_instance is not None:
                try:
                    await self.playwright_instance.stop()
                except PlaywrightError as e:
                    logger.warning(f"Error stopping Playwright: {e}")
                finally:
                    self.playwright_instance = None

            logger.debug("Render pool closed")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "pool_size": self.config.pool_size,
            "active_contexts": len(self._contexts),
            "usage_counts": dict(self.usage_counts),
            "pages_rendered": self.pages_rendered,
            "failures": self.failures,
        }
