"""
Audit pipeline orchestration.

One run walks the phases in order:
1. Profile the site (static vs rendered strategy)
2. Start the render pool when the site needs one
3. Discover pages with every strategy concurrently
4. Select the page budget by priority tier and fetch
5. Deduplicate near-identical pages
6. Run the factor analyzers, classify OFIs, aggregate scores

The httpx client and the render pool belong to the run and are released on
every exit path, including errors and cancellation.
"""

import asyncio
import contextlib
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

import httpx

from runner.logging_setup import get_logger
from site_audit.analyzers import FactorAnalyzer, default_analyzers, run_analyzers
from site_audit.config import AuditConfig
from site_audit.dedup import ContentDeduplicator
from site_audit.discovery import DiscoveryResult, PageDiscoverer
from site_audit.document import ParsedDocument
from site_audit.exceptions import AuditCancelledError, ParseError
from site_audit.fetcher import PageFetcher
from site_audit.models import (
    AuditResult,
    Category,
    FactorAssessment,
    Importance,
    OFIClassification,
    PagePriority,
    PageRecord,
    PageType,
    SiteProfile,
    Status,
)
from site_audit.ofi import (
    DEFAULT_RULES,
    BusinessContext,
    OFIClassifier,
    OFIRules,
    calculate_severity_score,
    generate_action_plan,
)
from site_audit.priority import (
    calculate_priority_distribution,
    classify,
    get_priority_explanation,
    select_for_fetch,
)
from site_audit.profiler import SiteProfiler
from site_audit.progress import ProgressCallback, ProgressReporter
from site_audit.render_pool import RenderPool
from site_audit.scoring import ScoreAggregator, generate_recommendations

logger = get_logger("audit_pipeline")


def normalize_base_url(base_url: str) -> str:
    """Add a scheme when missing and a root path when the URL has none."""
    base_url = base_url.strip()
    if "://" not in base_url:
        base_url = f"https://{base_url}"
    parsed = urlparse(base_url)
    if not parsed.netloc:
        raise ValueError(f"Not a site URL: {base_url!r}")
    if not parsed.path:
        base_url = f"{base_url}/"
    return base_url


def _check_cancelled(cancel_event: asyncio.Event, phase: str):
    if cancel_event.is_set():
        raise AuditCancelledError(f"Audit cancelled during {phase}")


def _custom_factor_assessments(config: AuditConfig, base_url: str) -> List[FactorAssessment]:
    assessments = []
    for name, category in config.custom_factors:
        try:
            category_enum = Category(category)
        except ValueError:
            logger.warning(f"Custom factor '{name}' has unknown category '{category}', skipping")
            continue
        assessments.append(FactorAssessment(
            name=name,
            category=category_enum,
            status=Status.NA,
            importance=Importance.LOW,
            rationale="Custom factor, not evaluated automatically",
            page_url=base_url,
        ))
    return assessments


def _plan_labels(plan: Dict[str, List[OFIClassification]]) -> Dict[str, List[str]]:
    return {
        bucket: [f"{c.name} ({c.assessment.page_url})" for c in items]
        for bucket, items in plan.items()
    }


async def _collect_pages(
    base_url: str,
    config: AuditConfig,
    reporter: ProgressReporter,
    cancel_event: asyncio.Event,
):
    """Network phases: profile, discover, fetch. Returns (profile, discovery, pages)."""
    async with httpx.AsyncClient(headers=config.http_headers()) as client:
        profile: SiteProfile = await SiteProfiler(client, config).profile(base_url)
        reporter.phase(
            "profiling",
            f"Site profiled ({'rendered' if profile.is_render_dependent else 'static'} strategy)",
        )
        _check_cancelled(cancel_event, "profiling")

        use_renderer = profile.is_render_dependent and config.analyze_javascript
        if profile.is_render_dependent and not config.analyze_javascript:
            logger.info("Site looks render-dependent but JavaScript analysis is disabled; fetching statically")

        async with contextlib.AsyncExitStack() as stack:
            render_pool = None
            if use_renderer:
                # WorkerPoolInitError is fatal and propagates to the caller
                render_pool = await stack.enter_async_context(RenderPool(config, cancel_event))

            discovery: DiscoveryResult = await PageDiscoverer(client, config, render_pool).discover(profile)
            reporter.phase("discovery", f"Discovered {len(discovery.page_urls)} candidate pages")
            _check_cancelled(cancel_event, "discovery")

            selected = select_for_fetch(discovery.page_urls, config.max_pages)
            urls = [base_url] + [item.url for item, _ in selected]
            tiers = [priority.tier for _, priority in selected]
            logger.info(
                f"Fetching homepage + {len(selected)} pages "
                f"(tier1={tiers.count(1)}, tier2={tiers.count(2)}, tier3={tiers.count(3)})"
            )

            fetcher = PageFetcher(client, config, render_pool=render_pool, cancel_event=cancel_event)
            reporter.phase("fetch_start", f"Fetching {len(urls)} pages")
            pages = await fetcher.fetch_batch(urls, rendered=use_renderer, progress=reporter.fetch_progress)
            logger.info(f"Fetched {fetcher.stats['fetched']} pages, skipped {fetcher.stats['failed']}")

    return profile, discovery, pages


def _analyze_pages(
    pages: Sequence[PageRecord],
    analyzers: Sequence[FactorAnalyzer],
    classifier: OFIClassifier,
    reporter: ProgressReporter,
    cancel_event: asyncio.Event,
):
    """Analyzer + OFI phase. Returns (classifications, priorities by URL)."""
    classifications: List[OFIClassification] = []
    priorities: Dict[str, PagePriority] = {}

    for done, page in enumerate(pages, start=1):
        _check_cancelled(cancel_event, "analysis")
        priority = classify(page.url, page.page_type)
        priorities[page.url] = priority
        try:
            doc = ParsedDocument(page.html)
        except ParseError as e:
            logger.warning(f"Skipping analysis of {page.url}: {e}")
            continue

        assessments = run_analyzers(analyzers, page, doc)
        context = BusinessContext.for_page(page.page_type, priority)
        classifications.extend(classifier.classify_all(assessments, priority, context))
        reporter.analysis_progress(done, len(pages))

    return classifications, priorities


async def run_audit(
    base_url: str,
    config: Optional[AuditConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None,
    analyzers: Optional[Sequence[FactorAnalyzer]] = None,
    ofi_rules: OFIRules = DEFAULT_RULES,
) -> AuditResult:
    """
    Audit a website end to end.

    Args:
        base_url: Site root URL
        config: Audit settings (environment defaults when omitted)
        progress_callback: Called with (fraction 0..1, message) at phase boundaries
        cancel_event: Set it to cancel the run cooperatively
        analyzers: Analyzer set (the four standard analyzers when omitted)
        ofi_rules: Keyword tables for the OFI classifier

    Returns:
        AuditResult, possibly partially analyzed

    Raises:
        WorkerPoolInitError: The headless browser pool could not start
        AuditCancelledError: The run was cancelled; no partial result is returned
    """
    config = config or AuditConfig.from_env()
    cancel_event = cancel_event or asyncio.Event()
    reporter = ProgressReporter(progress_callback)
    base_url = normalize_base_url(base_url)
    started_at = datetime.now()

    logger.info("=" * 70)
    logger.info(f"AUDIT: {base_url} (max_pages={config.max_pages})")
    logger.info("=" * 70)

    profile, discovery, pages = await _collect_pages(base_url, config, reporter, cancel_event)
    _check_cancelled(cancel_event, "fetch")

    dedup = ContentDeduplicator(config.similarity_threshold).deduplicate(pages)
    kept = dedup.pages()
    reporter.phase("dedup", f"Kept {len(kept)} unique pages, removed {len(dedup.removed)} duplicates")
    if not kept:
        logger.warning(f"No pages could be fetched for {base_url}")

    if analyzers is None:
        analyzers = default_analyzers(discovery.robots_txt, discovery.sitemap_urls)
    classifier = OFIClassifier(ofi_rules)
    reporter.phase("analysis_start", f"Analyzing {len(kept)} pages")
    classifications, priorities = _analyze_pages(kept, analyzers, classifier, reporter, cancel_event)

    custom = _custom_factor_assessments(config, base_url)
    if custom:
        home_priority = classify(base_url, PageType.HOMEPAGE)
        classifications.extend(classifier.classify_all(custom, home_priority))

    summary = ScoreAggregator(config.category_weights, config.weight_by_page_priority).aggregate(classifications)
    action_plan = generate_action_plan(classifications)
    severity = calculate_severity_score(classifications)

    result = AuditResult(
        base_url=base_url,
        site_profile=profile,
        pages=tuple(kept),
        classifications=tuple(classifications),
        total_factors=summary.total_factors,
        status_counts=summary.status_counts,
        overall_score=summary.overall_score,
        category_scores=summary.category_scores,
        recommendations=tuple(generate_recommendations(summary, classifications)),
        action_plan=_plan_labels(action_plan),
        severity=severity,
        duplicates_removed=tuple(dedup.removed),
        page_priorities=priorities,
        priority_explanations={url: get_priority_explanation(p) for url, p in priorities.items()},
        priority_distribution=calculate_priority_distribution(priorities.values()),
        started_at=started_at,
        finished_at=datetime.now(),
    )
    reporter.phase("complete", f"Audit complete: score {result.overall_score}/100")

    logger.info("=" * 70)
    logger.info(f"AUDIT SUMMARY: {base_url}")
    logger.info(f"  Pages analyzed:  {len(kept)}")
    logger.info(f"  Factors:         {result.total_factors}")
    logger.info(f"  Overall score:   {result.overall_score}")
    logger.info(f"  Priority OFIs:   {result.priority_ofi_count}")
    logger.info("=" * 70)
    return result


def audit_site(
    base_url: str,
    config: Optional[AuditConfig] = None,
    progress_callback: Optional[Callable[[float, Optional[str]], None]] = None,
) -> AuditResult:
    """Blocking wrapper around run_audit for scripts and the CLI."""
    return asyncio.run(run_audit(base_url, config=config, progress_callback=progress_callback))
