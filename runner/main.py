#!/usr/bin/env python3
"""
Main CLI runner for site-audit.

Runs a full audit of one website:
- Profiling the site and discovering its pages
- Fetching the highest-priority pages (static or headless rendering)
- Scoring every page against the factor catalog
- Writing the AuditResult as JSON
"""

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path

from runner.logging_setup import get_logger
from site_audit import AuditConfig, audit_site
from site_audit.exceptions import AuditCancelledError, WorkerPoolInitError


# Initialize logger
logger = get_logger("main")


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="site-audit: Crawl a website and score its pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Audit a site with default settings
  python -m runner.main https://example.com

  # Limit the crawl and choose the output file
  python -m runner.main https://example.com --max-pages 10 --output audit.json

  # Skip headless rendering even for JavaScript-heavy sites
  python -m runner.main https://example.com --no-javascript
        """,
    )

    parser.add_argument("url", help="Site root URL to audit")

    crawl_group = parser.add_argument_group("Crawl Options")
    crawl_group.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Pages to fetch besides the homepage (default: AUDIT_MAX_PAGES or 25)",
    )
    crawl_group.add_argument(
        "--include-subdomains",
        action="store_true",
        help="Treat subdomains of the site as internal pages",
    )
    crawl_group.add_argument(
        "--no-javascript",
        action="store_true",
        help="Never start the headless browser pool",
    )
    crawl_group.add_argument(
        "--pool-size",
        type=int,
        default=None,
        help="Headless browser workers for rendered fetches (default: 4)",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--output",
        type=str,
        default=None,
        help="JSON output path (default: audit_<domain>_<timestamp>.json)",
    )
    output_group.add_argument(
        "--include-html",
        action="store_true",
        help="Include raw page HTML in the JSON output",
    )

    return parser.parse_args(argv)


def build_config(args) -> AuditConfig:
    """Environment defaults overlaid with command-line flags."""
    overrides = {}
    if args.max_pages is not None:
        overrides["max_pages"] = args.max_pages
    if args.pool_size is not None:
        overrides["pool_size"] = args.pool_size
    if args.include_subdomains:
        overrides["include_subdomains"] = True
    if args.no_javascript:
        overrides["analyze_javascript"] = False
    return AuditConfig.from_env(**overrides)


def default_output_path(url: str) -> Path:
    domain = url.split("://", 1)[-1].split("/", 1)[0].replace(":", "_") or "site"
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(f"audit_{domain}_{timestamp}.json")


def write_result(result, output_path: Path, include_html: bool = False) -> Path:
    data = result.to_dict()
    if include_html:
        data["pages"] = [page.to_dict(include_html=True) for page in result.pages]
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    return output_path


def log_summary(result):
    logger.info("")
    logger.info("=" * 70)
    logger.info("AUDIT RESULTS")
    logger.info("=" * 70)
    logger.info(f"Overall score:  {result.overall_score}/100")
    for category, score in result.category_scores.items():
        logger.info(f"  {category:12s}: {score}")
    logger.info("")
    for status, count in result.status_counts.items():
        logger.info(f"  {status:12s}: {count}")
    logger.info(f"Severity:       {result.severity.get('severity')} ({result.severity.get('score')})")
    if result.priority_distribution:
        tiers = ", ".join(
            f"{tier} {stats['count']} ({stats['percentage']}%)"
            for tier, stats in result.priority_distribution.items()
        )
        logger.info(f"Page tiers:     {tiers}")
    if result.recommendations:
        logger.info("")
        logger.info("Recommendations:")
        for recommendation in result.recommendations:
            logger.info(f"  - {recommendation}")


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    logger.info("=" * 70)
    logger.info("site-audit - Website Crawl and Scoring Tool")
    logger.info("=" * 70)

    exit_code = 0
    try:
        config = build_config(args)
        result = audit_site(args.url, config=config)
        log_summary(result)

        output_path = Path(args.output) if args.output else default_output_path(args.url)
        write_result(result, output_path, include_html=args.include_html)

        logger.info("")
        logger.info(f"JSON:   {output_path}")
        logger.info("✓ Audit completed successfully")
        logger.info("=" * 70)

    except KeyboardInterrupt:
        logger.warning("")
        logger.warning("Interrupted by user (Ctrl+C)")
        exit_code = 130

    except AuditCancelledError as e:
        logger.warning(f"Audit cancelled: {e}")
        exit_code = 130

    except WorkerPoolInitError as e:
        logger.error(f"Headless browser pool could not start: {e}")
        logger.error("Install browsers with 'playwright install chromium' or rerun with --no-javascript")
        exit_code = 2

    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        exit_code = 2

    except Exception as e:
        logger.error("")
        logger.error("=" * 70)
        logger.error("FATAL ERROR")
        logger.error("=" * 70)
        logger.error(f"{e}", exc_info=True)
        logger.error("=" * 70)
        exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
