# main.py

"""Entry point for the pharma_catalog scraper (headless CLI)."""

import argparse
import asyncio
import logging
import sys

from pharma_catalog.config.logging_config import setup_logging
from pharma_catalog.config.settings import Settings

logger = logging.getLogger("pharma_catalog.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SITES)

    parser = argparse.ArgumentParser(
        prog="pharma_catalog",
        description=(
            "Chilean pharmacy catalog builder and price monitor. "
            "The first run for a site builds its catalog; later runs "
            "monitor prices."
        ),
        epilog=f"Available sites: {valid_ids}",
    )
    parser.add_argument(
        "-s",
        "--sites",
        default=None,
        help="Comma-separated site IDs (default: all).",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=None,
        dest="max_iterations",
        help=(
            "Maximum load-more clicks / page turns per site "
            f"(default: {Settings.MAX_PAGINATION_ITERATIONS})."
        ),
    )
    parser.add_argument(
        "--headful",
        action="store_true",
        default=False,
        help="Show the browser window.",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        dest="data_dir",
        help=f"Catalog/history directory (default: {Settings.DATA_DIR}).",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Override the listing URL (single site only).",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check that each site's selectors still find products.",
    )
    parser.add_argument(
        "--export-csv",
        action="store_true",
        default=False,
        dest="export_csv",
        help="Export stored catalogs to CSV without scraping.",
    )
    return parser


def _run_cli(args: argparse.Namespace) -> None:
    """Scrape the selected sites and exit."""
    from pharma_catalog.cli.runner import cli_run

    exit_code = asyncio.run(
        cli_run(
            site_csv=args.sites,
            max_iterations=args.max_iterations,
            headful=args.headful,
            data_dir=args.data_dir,
            url=args.url,
        )
    )
    sys.exit(exit_code)


def _run_export_csv(args: argparse.Namespace) -> None:
    """Export stored catalogs to CSV."""
    from pharma_catalog.cli.runner import run_export_csv

    sys.exit(run_export_csv(args.sites, args.data_dir))


def _run_health_check(args: argparse.Namespace) -> None:
    """Run the selector health check."""
    from pharma_catalog.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check(args.sites, args.headful))
    sys.exit(exit_code)


def main() -> None:
    """Route to health check, CSV export or a scrape run."""
    log_file = setup_logging()
    logger.info("pharma_catalog starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.max_iterations is not None and args.max_iterations < 0:
        parser.error("--max-iterations must be zero or positive")

    try:
        if args.health:
            _run_health_check(args)
        elif args.export_csv:
            _run_export_csv(args)
        else:
            _run_cli(args)
    finally:
        logger.info("pharma_catalog shutting down")


if __name__ == "__main__":
    main()
