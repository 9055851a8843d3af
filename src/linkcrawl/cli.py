"""
Command-line interface for the link crawler.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from linkcrawl.config import CrawlOptions, HostingConfig
from linkcrawl.core import Crawler
from linkcrawl.exceptions import LinkCrawlException
from linkcrawl.log import debug_from_env, log, setup_logging
from linkcrawl.result import CrawlResult
from linkcrawl.static import StaticSiteHandler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="site-link-crawler",
        description="Check every internal link of a built site, starting from /.",
    )
    parser.add_argument(
        "project_dir",
        nargs="?",
        default=".",
        help="Directory holding firebase.json (default: current directory)",
    )
    parser.add_argument(
        "--public",
        help="Serve this directory directly instead of reading firebase.json",
    )
    parser.add_argument("--no-firebase", action="store_true", help="Do not look for firebase.json")
    parser.add_argument(
        "--no-normalize-trailing-slash",
        action="store_true",
        help="Treat /foo and /foo/ as different URLs",
    )
    parser.add_argument(
        "--allow-duplicate-urls",
        action="store_true",
        help="Re-report a broken URL every time it is linked",
    )
    parser.add_argument("--out", help="Write the JSON report to this path, or '-' for stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--quiet", action="store_true", help="Do not print each error as it is found")
    parser.add_argument("--no-color", action="store_true", help="Disable colours in the summary")
    parser.add_argument("--debug", action="store_true", default=debug_from_env(), help="Enable debug logging")
    return parser


def build_options(args: argparse.Namespace) -> CrawlOptions:
    """Translate parsed arguments into crawler options."""
    project_dir = Path(args.project_dir)
    options = CrawlOptions(
        normalize_trailing_slash=not args.no_normalize_trailing_slash,
        disable_duplicate_urls=not args.allow_duplicate_urls,
        detect_firebase_hosting=not (args.no_firebase or args.public),
        project_dir=project_dir,
    )
    if args.quiet:
        options.on_error_output = None
    if args.public:
        options.handlers.append(StaticSiteHandler(project_dir, HostingConfig(public=args.public)))
    return options


def write_report(result: CrawlResult, out: str, pretty: bool) -> None:
    json_text = result.to_json(pretty=pretty)
    if out == "-":
        print(json_text)
        return

    output_path = Path(out)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json_text, encoding="utf-8")
    log.info("Report written to: %s", output_path)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the crawler CLI."""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        crawler = Crawler(build_options(args))
        if not crawler.handlers:
            log.error("Nothing to crawl: no firebase.json in %s and no --public directory", args.project_dir)
            return 2
        result = asyncio.run(crawler.run())
    except LinkCrawlException as e:
        log.error("%s", e)
        return 2

    result.summary_to_console(sys.stderr, color=not args.no_color)
    if args.out:
        write_report(result, args.out, args.pretty)

    return 1 if result.error_count else 0


if __name__ == "__main__":
    raise SystemExit(main())
