"""
Crawl result aggregation: scan statistics, the per-path cache and errors.
"""
from __future__ import annotations

import json
import sys
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TextIO, Union

from colorlog.escape_codes import parse_colors

# Cache value for a path that was scanned without error
OK = "OK"

SUMMARY_NOT_FOUND = "Not Found"
SUMMARY_REDIRECTED = "Redirected"
SUMMARY_NO_BODY = "No <body>"


@dataclass(slots=True)
class CrawlError:
    """A broken link: the failing path, the element and page that referenced it."""
    path: str
    tag: str
    status_code: int
    summary: str
    parent: Optional[str] = None

    @property
    def category(self) -> str:
        return f"{self.status_code} {self.summary}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "tag": self.tag,
            "statusCode": self.status_code,
            "summary": self.summary,
            "parent": self.parent,
        }


CacheEntry = Union[str, CrawlError]


def paint(text: str, colors: str, enabled: bool = True) -> str:
    """Wrap *text* in the ANSI codes named by *colors* (colorlog names)."""
    if not enabled:
        return text
    return f"{parse_colors(colors)}{text}{parse_colors('reset')}"


def category_colors(status_code: int) -> str:
    return "bold_green" if status_code == 200 else "bold_red"


def format_number(number: int) -> str:
    return f"{number:,}"


class CrawlResult:
    """Mutable report of a single crawl run."""

    def __init__(self) -> None:
        self.scanned_urls: Dict[str, CacheEntry] = {}
        self.scan_count = 0
        self.errors: List[CrawlError] = []
        self.start_time = time.monotonic()

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def pass_count(self) -> int:
        return self.scan_count - self.error_count

    @property
    def scan_duration(self) -> float:
        """Seconds elapsed since the result was created."""
        return time.monotonic() - self.start_time

    def increment_scan_count(self) -> None:
        self.scan_count += 1

    def add_error(self, cache_key: str, error: CrawlError) -> None:
        """Append *error* and remember it as the outcome for *cache_key*."""
        self.errors.append(error)
        self.scanned_urls[cache_key] = error

    def mark_ok(self, cache_key: str) -> None:
        self.scanned_urls[cache_key] = OK

    def format_duration(self) -> str:
        return f"{self.scan_duration:.3f}s"

    def error_categories(self) -> Dict[str, List[CrawlError]]:
        """Group errors by ``"{status_code} {summary}"`` in discovery order."""
        categories: Dict[str, List[CrawlError]] = defaultdict(list)
        for error in self.errors:
            categories[error.category].append(error)
        return dict(categories)

    def format_summary(self, color: bool = True) -> str:
        """Render the human readable summary."""
        lines = [
            "",
            "=== Summary ===",
            f"Scanned {format_number(self.scan_count)} URLs in {self.format_duration()}",
            "",
            "Error Summary",
        ]
        for key, errors in self.error_categories().items():
            label = paint(key, category_colors(errors[0].status_code), color)
            lines.append(f"  {label}: {format_number(len(errors))}")
        lines += [
            "",
            "Totals",
            f"  Errors: {format_number(self.error_count)}",
            f"  Pass: {format_number(self.pass_count)}",
            "",
        ]
        return "\n".join(lines)

    def summary_to_console(self, stream: Optional[TextIO] = None, color: bool = True) -> None:
        """Print crawl summary to stderr."""
        stream = stream or sys.stderr
        stream.write(self.format_summary(color=color) + "\n")
        stream.flush()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanDuration": self.format_duration(),
            "scanCount": self.scan_count,
            "errorCount": self.error_count,
            "scannedUrls": {
                key: entry.to_dict() if isinstance(entry, CrawlError) else entry
                for key, entry in self.scanned_urls.items()
            },
            "errors": [error.to_dict() for error in self.errors],
        }

    def to_json(self, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def format_error(error: CrawlError, color: bool = True) -> str:
    """Default one-line rendering of a newly discovered error."""
    category = paint(error.category, category_colors(error.status_code), color)
    path = paint(error.path, "red", color)
    return f'{category} {error.tag}[href="{path}"] @ {error.parent}'
