"""Tests for CrawlResult aggregation and reporting."""
from __future__ import annotations

import io
import json

from linkcrawl.result import OK, CrawlError, CrawlResult, format_error


def missing(path, parent="/"):
    return CrawlError(path=path, tag="a", status_code=404, summary="Not Found", parent=parent)


def sample_result() -> CrawlResult:
    result = CrawlResult()
    for _ in range(5):
        result.increment_scan_count()
    result.mark_ok("/")
    result.add_error("/a/", missing("/a"))
    result.add_error("/b/", missing("/b", parent="/a"))
    result.add_error("/c/", CrawlError(path="/c", tag="a", status_code=404, summary="Redirected", parent="/"))
    return result


def test_add_error_updates_list_and_cache():
    result = CrawlResult()
    error = missing("/x")

    result.add_error("/x/", error)

    assert result.errors == [error]
    assert result.scanned_urls == {"/x/": error}
    assert result.error_count == 1


def test_pass_count():
    result = sample_result()

    assert result.scan_count == 5
    assert result.error_count == 3
    assert result.pass_count == 2


def test_duration_is_formatted_in_seconds():
    result = CrawlResult()

    assert result.scan_duration >= 0
    assert result.format_duration().endswith("s")


def test_error_categories_group_by_status_and_summary():
    categories = sample_result().error_categories()

    assert list(categories) == ["404 Not Found", "404 Redirected"]
    assert [e.path for e in categories["404 Not Found"]] == ["/a", "/b"]


def test_format_summary_without_colour():
    summary = sample_result().format_summary(color=False)

    assert "=== Summary ===" in summary
    assert "Scanned 5 URLs in " in summary
    assert "  404 Not Found: 2" in summary
    assert "  404 Redirected: 1" in summary
    assert "  Errors: 3" in summary
    assert "  Pass: 2" in summary
    assert "\033[" not in summary


def test_format_summary_colours_categories():
    summary = sample_result().format_summary(color=True)

    assert "\033[" in summary


def test_summary_numbers_use_thousands_separators():
    result = CrawlResult()
    result.scan_count = 12345

    assert "Scanned 12,345 URLs" in result.format_summary(color=False)


def test_summary_to_console_writes_to_stream():
    stream = io.StringIO()

    sample_result().summary_to_console(stream, color=False)

    assert "Totals" in stream.getvalue()


def test_to_json_pretty_round_trips_the_report():
    result = sample_result()

    text = result.to_json(True)
    report = json.loads(text)

    assert "\n  " in text
    assert report["scanCount"] == 5
    assert report["errorCount"] == 3
    assert report["scannedUrls"]["/"] == OK
    assert report["scannedUrls"]["/a/"] == {
        "path": "/a",
        "tag": "a",
        "statusCode": 404,
        "summary": "Not Found",
        "parent": "/",
    }
    assert [e["path"] for e in report["errors"]] == ["/a", "/b", "/c"]
    assert report["scanDuration"].endswith("s")


def test_to_json_compact_by_default():
    assert "\n" not in sample_result().to_json()


def test_format_error():
    error = missing("/gone", parent="/index")

    assert format_error(error, color=False) == '404 Not Found a[href="/gone"] @ /index'
    assert "/gone" in format_error(error)
