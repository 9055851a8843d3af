"""End-to-end tests for the command line entry point."""
from __future__ import annotations

import json

import pytest

from linkcrawl.cli import build_options, build_parser, main
from linkcrawl.static import StaticSiteHandler


@pytest.fixture
def project(tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text(
        '<html><body><a href="/about.html">About</a> <a href="/gone">Gone</a></body></html>',
        encoding="utf-8",
    )
    (public / "about.html").write_text('<html><body><a href="/">Home</a></body></html>', encoding="utf-8")
    (tmp_path / "firebase.json").write_text(json.dumps({"hosting": {"public": "public"}}), encoding="utf-8")
    return tmp_path


def test_options_from_arguments(tmp_path):
    args = build_parser().parse_args([
        str(tmp_path),
        "--no-normalize-trailing-slash",
        "--allow-duplicate-urls",
        "--quiet",
        "--public", "out",
    ])

    options = build_options(args)

    assert options.normalize_trailing_slash is False
    assert options.disable_duplicate_urls is False
    assert options.on_error_output is None
    assert options.detect_firebase_hosting is False
    assert isinstance(options.handlers[0], StaticSiteHandler)
    assert options.handlers[0].root == (tmp_path / "out").resolve()


def test_broken_link_exits_with_error_and_writes_report(project, capsys):
    report_path = project / "reports" / "links.json"

    exit_code = main([str(project), "--out", str(report_path), "--pretty", "--no-color"])

    assert exit_code == 1
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["errorCount"] == 1
    assert report["errors"][0]["path"] == "/gone"
    assert report["errors"][0]["parent"] == "/"
    assert "404 Not Found: 1" in capsys.readouterr().err


def test_report_to_stdout(project, capsys):
    (project / "public" / "index.html").write_text(
        '<html><body><a href="/about.html">About</a></body></html>', encoding="utf-8"
    )

    exit_code = main([str(project), "--out", "-", "--quiet"])

    assert exit_code == 0
    report = json.loads(capsys.readouterr().out)
    assert report["scanCount"] == 2
    assert report["errors"] == []


def test_public_directory_without_firebase_json(project):
    (project / "firebase.json").unlink()

    assert main([str(project), "--public", "public", "--quiet"]) == 1


def test_nothing_to_crawl(tmp_path):
    assert main([str(tmp_path)]) == 2


def test_invalid_firebase_json(tmp_path):
    (tmp_path / "firebase.json").write_text("{", encoding="utf-8")

    assert main([str(tmp_path)]) == 2
