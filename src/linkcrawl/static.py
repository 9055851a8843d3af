"""
Serve a built site directory the way Firebase Hosting would.

Only the parts of hosting that decide which file answers a path (or where
it redirects) are implemented: redirects, rewrites, cleanUrls,
trailingSlash, directory index files and the custom 404 page.
"""
from __future__ import annotations

import mimetypes
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import unquote, urlsplit

from requests.models import PreparedRequest

from linkcrawl.config import HostingConfig
from linkcrawl.log import log
from linkcrawl.simulate import NextHandler, SimulatedResponse

INDEX_FILE = "index.html"
NOT_FOUND_FILE = "404.html"
HTML_SUFFIX = ".html"


@lru_cache(maxsize=None)
def glob_regex(pattern: str) -> "re.Pattern[str]":
    """
    Compile a hosting glob: ``**`` spans path segments, ``*`` and ``?`` stay
    within one segment.
    """
    parts = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("".join(parts))


def glob_match(path: str, pattern: str) -> bool:
    return glob_regex(pattern).fullmatch(path) is not None


def content_type_for(path: Path) -> str:
    """Guess the Content-Type header for a file."""
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed is None:
        return "application/octet-stream"
    if guessed.startswith("text/"):
        return f"{guessed}; charset=utf-8"
    return guessed


class StaticSiteHandler:
    """Request handler answering from the hosting ``public`` directory."""

    def __init__(self, project_dir: Path, hosting: Optional[HostingConfig] = None, fallthrough: bool = False):
        self.hosting = hosting or HostingConfig()
        self.root = (Path(project_dir) / self.hosting.public).resolve()
        self.fallthrough = fallthrough

    def __repr__(self) -> str:
        return f"StaticSiteHandler(root={str(self.root)!r})"

    async def __call__(self, request: PreparedRequest, response: SimulatedResponse, call_next: NextHandler) -> None:
        path = unquote(urlsplit(request.path_url).path) or "/"

        for rule in self.hosting.redirects:
            if glob_match(path, rule.source):
                response.redirect(rule.destination, rule.status)
                return

        found = self._find(path)
        if found is None:
            for rule in self.hosting.rewrites:
                if glob_match(path, rule.source):
                    found = self._find(rule.destination)
                    break

        if found is None:
            if self.fallthrough:
                await call_next()
            else:
                self._not_found(response)
            return

        file_path, exact = found
        if exact and self.hosting.clean_urls and path.endswith(HTML_SUFFIX):
            target = path[:-len(HTML_SUFFIX)]
            if target.endswith("/index"):
                target = target[:-len("index")]
            response.redirect(target, 301)
            return

        if not exact:
            if self.hosting.trailing_slash is True and not path.endswith("/"):
                response.redirect(path + "/", 301)
                return
            if self.hosting.trailing_slash is False and path.endswith("/") and path != "/":
                response.redirect(path.rstrip("/"), 301)
                return

        response.send(file_path.read_bytes(), content_type=content_type_for(file_path))

    def _safe_path(self, relative: str) -> Optional[Path]:
        try:
            candidate = (self.root / relative).resolve()
        except (OSError, ValueError) as e:
            log.debug("Unusable path %r: %s", relative, e)
            return None
        if not candidate.is_relative_to(self.root):
            log.debug("Refusing path outside of %s: %s", self.root, relative)
            return None
        return candidate

    def _find(self, path: str) -> Optional[Tuple[Path, bool]]:
        """
        Locate the file serving *path*.

        Returns the file and whether it was addressed directly (as opposed
        to through an index file or a clean URL), or None.
        """
        relative = path.lstrip("/")
        base = self._safe_path(relative)
        if base is None:
            return None

        candidates = []
        if not path.endswith("/") and relative:
            candidates.append(base)
        candidates.append(base / INDEX_FILE)
        if self.hosting.clean_urls and relative:
            candidates.append(base.with_name(base.name + HTML_SUFFIX))

        for candidate in candidates:
            try:
                if candidate.is_file():
                    return candidate, candidate == base
            except (OSError, ValueError) as e:
                log.debug("Cannot stat %s: %s", candidate, e)
        return None

    def _not_found(self, response: SimulatedResponse) -> None:
        page = self.root / NOT_FOUND_FILE
        if page.is_file():
            response.send(page.read_bytes(), status=404, content_type="text/html; charset=utf-8")
        else:
            response.send("Not Found", status=404, content_type="text/plain; charset=utf-8")
