"""
Core crawling logic: depth-first link checking over simulated requests.
"""
from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, List, Optional, Set, Tuple
from urllib.parse import SplitResult, urljoin, urlsplit

import requests
from requests.utils import requote_uri

from linkcrawl.config import CrawlOptions, load_hosting_config
from linkcrawl.log import log
from linkcrawl.result import (
    OK,
    SUMMARY_NO_BODY,
    SUMMARY_NOT_FOUND,
    SUMMARY_REDIRECTED,
    CrawlError,
    CrawlResult,
)
from linkcrawl.simulate import INTERNAL_HOST, INTERNAL_ORIGIN, HandlerChain, Simulate, build_request
from linkcrawl.static import StaticSiteHandler

# Matches <body>...</body>, group 1 is the content
HTML_BODY_REGEX = re.compile(r"<body(?:\s+[^>]+)?>(.*)</body>", re.IGNORECASE | re.DOTALL)

# Matches <a ...>...</a> or <area ...>, group 1 is the tag name
HTML_HREF_ELEMENT_REGEX = re.compile(r"<(a|area)\s.+?>.+?(?=>)/?>", re.IGNORECASE)

# Matches href="..." / href='...' (backslash escape aware) or a bare href=...
HTML_HREF_ATTRIBUTE_REGEX = re.compile(
    r"""href=("(?:\\["\\]|[^"\\])*"|'(?:\\['\\]|[^'\\])*'|[^\s>]+)""",
    re.IGNORECASE,
)

REDIRECT_STATUSES = frozenset((301, 302))
# Reported for a redirect that leads back into its own chain
REDIRECT_LOOP_STATUS = 508
EXTERNAL_PREFIXES = ("http://", "https://")

OnUrl = Callable[[SplitResult, str], Awaitable[None]]


def cache_key(path: str, normalize_trailing_slash: bool = True) -> str:
    """Key under which the outcome for *path* is stored."""
    if normalize_trailing_slash and not path.endswith("/"):
        return path + "/"
    return path


def decode_attribute(value: str) -> Optional[str]:
    """
    Turn a raw href attribute value into the URL it names.

    Double-quoted values are decoded as JSON strings (raw tabs, newlines,
    carriage returns and form feeds escaped first), single-quoted values
    lose their quotes and bare values are returned as is. Returns None if
    a double-quoted value does not decode.
    """
    if value.startswith('"'):
        escaped = (
            value.replace("\t", "\\t")
            .replace("\r", "\\r")
            .replace("\n", "\\n")
            .replace("\f", "\\f")
        )
        try:
            decoded = json.loads(escaped)
        except json.JSONDecodeError as e:
            log.debug("Failed to parse attribute value %s: %s", value, e)
            return None
        if not isinstance(decoded, str):
            log.debug("Attribute value %s is not a string", value)
            return None
        return decoded
    if value.startswith("'"):
        # escaped single quotes are kept verbatim
        return value[1:-1]
    return value


async def detect_urls(html: str, page_url: Optional[str], on_url: OnUrl) -> None:
    """
    Find <a>/<area> hrefs in *html* and await *on_url* for each, in order.

    Every href is resolved against the page on the internal origin, so
    relative, absolute-path and absolute URLs all arrive as split URLs;
    same-site links have ``hostname == "internal"``. Characters that are
    not allowed in a URL (non-ASCII, quotes, spaces) are percent-encoded.
    """
    base = f"{INTERNAL_ORIGIN}{page_url or ''}"
    for match in HTML_HREF_ELEMENT_REGEX.finditer(html):
        href_match = HTML_HREF_ATTRIBUTE_REGEX.search(match.group(0))
        if href_match is None:
            continue

        url = decode_attribute(href_match.group(1))
        if url is None:
            continue

        try:
            parsed = urlsplit(requote_uri(urljoin(base, url.strip())))
        except ValueError as e:
            log.debug("Skipping unparsable URL %r on %s: %s", url, page_url, e)
            continue

        await on_url(parsed, match.group(1).lower())


def resolve_location(path: str, location: str) -> Optional[str]:
    """
    Resolve a redirect *location* sent for *path* to a same-site path.

    Returns None when the location points at another host.
    """
    target = urlsplit(requote_uri(urljoin(f"{INTERNAL_ORIGIN}{path}", location.strip())))
    if target.hostname != INTERNAL_HOST:
        return None
    resolved = target.path or "/"
    if target.query:
        resolved += f"?{target.query}"
    return resolved


@dataclass(slots=True)
class PageLinks:
    """A scanned page and the same-site links still to follow from it."""
    path: str
    links: Iterator[Tuple[str, str]]


class Crawler:
    """Checks every same-site link reachable from ``/``."""

    def __init__(self, options: Optional[CrawlOptions] = None, simulate: Optional[Simulate] = None):
        self.options = options or CrawlOptions()
        self.handlers = list(self.options.handlers)

        if simulate is None and self.options.detect_firebase_hosting:
            hosting = load_hosting_config(self.options.project_dir)
            if hosting is not None:
                log.debug("Detected firebase.json (disable with detect_firebase_hosting=False)")
                self.handlers.insert(0, StaticSiteHandler(self.options.project_dir, hosting))
            else:
                log.debug("No firebase.json found in %s", self.options.project_dir)

        self.simulate: Simulate = simulate or HandlerChain(self.handlers)
        # paths whose redirect is being followed right now
        self._redirecting: Set[str] = set()

    async def run(self) -> CrawlResult:
        """Crawl the site from ``/`` and return the populated result."""
        result = CrawlResult()
        await self.scan_path(result, "/", "root")
        return result

    go = run
    detect_urls = staticmethod(detect_urls)

    def handle_error(self, result: CrawlResult, key: str, error: CrawlError) -> None:
        """Report a newly discovered error and record it in *result*."""
        if self.options.on_error_output is not None:
            message = self.options.on_error_output(error)
            if message:
                log.error("%s", message)

        result.add_error(key, error)

    async def scan_path(
        self,
        result: CrawlResult,
        path: str,
        tag: str,
        parent: Optional[str] = None,
        silently_fail: bool = False,
    ) -> int:
        """
        Load *path*, record its outcome and follow its same-site links.

        Links are followed depth first in document order; every link of a
        page is fully crawled before the next one is looked at.

        Args:
            result: The result shared by the whole crawl.
            path: URL path to check.
            tag: Tag name of the element that linked here ("root" for ``/``).
            parent: Path of the linking page, None for the root.
            silently_fail: Do not record Not Found/Redirected errors for this
                path; used while following a redirect so the redirecting path
                is blamed instead.

        Returns:
            The status code that stands for this path, 200 when it is fine.
        """
        status, page = await self._scan(result, path, tag, parent, silently_fail)
        if page is not None:
            await self._follow_links(result, page)
        return status

    async def _follow_links(self, result: CrawlResult, page: PageLinks) -> None:
        # explicit stack so that link depth does not grow the Python stack
        stack: List[PageLinks] = [page]
        while stack:
            current = stack[-1]
            link = next(current.links, None)
            if link is None:
                stack.pop()
                continue

            link_path, link_tag = link
            _, child = await self._scan(result, link_path, link_tag, current.path, False)
            if child is not None:
                stack.append(child)

    async def _internal_links(self, body: str, path: str) -> List[Tuple[str, str]]:
        links: List[Tuple[str, str]] = []

        async def on_url(url: SplitResult, element_tag: str) -> None:
            if url.hostname == INTERNAL_HOST:
                links.append((url.path or "/", element_tag))

        await detect_urls(body, path, on_url)
        return links

    async def _scan(
        self,
        result: CrawlResult,
        path: str,
        tag: str,
        parent: Optional[str],
        silently_fail: bool,
    ) -> Tuple[int, Optional[PageLinks]]:
        """Check a single path; returns its status and the page to expand, if any."""
        key = cache_key(path, self.options.normalize_trailing_slash)

        cached = result.scanned_urls.get(key)
        if self.options.disable_duplicate_urls and cached is not None:
            return 200, None

        result.increment_scan_count()

        if cached is not None:
            if cached == OK:
                return 200, None
            if not silently_fail:
                self.handle_error(result, key, dataclasses.replace(cached, parent=parent, tag=tag))
            return cached.status_code, None

        log.debug("Scanning %s (from %s)", path, parent)
        response = await self.simulate(build_request(path))

        if response.status_code == 404:
            if not silently_fail:
                self.handle_error(result, key, CrawlError(
                    path=path,
                    tag=tag,
                    status_code=response.status_code,
                    summary=SUMMARY_NOT_FOUND,
                    parent=parent,
                ))
            return response.status_code, None

        if response.status_code in REDIRECT_STATUSES:
            return await self._follow_redirect(result, response, key, path, tag, parent, silently_fail)

        # not HTML: fine, nothing to parse and nothing cached
        content_type = response.headers.get("Content-Type")
        if not content_type or not content_type.startswith("text/html"):
            return 200, None

        body_match = HTML_BODY_REGEX.search(response.text)
        if body_match is None:
            self.handle_error(result, key, CrawlError(
                path=path,
                tag=tag,
                status_code=response.status_code,
                summary=SUMMARY_NO_BODY,
                parent=parent,
            ))
            return response.status_code, None

        result.mark_ok(key)
        links = await self._internal_links(body_match.group(1), path)
        return 200, PageLinks(path, iter(links))

    async def _follow_redirect(
        self,
        result: CrawlResult,
        response: requests.Response,
        key: str,
        path: str,
        tag: str,
        parent: Optional[str],
        silently_fail: bool,
    ) -> Tuple[int, Optional[PageLinks]]:
        location = response.headers.get("Location")
        if location is not None and location.startswith(EXTERNAL_PREFIXES):
            # external redirect, not followed
            return 200, None

        target = None if location is None else resolve_location(path, location)
        if location is not None and target is None:
            return 200, None

        page = None
        if target is None:
            redirect_result = response.status_code
        elif target in self._redirecting:
            log.debug("Redirect loop: %s -> %s", path, target)
            redirect_result = REDIRECT_LOOP_STATUS
        else:
            self._redirecting.add(path)
            try:
                redirect_result, page = await self._scan(result, target, tag, parent, True)
            finally:
                self._redirecting.discard(path)

        if redirect_result != 200 and not silently_fail:
            self.handle_error(result, key, CrawlError(
                path=path,
                tag=tag,
                status_code=redirect_result,
                summary=SUMMARY_REDIRECTED,
                parent=parent,
            ))
        return redirect_result, page
