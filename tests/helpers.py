"""In-memory site helpers served through the crawler simulate hook."""
from __future__ import annotations

from typing import Dict, List, Tuple

from linkcrawl.simulate import SimulatedResponse

HTML = "text/html; charset=utf-8"

Page = Tuple[int, Dict[str, str], str]


def html_page(body: str, status: int = 200) -> Page:
    return status, {"Content-Type": HTML}, f"<html><head><title>t</title></head><body>{body}</body></html>"


def redirect(location: str, status: int = 301) -> Page:
    return status, {"Location": location}, ""


def asset(content_type: str = "text/css", body: str = "body {}") -> Page:
    return 200, {"Content-Type": content_type}, body


class FakeSite:
    """Answers simulated requests from a path -> page mapping; unknown paths are 404."""

    def __init__(self, pages: Dict[str, Page]):
        self.pages = pages
        self.requests: List[str] = []

    async def __call__(self, request):
        path = request.path_url
        self.requests.append(path)
        response = SimulatedResponse(request)
        status, headers, body = self.pages.get(path, (404, {"Content-Type": "text/plain"}, "Not Found"))
        for name, value in headers.items():
            response.set_header(name, value)
        response.send(body, status=status)
        return response
