"""
In-process request simulation.

Pages are never fetched over the network. A GET request for a path is
handed to an ordered chain of async handlers (middleware style: each one
either answers or delegates to ``call_next``) and the answer is collected
in a ``requests.Response`` so the crawler can read it like a real one.
"""
from __future__ import annotations

from typing import Awaitable, Callable, List, Optional, Sequence, Union

import requests
from requests.models import PreparedRequest

from linkcrawl.exceptions import HandlerChainExhausted, ResponseNotEnded

# Synthetic origin for same-site paths
INTERNAL_HOST = "internal"
INTERNAL_ORIGIN = f"http://{INTERNAL_HOST}"

NextHandler = Callable[[], Awaitable[None]]
Handler = Callable[[PreparedRequest, "SimulatedResponse", NextHandler], Awaitable[None]]
Simulate = Callable[[PreparedRequest], Awaitable[requests.Response]]


def build_request(path: str, method: str = "GET") -> PreparedRequest:
    """Prepare a request for *path* (absolute, starting with "/") on the internal origin."""
    if not path.startswith("/"):
        raise ValueError(f"Request path must start with '/': {path!r}")
    return requests.Request(method, f"{INTERNAL_ORIGIN}{path}").prepare()


class SimulatedResponse(requests.Response):
    """A response that handlers write into, express style."""

    def __init__(self, request: PreparedRequest) -> None:
        super().__init__()
        self.status_code = 200
        self.request = request
        self.url = request.url
        self.encoding = "utf-8"
        self.finished = False
        self._chunks: List[bytes] = []

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)

    def write(self, data: Union[str, bytes]) -> None:
        if self.finished:
            raise RuntimeError("write after end")
        if isinstance(data, str):
            data = data.encode(self.encoding)
        self._chunks.append(data)

    def end(self, data: Union[str, bytes, None] = None) -> None:
        """Finish the response; the written chunks become its content."""
        if data is not None:
            self.write(data)
        self._content = b"".join(self._chunks)
        self._content_consumed = True
        self.finished = True

    def send(
        self,
        body: Union[str, bytes] = "",
        status: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> None:
        if status is not None:
            self.status_code = status
        if content_type is not None:
            self.set_header("Content-Type", content_type)
        self.end(body)

    def redirect(self, location: str, status: int = 302) -> None:
        self.status_code = status
        self.set_header("Location", location)
        self.end()


class HandlerChain:
    """Runs a request through *handlers* in order and returns the response."""

    def __init__(self, handlers: Sequence[Handler]) -> None:
        self.handlers = list(handlers)

    async def __call__(self, request: PreparedRequest) -> SimulatedResponse:
        response = SimulatedResponse(request)
        await self._dispatch(0, request, response)
        if not response.finished:
            raise ResponseNotEnded(request.path_url)
        return response

    async def _dispatch(self, index: int, request: PreparedRequest, response: SimulatedResponse) -> None:
        if index >= len(self.handlers):
            raise HandlerChainExhausted(request.path_url)

        async def call_next() -> None:
            await self._dispatch(index + 1, request, response)

        await self.handlers[index](request, response, call_next)
