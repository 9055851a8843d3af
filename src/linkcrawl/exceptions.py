"""Exceptions raised for infrastructure faults during a crawl."""


class LinkCrawlException(Exception):
    """Base class for errors that abort a crawl."""


class HandlerChainExhausted(LinkCrawlException):
    """Raised when the last handler calls ``call_next``."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"No more handlers to call for {path}")


class ResponseNotEnded(LinkCrawlException):
    """Raised when every handler returned without ending the response."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Handler chain finished without ending the response for {path}")


class HostingConfigError(LinkCrawlException):
    """Raised when firebase.json cannot be used as a hosting config."""

    def __init__(self, config_path: str, reason: str):
        self.config_path = config_path
        self.reason = reason
        super().__init__(f"Hosting config '{config_path}' {reason}")
