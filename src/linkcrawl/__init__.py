"""
Link crawler that checks every internal link of a built site from /.
Pages are served in-process by a chain of request handlers and broken
links are reported as structured errors (console summary and JSON).
"""
from linkcrawl.config import CrawlOptions, HostingConfig, load_hosting_config
from linkcrawl.core import Crawler, detect_urls
from linkcrawl.result import OK, CrawlError, CrawlResult
from linkcrawl.simulate import HandlerChain, SimulatedResponse, build_request
from linkcrawl.static import StaticSiteHandler

__version__ = "1.0.0"
__all__ = [
    "OK",
    "CrawlError",
    "CrawlOptions",
    "CrawlResult",
    "Crawler",
    "HandlerChain",
    "HostingConfig",
    "SimulatedResponse",
    "StaticSiteHandler",
    "build_request",
    "detect_urls",
    "load_hosting_config",
]
