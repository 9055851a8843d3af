"""
Crawler options and Firebase Hosting configuration.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from linkcrawl.exceptions import HostingConfigError
from linkcrawl.result import CrawlError, format_error
from linkcrawl.simulate import Handler

FIREBASE_CONFIG_NAME = "firebase.json"

ErrorOutput = Callable[[CrawlError], Optional[str]]


@dataclass(slots=True)
class CrawlOptions:
    """Options recognised by :class:`linkcrawl.core.Crawler`."""
    normalize_trailing_slash: bool = True
    disable_duplicate_urls: bool = True
    on_error_output: Optional[ErrorOutput] = format_error
    handlers: List[Handler] = field(default_factory=list)
    detect_firebase_hosting: bool = True
    project_dir: Path = field(default_factory=Path.cwd)


@dataclass(slots=True)
class Redirect:
    source: str
    destination: str
    status: int = 301


@dataclass(slots=True)
class Rewrite:
    source: str
    destination: str


@dataclass(slots=True)
class HostingConfig:
    """The ``hosting`` section of firebase.json, as far as serving files goes."""
    public: str = "."
    clean_urls: bool = False
    trailing_slash: Optional[bool] = None
    redirects: List[Redirect] = field(default_factory=list)
    rewrites: List[Rewrite] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HostingConfig":
        redirects = [
            Redirect(
                source=item["source"],
                destination=item["destination"],
                status=int(item.get("type", 301)),
            )
            for item in data.get("redirects", [])
        ]
        rewrites = [
            Rewrite(source=item["source"], destination=item["destination"])
            for item in data.get("rewrites", [])
            if "destination" in item
        ]
        return cls(
            public=data.get("public", "."),
            clean_urls=bool(data.get("cleanUrls", False)),
            trailing_slash=data.get("trailingSlash"),
            redirects=redirects,
            rewrites=rewrites,
        )


def load_hosting_config(project_dir: Path) -> Optional[HostingConfig]:
    """
    Read the hosting section of ``firebase.json`` in *project_dir*.

    Returns None when there is no firebase.json. A list of hosting targets
    uses the first one.
    """
    config_path = Path(project_dir) / FIREBASE_CONFIG_NAME
    if not config_path.is_file():
        return None

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise HostingConfigError(str(config_path), f"is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise HostingConfigError(str(config_path), "must contain a JSON object")

    hosting = data.get("hosting", {})
    if isinstance(hosting, list):
        hosting = hosting[0] if hosting else {}
    if not isinstance(hosting, dict):
        raise HostingConfigError(str(config_path), "has a 'hosting' section that is not an object")

    try:
        return HostingConfig.from_dict(hosting)
    except (KeyError, TypeError, ValueError) as e:
        raise HostingConfigError(str(config_path), f"has an invalid hosting rule: {e}") from e
