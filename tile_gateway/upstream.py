from __future__ import annotations

"""
HTTP client for the upstream tile renderer (TileServer GL or compatible).

One attempt per inbound request, bounded by a per-call timeout. Any transport
failure is raised as UpstreamUnavailable; HTTP error statuses from a reachable
upstream are returned to the caller untouched so they can be relayed.

Usage:
    client = UpstreamClient("http://tileserver:8081", timeout=10.0)
    tile = client.fetch(decision)          # decision from routing.route()
    tile.status_code, tile.media_type, tile.content
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

from common.types import RouteDecision
from tile_gateway.errors import UpstreamUnavailable


log = logging.getLogger(__name__)

# upstream headers worth relaying to clients
RELAYED_HEADERS = ("ETag", "Last-Modified")


@dataclass
class UpstreamTile:
    content: bytes
    status_code: int
    media_type: str
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class UpstreamClient:
    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        """
        Params:
            base_url: upstream origin, e.g. http://localhost:8081 (no trailing slash needed)
            timeout: seconds for connect and read, per call
            session: optional requests.Session for connection reuse
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    def url_for(self, decision: RouteDecision) -> str:
        return f"{self.base_url}{decision.upstream_path}"

    def fetch(self, decision: RouteDecision, method: str = "GET") -> UpstreamTile:
        """
        Forward a routed tile request.

        Raises:
            UpstreamUnavailable: connection refused, timeout, or a response
            that could not be read.
        """
        url = self.url_for(decision)
        try:
            r = self.session.request(method, url, timeout=self.timeout)
            content = r.content if method != "HEAD" else b""
        except requests.Timeout as e:
            log.warning("Upstream timeout: %s", url, extra={"extra": {"url": url, "timeout": self.timeout}})
            raise UpstreamUnavailable(f"timeout after {self.timeout}s: {e}", upstream_url=url) from e
        except requests.RequestException as e:
            log.warning("Upstream request failed: %s (%s)", url, e, extra={"extra": {"url": url}})
            raise UpstreamUnavailable(str(e), upstream_url=url) from e

        media_type = r.headers.get("Content-Type") or decision.media_type
        headers = {h: r.headers[h] for h in RELAYED_HEADERS if h in r.headers}
        # HEAD has no body to measure; keep the upstream length
        if method == "HEAD" and "Content-Length" in r.headers:
            headers["Content-Length"] = r.headers["Content-Length"]
        if not 200 <= r.status_code < 300:
            log.info("Upstream returned %s for %s", r.status_code, url)
        return UpstreamTile(content=content, status_code=r.status_code, media_type=media_type, headers=headers)

    def close(self) -> None:
        self.session.close()
