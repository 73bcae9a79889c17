from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import IO, Optional

# third-party loggers that log every pooled connection at DEBUG/INFO
_NOISY_LOGGERS = ("urllib3", "urllib3.connectionpool")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line:
      { "t": 169, "lvl": "INFO", "svc": "osm-tile-api", "name": "mod", "msg": "text", "extra": {...} }

    `svc` is omitted when no service name was given.
    """

    def __init__(self, service: Optional[str] = None):
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {"t": int(time.time() * 1000), "lvl": record.levelname}
        if self.service:
            payload["svc"] = self.service
        payload["name"] = record.name
        payload["msg"] = record.getMessage()
        if isinstance(getattr(record, "extra", None), dict):
            payload["extra"] = record.extra  # type: ignore[attr-defined]
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _level(name: Optional[str]) -> int:
    lvl = getattr(logging, (name or os.environ.get("LOG_LEVEL") or "INFO").upper(), None)
    return lvl if isinstance(lvl, int) else logging.INFO


def setup_logging(
    level: Optional[str] = None,
    *,
    service: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Point the root logger at a JSON handler.

    The first call installs the handler (stdout unless `stream` is given);
    later calls only adjust the level and, if given, the service tag, so
    module-level get_logger() calls at import time don't fight the
    configured startup call. Passing `stream` always reinstalls the handler.
    """
    root = logging.getLogger()
    handler = getattr(root, "_tile_gateway_handler", None)
    installed = handler is None or stream is not None

    if installed:
        if handler is not None:
            root.removeHandler(handler)
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(JsonFormatter(service))
        root.addHandler(handler)
        root._tile_gateway_handler = handler  # type: ignore[attr-defined]
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    elif service is not None:
        handler.formatter.service = service  # type: ignore[union-attr]

    if installed or level is not None:
        root.setLevel(_level(level))


def get_logger(name: str) -> logging.Logger:
    """Module logger; installs the JSON handler if nobody has yet."""
    setup_logging()
    return logging.getLogger(name)
