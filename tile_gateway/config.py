from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_CONFIG_PATH = "config/gateway.yaml"

# Hard ceiling for MAX_ZOOM; no XYZ renderer goes deeper than this
ZOOM_CEILING = 30

# env var -> field name
ENV_VARS: Dict[str, str] = {
    "SERVICE_NAME": "service_name",
    "HOST": "host",
    "PORT": "port",
    "UPSTREAM_TILESERVER": "upstream_url",
    "UPSTREAM_TIMEOUT": "upstream_timeout",
    "MAX_ZOOM": "max_zoom",
    "RASTER_STYLE": "raster_style",
    "VECTOR_SOURCE": "vector_source",
    "CACHE_TTL": "cache_ttl",
    "CORS_ORIGIN": "cors_origin",
    "LOG_LEVEL": "log_level",
}


@dataclass(frozen=True)
class GatewayConfig:
    """
    Deployment settings, built once at startup and passed explicitly to the
    app factory and the router. Nothing in request handling reads os.environ.
    """
    service_name: str = "osm-tile-api"
    host: str = "0.0.0.0"
    port: int = 8080
    upstream_url: str = "http://localhost:8081"
    upstream_timeout: float = 10.0
    max_zoom: int = 22
    raster_style: str = "basic"
    vector_source: str = "v3"
    cache_ttl: int = 86400
    cors_origin: str = "*"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        # coerce strings coming from env/YAML, then check ranges
        for f in fields(self):
            value = getattr(self, f.name)
            try:
                if f.type in ("int", int):
                    value = int(value)
                elif f.type in ("float", float):
                    value = float(value)
                else:
                    value = str(value).strip()
            except (TypeError, ValueError):
                raise ValueError(f"invalid value for {f.name}: {value!r}") from None
            object.__setattr__(self, f.name, value)

        if not (0 < self.port < 65536):
            raise ValueError(f"port must be in 1..65535, got {self.port}")
        if not (0 <= self.max_zoom <= ZOOM_CEILING):
            raise ValueError(f"max_zoom must be in 0..{ZOOM_CEILING}, got {self.max_zoom}")
        if self.cache_ttl < 0:
            raise ValueError(f"cache_ttl must be >= 0, got {self.cache_ttl}")
        if self.upstream_timeout <= 0:
            raise ValueError(f"upstream_timeout must be > 0, got {self.upstream_timeout}")
        for name in ("raster_style", "vector_source"):
            value = getattr(self, name)
            if not value or "/" in value:
                raise ValueError(f"{name} must be a single non-empty path segment, got {value!r}")
        if not self.upstream_url.startswith(("http://", "https://")):
            raise ValueError(f"upstream_url must be an http(s) URL, got {self.upstream_url!r}")
        object.__setattr__(self, "upstream_url", self.upstream_url.rstrip("/"))

    @property
    def cache_control(self) -> str:
        return f"public, max-age={self.cache_ttl}"

    def with_overrides(self, **kwargs: Any) -> "GatewayConfig":
        return replace(self, **kwargs)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    # allow either a flat file or one nested under `gateway:`
    section = data.get("gateway", data)
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ValueError(f"{path}: `gateway` must be a mapping, got {type(section).__name__}")
    known = {f.name for f in fields(GatewayConfig)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ValueError(f"{path}: unknown config keys: {', '.join(unknown)}")
    return dict(section)


def load_config(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> GatewayConfig:
    """
    Build the GatewayConfig.

    Precedence: environment > YAML file > dataclass defaults. The file is
    `path`, else $GATEWAY_CONFIG, else config/gateway.yaml; a missing default
    file is fine, a missing explicit one is an error.
    """
    env = os.environ if env is None else env
    explicit = path or env.get("GATEWAY_CONFIG")
    cfg_path = Path(explicit or DEFAULT_CONFIG_PATH)

    values: Dict[str, Any] = {}
    if cfg_path.exists():
        values.update(_read_yaml(cfg_path))
    elif explicit:
        raise FileNotFoundError(f"config file not found: {cfg_path}")

    for var, name in ENV_VARS.items():
        if env.get(var) not in (None, ""):
            values[name] = env[var]

    return GatewayConfig(**values)
