from __future__ import annotations

import argparse
from contextlib import asynccontextmanager
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from common.logging_setup import get_logger, setup_logging
from tile_gateway import __version__
from tile_gateway.config import GatewayConfig, load_config
from tile_gateway.errors import GatewayError, UpstreamUnavailable, translate
from tile_gateway.routing import parse_format, route, split_tile_name
from tile_gateway.upstream import UpstreamClient
from tile_gateway.validate import validate

log = get_logger("tile_gateway.server")


def describe(config: GatewayConfig) -> Dict:
    """Static service description served at GET /."""
    base = f"http://YOUR_HOST:{config.port}"
    return {
        "service": "OSM Tile API",
        "version": __version__,
        "endpoints": {
            "vector": "/tiles/{z}/{x}/{y}.pbf",
            "raster_png": "/tiles/{z}/{x}/{y}.png",
            "raster_jpg": "/tiles/{z}/{x}/{y}.jpg",
            "health": "/healthz",
        },
        "max_zoom": config.max_zoom,
        "raster_style": config.raster_style,
        "arcgis": {
            "description": "For ArcGIS Maps SDK WebTileLayer",
            "urlTemplate": {
                "vector": base + "/tiles/{level}/{col}/{row}.pbf",
                "raster": base + "/tiles/{level}/{col}/{row}.png",
            },
            "note": (
                "Replace YOUR_HOST with your server hostname or IP. "
                "Use {level}, {col}, {row} for ArcGIS, or {z}, {x}, {y} for standard XYZ."
            ),
        },
    }


def create_app(config: Optional[GatewayConfig] = None, client: Optional[UpstreamClient] = None) -> FastAPI:
    """
    Build the gateway application.

    `config` defaults to load_config(); `client` defaults to an UpstreamClient
    pointed at config.upstream_url. Both are fixed for the app's lifetime.
    Usable directly as a uvicorn factory:
        uvicorn --factory tile_gateway.server:create_app
    """
    config = config or load_config()
    client = client or UpstreamClient(config.upstream_url, timeout=config.upstream_timeout)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        client.close()

    app = FastAPI(title="OSM Tile API", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.upstream = client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.cors_origin],
        allow_methods=["GET", "HEAD", "OPTIONS"],
        allow_headers=["Content-Type", "Accept"],
    )

    # -------- error translation --------

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError):
        status, body = translate(exc)
        if isinstance(exc, UpstreamUnavailable):
            log.warning("Proxy error", extra={"extra": {"path": request.url.path, "reason": exc.reason}})
        else:
            log.debug("Rejected tile request", extra={"extra": {"path": request.url.path, "error": body}})
        return JSONResponse(body, status_code=status)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse({"error": "Not found", "path": request.url.path}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def server_error(request: Request, exc: Exception):
        log.exception("Server error", extra={"extra": {"path": request.url.path}})
        # sent by ServerErrorMiddleware, outside CORSMiddleware
        return JSONResponse(
            {"error": "Internal server error"},
            status_code=500,
            headers={"Access-Control-Allow-Origin": config.cors_origin},
        )

    # -------- endpoints --------

    @app.get("/healthz")
    def healthz():
        return {"status": "ok", "service": config.service_name}

    @app.get("/")
    def root():
        return describe(config)

    @app.api_route("/tiles/{z}/{x}/{tile}", methods=["GET", "HEAD"])
    def get_tile(z: str, x: str, tile: str, request: Request):
        """
        Validate, route and forward one tile request.

        Plain `def` so the blocking upstream call runs in the worker thread
        pool and never stalls other requests.
        """
        y, ext = split_tile_name(tile)
        fmt = parse_format(ext)
        coord = validate(z, x, y, max_zoom=config.max_zoom)
        decision = route(coord, fmt, config)

        upstream = client.fetch(decision, method=request.method)

        headers = dict(upstream.headers)
        headers["Access-Control-Allow-Origin"] = decision.exposed_origin
        if upstream.ok:
            headers["Cache-Control"] = decision.cache_control
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.media_type,
            headers=headers,
        )

    return app


def main(argv: Optional[list] = None) -> None:
    ap = argparse.ArgumentParser(description="Tile gateway: validate XYZ tile requests and proxy them upstream")
    ap.add_argument("--config", default=None, help="YAML config file (default: $GATEWAY_CONFIG or config/gateway.yaml)")
    ap.add_argument("--host", default=None)
    ap.add_argument("--port", type=int, default=None)
    ap.add_argument("--upstream", default=None, help="Upstream tile server base URL")
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)

    config = load_config(args.config)
    overrides = {
        k: v
        for k, v in (
            ("host", args.host),
            ("port", args.port),
            ("upstream_url", args.upstream),
            ("log_level", args.log_level),
        )
        if v is not None
    }
    if overrides:
        config = config.with_overrides(**overrides)

    setup_logging(config.log_level, service=config.service_name)
    app = create_app(config)

    log.info(
        "Tile gateway listening",
        extra={"extra": {"host": config.host, "port": config.port, "upstream": config.upstream_url}},
    )
    log.info(f"Vector tiles: http://localhost:{config.port}/tiles/{{z}}/{{x}}/{{y}}.pbf")
    log.info(f"Raster tiles: http://localhost:{config.port}/tiles/{{z}}/{{x}}/{{y}}.png")
    # log_config=None: uvicorn's loggers propagate to our JSON root handler
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


if __name__ == "__main__":
    main()
