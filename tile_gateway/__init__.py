"""
Tile Gateway — XYZ tile request validation and upstream routing

- Validates /tiles/{z}/{x}/{y}.{pbf|png|jpg|jpeg} against the tile pyramid
- Rewrites accepted requests to TileServer GL paths (/data/... and /styles/...)
- Forwards upstream and relays the reply with Cache-Control and CORS headers
- Other endpoints: /healthz, /
"""
__version__ = "1.0.0"
