"""
Tile Gateway Test Suite

Structure:
- unit/: validator, router, error table, config and upstream client in isolation
- integration/: the FastAPI app end to end with a mocked upstream session
"""
