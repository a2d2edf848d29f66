"""Backend package for the CircuPlay API.

This package provides the FastAPI web server, the WebSocket endpoint,
the background tick runner, and on-disk circuit storage.
"""

__version__ = "1.0.0"
