"""
portfolio-pwa

Offline caching layer for a portfolio website (cache-first and network-first
retrieval, versioned cache stores, install/activate lifecycle, deferred form
submissions) plus a backoff-retrying client for outbound API calls.

License: MIT
Version: 0.1.0
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .runner import main

__all__ = ["main"]
