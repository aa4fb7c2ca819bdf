"""
Web package.

aiohttp HTTP surface for the affiliate service.
"""

from affiliate.web.app import create_app, start_server, stop_server


__all__ = [
    "create_app",
    "start_server",
    "stop_server",
]
