"""
Query API.

Read-only JSON endpoints over the payment ledger.
"""

from .server import create_app, start_api_server, stop_api_server


__all__ = [
    "create_app",
    "start_api_server",
    "stop_api_server",
]
