"""
Real-time transport sessions
"""

from .session import ConnectionSession, build_signal_url, websocket_connector

__all__ = ["ConnectionSession", "build_signal_url", "websocket_connector"]
