"""
Core components for connection status and view management
"""

from .state_manager import StateManager, ConnectionStatus
from .view_state import View, ViewController, select_view

__all__ = ["StateManager", "ConnectionStatus", "View", "ViewController", "select_view"]
