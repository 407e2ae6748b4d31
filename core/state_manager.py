"""
Connection status tracking and transition enforcement
"""

import threading
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from core.logging_config import get_logger
from events import event_bus, EventTypes


class ConnectionStatus(Enum):
    """Connection statuses"""
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class StateTransition:
    """Represents a status transition"""
    def __init__(self, from_state: ConnectionStatus, to_state: ConnectionStatus, reason: str = ""):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason
        self.timestamp = time.time()
        self.datetime = datetime.now()

    def __str__(self):
        return f"{self.from_state.value} → {self.to_state.value} ({self.reason})"


StateListener = Callable[[ConnectionStatus, ConnectionStatus], None]


class StateManager:
    """Holds the current connection status and enforces valid transitions"""

    # A new connect attempt may supersede one that is connecting or connected
    VALID_TRANSITIONS = {
        ConnectionStatus.IDLE: [ConnectionStatus.CONNECTING],
        ConnectionStatus.CONNECTING: [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED, ConnectionStatus.IDLE],
        ConnectionStatus.CONNECTED: [ConnectionStatus.CONNECTING, ConnectionStatus.DISCONNECTED, ConnectionStatus.IDLE],
        ConnectionStatus.DISCONNECTED: [ConnectionStatus.CONNECTING, ConnectionStatus.IDLE],
    }

    def __init__(self, max_history: int = 100):
        self.logger = get_logger(__name__)
        self.current_state = ConnectionStatus.IDLE
        self.state_lock = threading.RLock()

        self.transitions: List[StateTransition] = []
        self.max_history = max_history

        self.state_listeners: List[StateListener] = []

        self.state_start_time = time.time()
        self.error_count = 0
        self.last_error: Optional[str] = None

    def get_state(self) -> ConnectionStatus:
        """Get current status"""
        with self.state_lock:
            return self.current_state

    def transition_to(self, new_state: ConnectionStatus, reason: str = "") -> bool:
        """
        Transition to a new status

        Args:
            new_state: Target status
            reason: Reason for transition

        Returns:
            True if transition successful, False if invalid
        """
        with self.state_lock:
            if not self._is_valid_transition(self.current_state, new_state):
                self.logger.warning(f"Invalid state transition: {self.current_state.value} → {new_state.value}")
                return False

            transition = StateTransition(self.current_state, new_state, reason)
            self.transitions.append(transition)
            if len(self.transitions) > self.max_history:
                self.transitions = self.transitions[-self.max_history:]

            old_state = self.current_state
            self.current_state = new_state
            self.state_start_time = time.time()

            self.logger.info(f"State transition: {transition}")

            event_bus.emit(EventTypes.CONNECTION_STATUS_CHANGED, {
                "from_state": old_state.value,
                "to_state": new_state.value,
                "reason": reason
            }, source="state_manager")

        # Notify outside the lock so listeners may read state freely
        self._notify_listeners(old_state, new_state)

        return True

    def record_error(self, error: Exception) -> None:
        """Remember the error that ended the current attempt"""
        with self.state_lock:
            self.error_count += 1
            self.last_error = str(error)

    def clear_error(self) -> None:
        with self.state_lock:
            self.last_error = None

    def add_listener(self, listener: StateListener):
        """Add status change listener"""
        self.state_listeners.append(listener)

    def remove_listener(self, listener: StateListener):
        """Remove status change listener"""
        if listener in self.state_listeners:
            self.state_listeners.remove(listener)

    def _is_valid_transition(self, from_state: ConnectionStatus, to_state: ConnectionStatus) -> bool:
        return to_state in self.VALID_TRANSITIONS.get(from_state, [])

    def _notify_listeners(self, old_state: ConnectionStatus, new_state: ConnectionStatus):
        for listener in list(self.state_listeners):
            try:
                listener(old_state, new_state)
            except Exception:
                self.logger.exception("Error in state listener")

    def is_connected(self) -> bool:
        with self.state_lock:
            return self.current_state == ConnectionStatus.CONNECTED

    def is_busy(self) -> bool:
        """Check if an attempt is in flight or a session is live"""
        with self.state_lock:
            return self.current_state in (ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED)

    def get_state_duration(self) -> float:
        """Get duration in current status (seconds)"""
        with self.state_lock:
            return time.time() - self.state_start_time

    def get_transition_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Get recent transitions"""
        with self.state_lock:
            recent = self.transitions[-limit:] if self.transitions else []
            return [
                {
                    "from": t.from_state.value,
                    "to": t.to_state.value,
                    "reason": t.reason,
                    "timestamp": t.timestamp,
                    "datetime": t.datetime.isoformat()
                }
                for t in recent
            ]

    def get_stats(self) -> Dict[str, Any]:
        with self.state_lock:
            return {
                "current_state": self.current_state.value,
                "state_duration": self.get_state_duration(),
                "transition_count": len(self.transitions),
                "error_count": self.error_count,
                "last_error": self.last_error,
                "is_connected": self.is_connected(),
            }
