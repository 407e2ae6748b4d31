"""
Central event bus for tracking and broadcasting client events
"""

import logging
import threading
import time
import uuid
from collections import defaultdict
from datetime import datetime
from queue import Empty, Queue
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class SystemEvent:
    """Represents a client event"""

    def __init__(self, event_type: str, data: Dict[str, Any], source: str = None):
        self.id = str(uuid.uuid4())
        self.type = event_type
        self.data = data
        self.source = source or "system"
        self.timestamp = time.time()
        self.datetime = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary"""
        return {
            "id": self.id,
            "type": self.type,
            "data": self.data,
            "source": self.source,
            "timestamp": self.timestamp,
            "datetime": self.datetime
        }


class EventBus:
    """Process-wide event bus; listeners run on a background dispatch thread"""

    def __init__(self, max_history: int = 500):
        self.listeners: Dict[str, List[Callable]] = defaultdict(list)
        self.event_queue: Queue = Queue()
        self.event_history: List[SystemEvent] = []
        self.max_history = max_history
        self.event_counts = defaultdict(int)
        self._lock = threading.Lock()
        self._running = True
        self._processor_thread = threading.Thread(
            target=self._process_events, daemon=True, name="EventBusDispatch"
        )
        self._processor_thread.start()

    def emit(self, event_type: str, data: Dict[str, Any], source: str = None):
        """Emit an event to the bus"""
        self.event_queue.put(SystemEvent(event_type, data, source))

    def on(self, event_type: str, callback: Callable[[SystemEvent], None]):
        """Register a listener for specific event type"""
        with self._lock:
            self.listeners[event_type].append(callback)

    def on_all(self, callback: Callable[[SystemEvent], None]):
        """Register a listener for all events"""
        self.on("*", callback)

    def off(self, event_type: str, callback: Callable[[SystemEvent], None]):
        """Remove a listener"""
        with self._lock:
            if callback in self.listeners[event_type]:
                self.listeners[event_type].remove(callback)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until every queued event has been dispatched"""
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.event_queue.unfinished_tasks:
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(0.005)
        return True

    def _process_events(self):
        while self._running:
            try:
                event = self.event_queue.get(timeout=0.1)
            except Empty:
                continue

            try:
                self._dispatch(event)
            finally:
                self.event_queue.task_done()

    def _dispatch(self, event: SystemEvent):
        with self._lock:
            self.event_counts[event.type] += 1
            self.event_history.append(event)
            if len(self.event_history) > self.max_history:
                self.event_history.pop(0)
            listeners = list(self.listeners.get(event.type, [])) + list(self.listeners.get("*", []))

        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Error in event listener for {event.type}")

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics"""
        with self._lock:
            return {
                "total_events": sum(self.event_counts.values()),
                "event_counts": dict(self.event_counts),
                "queue_size": self.event_queue.qsize(),
                "history_size": len(self.event_history),
                "listener_counts": {
                    event_type: len(listeners)
                    for event_type, listeners in self.listeners.items()
                }
            }

    def get_recent_events(self, count: int = 50, event_type: str = None) -> List[Dict[str, Any]]:
        """Get recent events from history"""
        with self._lock:
            events = list(self.event_history)

        if event_type:
            events = [e for e in events if e.type == event_type]

        return [e.to_dict() for e in events[-count:]]

    def shutdown(self):
        """Shutdown the event bus"""
        self._running = False
        if self._processor_thread.is_alive():
            self._processor_thread.join(timeout=2.0)


# Global event bus instance
event_bus = EventBus()


class EventTypes:
    # Credential exchange events
    CREDENTIAL_REQUESTED = "credential.requested"
    CREDENTIAL_ISSUED = "credential.issued"
    CREDENTIAL_FAILED = "credential.failed"
    CREDENTIAL_DISCARDED = "credential.discarded"

    # Agent settings notification events
    NOTIFICATION_SENT = "notification.sent"
    NOTIFICATION_FAILED = "notification.failed"

    # Connection events
    CONNECTION_STATUS_CHANGED = "connection.status_changed"
    SESSION_OPENED = "session.opened"
    SESSION_CLOSED = "session.closed"

    # View events
    VIEW_CHANGED = "view.changed"

    # Auth collaborator events
    AUTH_LOGIN = "auth.login"
    AUTH_LOGOUT = "auth.logout"
