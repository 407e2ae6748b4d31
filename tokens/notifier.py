"""
Fire-and-forget agent settings notification
"""

import asyncio
from typing import Any, Dict, Optional, Set

import aiohttp

from config import DEFAULT_AI_SETTINGS_ENDPOINT, get_token_config
from core.logging_config import get_logger, log_error_with_context
from events import event_bus, EventTypes


class AgentSettingsNotifier:
    """Tells the backend which agent options were chosen, without blocking anyone

    Each dispatch runs as a detached task. Its outcome only reaches the log
    and the event bus; callers never await or observe it.
    """

    def __init__(self, endpoint: str = DEFAULT_AI_SETTINGS_ENDPOINT,
                 request_timeout: Optional[float] = 10.0):
        self.logger = get_logger(__name__)
        self.endpoint = endpoint
        self.request_timeout = request_timeout
        self._tasks: Set[asyncio.Task] = set()

        self.sent = 0
        self.failed = 0

    @classmethod
    def from_config(cls) -> "AgentSettingsNotifier":
        return cls(endpoint=get_token_config()["settings_endpoint"])

    def dispatch(self, payload: Dict[str, Any]) -> asyncio.Task:
        """Schedule the notification on the running loop and return immediately"""
        task = asyncio.get_running_loop().create_task(self._send(payload), name="AgentSettingsNotify")
        # Hold a reference until done so the task is not collected mid-flight
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send(self, payload: Dict[str, Any]) -> None:
        self.logger.debug("Sending AI settings to backend", extra={"extra_data": {
            "endpoint": self.endpoint,
            "payload": payload
        }})
        timeout = aiohttp.ClientTimeout(total=self.request_timeout) if self.request_timeout else aiohttp.ClientTimeout()

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.endpoint, json=payload,
                                        headers={"Content-Type": "application/json"}) as response:
                    status = response.status
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failed += 1
            log_error_with_context(self.logger, e, "agent settings notification", endpoint=self.endpoint)
            event_bus.emit(EventTypes.NOTIFICATION_FAILED, {
                "endpoint": self.endpoint,
                "error_type": type(e).__name__,
                "error_message": str(e)
            }, source="settings_notifier")
            return

        self.sent += 1
        self.logger.debug(f"AI settings delivered (HTTP {status})")
        event_bus.emit(EventTypes.NOTIFICATION_SENT, {
            "endpoint": self.endpoint,
            "status": status
        }, source="settings_notifier")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for outstanding notifications to finish"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
