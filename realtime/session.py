"""
Connection session bound to one issued credential
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, List, Optional
from urllib.parse import quote

import websockets

from core.logging_config import get_logger
from core.state_manager import ConnectionStatus
from events import event_bus, EventTypes
from tokens.exceptions import TransportError
from tokens.response import SessionCredential

# Opens the transport for a signaling URL; the result must offer
# awaitable close() and wait_closed()
Connector = Callable[[str], Awaitable[Any]]
StatusListener = Callable[[ConnectionStatus, ConnectionStatus], None]


def build_signal_url(server_url: str, participant_token: str) -> str:
    """Signaling URL for a server endpoint and participant token"""
    return f"{server_url.rstrip('/')}/rtc?access_token={quote(participant_token, safe='')}"


async def websocket_connector(url: str, open_timeout: float = 10.0):
    return await websockets.connect(url, open_timeout=open_timeout)


class ConnectionSession:
    """Owns the real-time transport for a single credential"""

    def __init__(self,
                 credential: SessionCredential,
                 connector: Optional[Connector] = None):
        """
        Args:
            credential: Validated credential the transport is opened with
            connector: Transport factory (defaults to a websocket connection)
        """
        self.logger = get_logger(__name__)
        self.credential = credential
        self.connector = connector or websocket_connector

        self.transport = None
        self._status = ConnectionStatus.IDLE
        self._listeners: List[StatusListener] = []
        self._watch_task: Optional[asyncio.Task] = None
        self._closing = False

        self.connected_at: Optional[float] = None

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def server_url(self) -> str:
        return self.credential.server_url

    def is_active(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    def add_listener(self, listener: StatusListener):
        self._listeners.append(listener)

    def remove_listener(self, listener: StatusListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set_status(self, new_status: ConnectionStatus):
        old_status = self._status
        if old_status == new_status:
            return
        self._status = new_status
        for listener in list(self._listeners):
            try:
                listener(old_status, new_status)
            except Exception:
                self.logger.exception("Error in session status listener")

    async def connect(self) -> None:
        """
        Open the transport.

        Raises:
            TransportError: if the transport cannot be opened
            RuntimeError: if this session was already used
        """
        if self._status != ConnectionStatus.IDLE:
            raise RuntimeError(f"Session already {self._status.value}")

        self._set_status(ConnectionStatus.CONNECTING)
        url = build_signal_url(self.credential.server_url, self.credential.participant_token)
        self.logger.info("Connecting to real-time server", extra={"extra_data": {
            "server_url": self.credential.server_url,
            "token_preview": self.credential.masked_preview()
        }})

        try:
            self.transport = await self.connector(url)
        except asyncio.CancelledError:
            self._set_status(ConnectionStatus.DISCONNECTED)
            raise
        except Exception as e:
            self._set_status(ConnectionStatus.DISCONNECTED)
            raise TransportError(f"Could not connect to {self.credential.server_url}: {e}") from e

        if self._closing:
            # close() ran while the transport was opening
            await self._close_transport()
            return

        self.connected_at = time.time()
        self._set_status(ConnectionStatus.CONNECTED)
        self._watch_task = asyncio.get_running_loop().create_task(self._watch_transport(), name="SessionWatch")

        event_bus.emit(EventTypes.SESSION_OPENED, {"server_url": self.credential.server_url},
                       source="connection_session")

    async def _watch_transport(self):
        try:
            await self.transport.wait_closed()
        except asyncio.CancelledError:
            raise
        except Exception:
            self.logger.debug("Transport wait_closed raised", exc_info=True)

        if not self._closing:
            self.logger.warning("Real-time transport closed unexpectedly")
            self._set_status(ConnectionStatus.DISCONNECTED)
            event_bus.emit(EventTypes.SESSION_CLOSED, {
                "server_url": self.credential.server_url,
                "reason": "transport_lost"
            }, source="connection_session")

    async def close(self) -> None:
        """Tear down the transport; safe to call more than once"""
        if self._closing:
            return
        self._closing = True

        current = asyncio.current_task()
        if self._watch_task and self._watch_task is not current and not self._watch_task.done():
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass

        await self._close_transport()

    async def _close_transport(self):
        was_open = self.transport is not None
        if self.transport is not None:
            try:
                await self.transport.close()
            except Exception:
                self.logger.warning("Error closing real-time transport", exc_info=True)
            self.transport = None

        self._set_status(ConnectionStatus.DISCONNECTED)

        if was_open:
            duration = time.time() - self.connected_at if self.connected_at else 0.0
            self.logger.info(f"Real-time session closed after {duration:.1f}s")
            event_bus.emit(EventTypes.SESSION_CLOSED, {
                "server_url": self.credential.server_url,
                "reason": "closed",
                "duration": duration
            }, source="connection_session")
