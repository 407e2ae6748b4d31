"""
Connection coordinator: drives connect/disconnect and owns the current session
"""

import asyncio
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from core.logging_config import get_logger
from core.state_manager import ConnectionStatus, StateManager
from core.view_state import View, select_view
from events import event_bus, EventTypes
from realtime.session import ConnectionSession, Connector
from tokens.exceptions import CredentialExchangeError
from tokens.request_builder import ConnectionOptions, build_request_payload
from tokens.response import SessionCredential

SessionFactory = Callable[[SessionCredential], ConnectionSession]


class ConnectionCoordinator:
    """Runs connect attempts and keeps at most one live session

    Every connect or disconnect call starts a new attempt generation. A
    credential or transport that arrives for an older generation is
    discarded, so the most recent request always wins.
    """

    def __init__(self,
                 token_client,
                 agent_name: str = "",
                 state_manager: Optional[StateManager] = None,
                 session_factory: Optional[SessionFactory] = None,
                 connector: Optional[Connector] = None,
                 options: Optional[ConnectionOptions] = None):
        """
        Initialize connection coordinator

        Args:
            token_client: Object with ``async request_credential(payload)``
            agent_name: Agent identity placed in every request
            state_manager: Status holder (a fresh one when omitted)
            session_factory: Builds a session from a credential
            connector: Transport factory handed to default-built sessions
            options: Initial connection options
        """
        self.logger = get_logger(__name__)
        self.token_client = token_client
        self.agent_name = agent_name
        self.state_manager = state_manager or StateManager()
        self.session_factory = session_factory or (lambda credential: ConnectionSession(credential, connector=connector))
        self.options = options or ConnectionOptions()

        self.session: Optional[ConnectionSession] = None
        self.last_error: Optional[Exception] = None
        self._generation = 0

        self.attempts = 0
        self.discarded = 0

    @property
    def status(self) -> ConnectionStatus:
        return self.state_manager.get_state()

    @property
    def view(self) -> View:
        return select_view(self.status)

    def update_options(self, **changes) -> ConnectionOptions:
        """Apply user edits; read again on the next connect attempt"""
        self.options = replace(self.options, **changes)
        return self.options

    async def connect(self, options: Optional[ConnectionOptions] = None) -> Optional[ConnectionSession]:
        """
        Start a connect attempt, superseding any earlier one.

        Args:
            options: Options for this attempt (defaults to the current options)

        Returns:
            The connected session, or None if a newer attempt or a
            disconnect took over while this one was in flight.

        Raises:
            CredentialExchangeError: credential exchange or transport failed
        """
        if options is not None:
            self.options = options

        self._generation += 1
        generation = self._generation
        self.attempts += 1

        await self._release_session()
        if generation != self._generation:
            return None

        self.last_error = None
        self.state_manager.clear_error()
        self.state_manager.transition_to(ConnectionStatus.CONNECTING, f"connect attempt {generation}")

        payload = build_request_payload(self.options, self.agent_name)

        try:
            credential = await self.token_client.request_credential(payload)
        except CredentialExchangeError as e:
            return self._fail(generation, e)
        except asyncio.CancelledError:
            await self._abandon(generation)
            raise

        if generation != self._generation:
            self._discard(generation, "credential")
            return None

        session = self.session_factory(credential)
        self.session = session
        session.add_listener(lambda old, new: self._handle_session_status(session, new))

        try:
            await session.connect()
        except CredentialExchangeError as e:
            if self.session is session:
                self.session = None
            return self._fail(generation, e)
        except asyncio.CancelledError:
            await self._abandon(generation)
            raise

        if generation != self._generation:
            await session.close()
            self._discard(generation, "session")
            return None

        self.state_manager.transition_to(ConnectionStatus.CONNECTED, f"connect attempt {generation}")
        return session

    async def disconnect(self) -> None:
        """End the current session and cancel any in-flight attempt"""
        self._generation += 1
        await self._release_session()
        if self.state_manager.get_state() != ConnectionStatus.IDLE:
            self.state_manager.transition_to(ConnectionStatus.IDLE, "user disconnect")

    async def _release_session(self):
        session, self.session = self.session, None
        if session is not None:
            self.logger.debug("Tearing down previous session")
            await session.close()

    def _fail(self, generation: int, error: CredentialExchangeError) -> None:
        if generation != self._generation:
            self.logger.info(f"Ignoring failure of superseded attempt {generation}: {error}")
            self.discarded += 1
            return None

        self.last_error = error
        self.state_manager.record_error(error)
        self.state_manager.transition_to(ConnectionStatus.IDLE, f"connect failed: {error}")
        raise error

    async def _abandon(self, generation: int):
        if generation != self._generation:
            return
        self.logger.info(f"Connect attempt {generation} cancelled")
        await self._release_session()
        self.state_manager.transition_to(ConnectionStatus.IDLE, "connect cancelled")

    def _discard(self, generation: int, what: str):
        self.discarded += 1
        self.logger.info(f"Discarding {what} from superseded attempt {generation} (current: {self._generation})")
        event_bus.emit(EventTypes.CREDENTIAL_DISCARDED, {
            "attempt": generation,
            "current_attempt": self._generation,
            "stage": what
        }, source="connection_coordinator")

    def _handle_session_status(self, session: ConnectionSession, new_status: ConnectionStatus):
        # Only the current, established session may move the shared status
        if session is not self.session or new_status != ConnectionStatus.DISCONNECTED:
            return
        if self.state_manager.get_state() == ConnectionStatus.CONNECTED:
            self.session = None
            self.state_manager.transition_to(ConnectionStatus.DISCONNECTED, "transport lost")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "view": self.view.value,
            "attempts": self.attempts,
            "discarded": self.discarded,
            "last_error": str(self.last_error) if self.last_error else None,
            "server_url": self.session.server_url if self.session else None,
        }

    async def shutdown(self):
        """Disconnect and wait for outstanding side-channel notifications"""
        await self.disconnect()
        notifier = getattr(self.token_client, "notifier", None)
        if notifier is not None:
            await notifier.drain()
