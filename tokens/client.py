"""
Token exchange client: trades a room configuration for a session credential
"""

import asyncio
import time
from typing import Any, Dict, Optional
from urllib.parse import urljoin

import aiohttp

from config import DEFAULT_SERVER_URL, FALLBACK_ORIGIN, get_app_config, get_token_config
from core.logging_config import get_logger, log_api_call
from events import event_bus, EventTypes
from .exceptions import CredentialExchangeError, FormatError, TransportError
from .notifier import AgentSettingsNotifier
from .response import SessionCredential, normalize_response, parse_raw_response


def resolve_endpoint(url: str, origin: Optional[str] = None) -> str:
    """
    Resolve the configured token endpoint to an absolute URL.

    Absolute http(s) URLs are used as-is; relative paths are joined onto
    ``origin``, or onto the fallback origin when there is none.
    """
    if url.startswith(("http://", "https://")):
        return url
    return urljoin((origin or FALLBACK_ORIGIN).rstrip("/") + "/", url)


class TokenExchangeClient:
    """Requests participant credentials from the connection-details endpoint"""

    def __init__(self,
                 endpoint: str,
                 sandbox_id: str = "",
                 origin: Optional[str] = None,
                 default_server_url: str = DEFAULT_SERVER_URL,
                 notifier: Optional[AgentSettingsNotifier] = None,
                 request_timeout: Optional[float] = None):
        """
        Initialize the token exchange client

        Args:
            endpoint: Relative path or absolute URL of the token endpoint
            sandbox_id: Value sent in the X-Sandbox-Id header
            origin: Origin used to resolve a relative endpoint
            default_server_url: Transport endpoint used when the response names none
            notifier: Optional sender informed of the payload after a successful exchange
            request_timeout: Total aiohttp timeout in seconds (None leaves aiohttp's default)
        """
        self.logger = get_logger(__name__)
        self.url = resolve_endpoint(endpoint, origin)
        self.sandbox_id = sandbox_id or ""
        self.default_server_url = default_server_url
        self.notifier = notifier
        self.request_timeout = request_timeout

        self.requests_made = 0
        self.failures = 0

    @classmethod
    def from_config(cls, notifier: Optional[AgentSettingsNotifier] = None) -> "TokenExchangeClient":
        """Build a client from environment configuration"""
        token_config = get_token_config()
        return cls(
            endpoint=token_config["endpoint"],
            sandbox_id=get_app_config()["sandbox_id"],
            origin=token_config["origin"],
            default_server_url=token_config["default_server_url"],
            notifier=notifier,
            request_timeout=token_config["request_timeout"],
        )

    async def request_credential(self, payload: Dict[str, Any]) -> SessionCredential:
        """
        Exchange a credential request payload for a validated credential.

        Raises:
            TransportError: network failure, timeout, non-2xx status or empty body
            FormatError: missing, uncoercible or malformed token
        """
        self.requests_made += 1
        event_bus.emit(EventTypes.CREDENTIAL_REQUESTED, {"url": self.url}, source="token_client")
        self.logger.debug("Requesting session credential", extra={"extra_data": {"url": self.url, "payload": payload}})

        try:
            text = await self._post(payload)
            raw = parse_raw_response(text)
            self.logger.debug(f"Token response parsed as {type(raw).__name__}")
            credential = normalize_response(raw, self.default_server_url)
        except CredentialExchangeError as e:
            self.failures += 1
            self.logger.error(f"Error fetching connection details: {e}", extra={"extra_data": {
                "error_type": type(e).__name__,
                "url": self.url,
                **e.details
            }})
            event_bus.emit(EventTypes.CREDENTIAL_FAILED, {
                "error_type": type(e).__name__,
                "error_message": str(e)
            }, source="token_client")
            raise

        self.logger.info("Session credential issued", extra={"extra_data": {
            "token_length": len(credential.participant_token),
            "token_preview": credential.masked_preview(),
            "server_url": credential.server_url
        }})
        event_bus.emit(EventTypes.CREDENTIAL_ISSUED, {
            "token_preview": credential.masked_preview(),
            "server_url": credential.server_url
        }, source="token_client")

        if self.notifier:
            self.notifier.dispatch(payload)

        return credential

    async def _post(self, payload: Dict[str, Any]) -> str:
        headers = {
            "Content-Type": "application/json",
            "X-Sandbox-Id": self.sandbox_id,
        }
        session_kwargs = {}
        if self.request_timeout:
            session_kwargs["timeout"] = aiohttp.ClientTimeout(total=self.request_timeout)
        start = time.perf_counter()

        try:
            async with aiohttp.ClientSession(**session_kwargs) as session:
                async with session.post(self.url, json=payload, headers=headers) as response:
                    log_api_call(self.logger, "token", self.url, response.status,
                                 (time.perf_counter() - start) * 1000)

                    if not 200 <= response.status < 300:
                        raise TransportError(
                            f"Backend returned {response.status}: {response.reason}",
                            status=response.status,
                            status_text=response.reason,
                        )

                    text = await response.text()

        except asyncio.TimeoutError as e:
            raise TransportError(f"Timed out requesting credential from {self.url}") from e
        except UnicodeDecodeError as e:
            raise FormatError(f"Token response is not valid text: {e}") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Could not reach token endpoint {self.url}: {e}") from e

        if not text:
            raise TransportError("Backend returned empty response")

        return text

    def get_stats(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "requests_made": self.requests_made,
            "failures": self.failures,
        }
