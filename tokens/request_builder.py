"""
Credential request payload construction
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class ConnectionOptions:
    """User-selected options for the next connect attempt"""
    display_name: Optional[str] = None
    voice: Optional[str] = None
    personality: Optional[str] = None
    language: Optional[str] = None


# Option attribute -> agent entry key
_AGENT_ENTRY_FIELDS = (
    ("voice", "voice"),
    ("personality", "personality"),
    ("language", "language"),
    ("display_name", "user_name"),
)


def build_request_payload(options: Optional[ConnectionOptions], agent_name: str) -> Dict[str, Any]:
    """
    Build the room configuration payload for a credential request.

    Options that are unset or empty are left out entirely so the backend
    applies its own defaults.

    Args:
        options: Current connection options (None means no options)
        agent_name: Fixed agent identity

    Returns:
        ``{"room_config": {"agents": [agent_entry]}}``
    """
    agent_entry: Dict[str, Any] = {"agent_name": agent_name}

    if options is not None:
        for attribute, key in _AGENT_ENTRY_FIELDS:
            value = getattr(options, attribute)
            if value:
                agent_entry[key] = value

    return {"room_config": {"agents": [agent_entry]}}
