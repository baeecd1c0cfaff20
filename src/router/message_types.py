"""
Internal message types for router communication.

Single responsibility, type-safe models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class RequestType(str, Enum):
    """Session actions the router can handle."""

    SEARCH = "search"  # Look up a country's animal
    SWITCH_VIEW = "switch_view"  # PROFILE / INSIGHT / VISION / CHAT
    GENERATE_VISION = "generate_vision"
    RESET_VISION = "reset_vision"
    CHAT = "chat"  # Send one chat turn; reply streams as chat_delta chunks
    SNAPSHOT = "snapshot"  # Re-send the rendered session


class RouterRequest(BaseModel):
    """Internal request format for router processing."""

    request_id: str
    request_type: RequestType
    payload: Dict[str, Any]
    connection_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
