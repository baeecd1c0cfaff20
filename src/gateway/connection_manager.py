"""
WebSocket connection management.

Handles connection lifecycle and serialised sends per connection.
- Single responsibility: connection management only
- Structured logging
- Async I/O for all operations
"""

import asyncio
from typing import Dict

from fastapi import WebSocket

from common.logging import get_logger
from common.models import WebSocketResponse

logger = get_logger(__name__)


class ConnectionManager:
    """Manages WebSocket connections; one writer at a time per socket."""

    def __init__(self):
        self.active_connections: Dict[str, WebSocket] = {}
        self._send_locks: Dict[str, asyncio.Lock] = {}

    async def connect(self, websocket: WebSocket, connection_id: str) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self.active_connections[connection_id] = websocket
        self._send_locks[connection_id] = asyncio.Lock()

        logger.info(
            event="connection_established",
            message="WebSocket connection established",
            connection_id=connection_id,
            total_connections=len(self.active_connections),
        )

    def disconnect(self, connection_id: str) -> None:
        """Remove a WebSocket connection."""
        self.active_connections.pop(connection_id, None)
        self._send_locks.pop(connection_id, None)

        logger.info(
            event="connection_closed",
            message="WebSocket connection closed",
            connection_id=connection_id,
            total_connections=len(self.active_connections),
        )

    async def send_to_connection(self, connection_id: str, response: WebSocketResponse) -> bool:
        """
        Send a response to a specific connection.

        Returns:
            True if sent successfully, False if connection not found or failed
        """
        websocket = self.active_connections.get(connection_id)
        lock = self._send_locks.get(connection_id)
        if websocket is None or lock is None:
            logger.warning(
                event="connection_not_found",
                message="Connection not found for send attempt",
                connection_id=connection_id,
                request_id=response.request_id,
            )
            return False

        try:
            response_json = response.model_dump_json()
            async with lock:
                await websocket.send_text(response_json)

            logger.debug(
                event="websocket_sent",
                connection_id=connection_id,
                request_id=response.request_id,
                response_status=response.status,
                chunk_type=response.chunk.type.value if response.chunk else None,
                json_length=len(response_json),
            )
            return True
        except Exception as e:
            logger.error(
                event="send_failed",
                message="Failed to send message to connection",
                connection_id=connection_id,
                request_id=response.request_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def get_connection_count(self) -> int:
        """Get the total number of active connections."""
        return len(self.active_connections)
