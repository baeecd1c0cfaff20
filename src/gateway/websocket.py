"""
WebSocket gateway using FastAPI.

Main gateway orchestrator: one SessionController per connection.
- Async/await for all I/O operations
- Timeout handling for idle connections
- Structured logging with elapsed_ms
- Single responsibility: WebSocket protocol handling
"""

import asyncio
import uuid
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse

from adapters.base import ModelGateway
from adapters.gemini_adapter import GeminiGateway
from common.config import Config
from common.logging import TimedLogger, get_logger
from common.models import Chunk, ChunkType, WebSocketMessage, WebSocketResponse
from gateway.connection_manager import ConnectionManager
from router.message_types import RequestType, RouterRequest
from router.request_router import RequestRouter
from session.controller import SessionController
from views.renderers import render_session

logger = get_logger(__name__)

SESSION_REQUEST_ID = "session"


class WebSocketGateway:
    """FastAPI WebSocket gateway that owns connections and their sessions."""

    def __init__(self, config: Config, model_gateway: Optional[ModelGateway] = None):
        self.config = config
        self.app = FastAPI(title="NationSense Gateway", version="0.1.0")
        self.connection_manager = ConnectionManager()
        self.model_gateway = model_gateway or GeminiGateway(config.providers)

        self._setup_routes()

    def _setup_routes(self) -> None:
        """Setup FastAPI routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            try:
                provider_ready = await self.model_gateway.health_check()
            except Exception as e:
                logger.error(event="health_check_failed", error=str(e))
                return JSONResponse(
                    {"status": "error", "error": str(e)},
                    status_code=503,
                )

            return JSONResponse(
                {
                    "status": "healthy",
                    "active_connections": self.connection_manager.get_connection_count(),
                    "provider": {
                        "configured": provider_ready,
                        "credential_env": self.config.providers.api_key_env,
                    },
                }
            )

        @self.app.websocket("/ws/session")
        async def websocket_endpoint(websocket: WebSocket):
            """Main WebSocket endpoint."""
            await self._handle_websocket_connection(websocket)

    async def _handle_websocket_connection(self, websocket: WebSocket) -> None:
        """Handle a new WebSocket connection."""
        connection_id = str(uuid.uuid4())
        controller = SessionController(self.model_gateway, self.config.session)
        router = RequestRouter(controller)
        tasks: Set[asyncio.Task] = set()

        async def push(event: str, payload: Dict[str, Any]) -> None:
            await self.connection_manager.send_to_connection(
                connection_id, self._event_response(event, payload)
            )

        controller.subscribe(push)

        try:
            await self.connection_manager.connect(websocket, connection_id)
            await self.connection_manager.send_to_connection(
                connection_id,
                WebSocketResponse(
                    request_id="welcome",
                    status="complete",
                    chunk=Chunk(type=ChunkType.STATE, data=render_session(controller)),
                ),
            )

            await self._message_loop(websocket, connection_id, router, tasks)

        except WebSocketDisconnect:
            logger.info(
                event="client_disconnect",
                message="WebSocket client disconnected",
                connection_id=connection_id,
            )
        except Exception as e:
            logger.error(
                event="connection_error",
                message="WebSocket connection error",
                connection_id=connection_id,
                error=str(e),
            )
        finally:
            controller.close()
            for task in tasks:
                task.cancel()
            self.connection_manager.disconnect(connection_id)

    async def _message_loop(
        self,
        websocket: WebSocket,
        connection_id: str,
        router: RequestRouter,
        tasks: Set[asyncio.Task],
    ) -> None:
        """
        Receive messages until the client leaves or idles out.

        Each action runs as its own task so a newer search is accepted while an
        older one is still waiting on the model.
        """
        while True:
            try:
                message_data = await asyncio.wait_for(
                    websocket.receive_text(), timeout=self.config.gateway.connection_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    event="connection_timeout",
                    message="WebSocket connection timeout",
                    connection_id=connection_id,
                    timeout_seconds=self.config.gateway.connection_timeout,
                )
                break

            message = await self._parse_message(message_data, connection_id)
            if message is None:
                continue

            task = asyncio.create_task(self._route_to_router(message, connection_id, router))
            tasks.add(task)
            task.add_done_callback(tasks.discard)

    async def _parse_message(
        self, message_data: str, connection_id: str
    ) -> Optional[WebSocketMessage]:
        """Parse an incoming message and acknowledge it; None if it is invalid."""
        try:
            message = WebSocketMessage.model_validate_json(message_data)
        except Exception as e:
            logger.error(
                event="message_parse_error",
                message="Failed to parse WebSocket message",
                connection_id=connection_id,
                error=str(e),
                message_length=len(message_data),
            )
            await self.connection_manager.send_to_connection(
                connection_id,
                WebSocketResponse(
                    request_id="parse_error",
                    status="error",
                    error=f"Invalid message format: {str(e)}",
                ),
            )
            return None

        try:
            RequestType(message.action)
        except ValueError:
            logger.warning(
                event="unknown_action",
                connection_id=connection_id,
                action=message.action,
                request_id=message.request_id,
            )
            await self.connection_manager.send_to_connection(
                connection_id,
                WebSocketResponse(
                    request_id=message.request_id,
                    status="error",
                    error=f"Unknown action: {message.action}",
                ),
            )
            return None

        logger.info(
            event="message_received",
            message="Processing WebSocket message",
            connection_id=connection_id,
            action=message.action,
            request_id=message.request_id,
        )
        await self.connection_manager.send_to_connection(
            connection_id, WebSocketResponse(request_id=message.request_id, status="processing")
        )
        return message

    async def _route_to_router(
        self, message: WebSocketMessage, connection_id: str, router: RequestRouter
    ) -> None:
        """Route message to router and forward its responses to the client."""
        router_request = RouterRequest(
            request_id=message.request_id,
            request_type=RequestType(message.action),
            payload=message.payload,
            connection_id=connection_id,
        )

        try:
            with TimedLogger(
                logger,
                "router_processing_complete",
                connection_id=connection_id,
                request_id=message.request_id,
            ):
                async for response in router.process_request(router_request):
                    await self.connection_manager.send_to_connection(connection_id, response)
        except Exception as e:
            logger.error(
                event="router_processing_failed",
                message="Router processing failed",
                connection_id=connection_id,
                request_id=message.request_id,
                error=str(e),
            )
            await self.connection_manager.send_to_connection(
                connection_id,
                WebSocketResponse(
                    request_id=message.request_id,
                    status="error",
                    error=f"Router processing failed: {str(e)}",
                ),
            )

    @staticmethod
    def _event_response(event: str, payload: Dict[str, Any]) -> WebSocketResponse:
        """Wrap a controller event as a pushed chunk."""
        if event == "chat_delta":
            chunk = Chunk(
                type=ChunkType.TEXT,
                data=payload["delta"],
                metadata={"message_id": payload["message_id"], "text": payload["text"]},
            )
        else:
            chunk = Chunk(type=ChunkType.STATE, data=payload, metadata={"event": event})
        return WebSocketResponse(request_id=SESSION_REQUEST_ID, status="chunk", chunk=chunk)


def create_gateway_app(config: Config, model_gateway: Optional[ModelGateway] = None) -> FastAPI:
    """Create and configure the FastAPI gateway application."""
    gateway = WebSocketGateway(config, model_gateway)
    return gateway.app
