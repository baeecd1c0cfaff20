"""
Request router: maps client actions onto a session controller.

- Async I/O for all operations
- Structured logging with elapsed_ms
- Single responsibility per class
"""

from typing import AsyncGenerator

from pydantic import BaseModel, Field, ValidationError

from common.logging import TimedLogger, get_logger
from common.models import Chunk, ChunkType, ViewMode, WebSocketResponse
from router.message_types import RequestType, RouterRequest
from session.controller import SessionController

logger = get_logger(__name__)


class SearchPayload(BaseModel):
    country: str


class SwitchViewPayload(BaseModel):
    view: ViewMode


class ChatPayload(BaseModel):
    text: str = Field(max_length=4000)


class RequestRouter:
    """
    Routes requests from one connection to its SessionController.

    Rendered state is pushed by the controller's listeners; the router only
    reports whether each action was accepted.
    """

    def __init__(self, controller: SessionController):
        self.controller = controller

    async def process_request(
        self, router_request: RouterRequest
    ) -> AsyncGenerator[WebSocketResponse, None]:
        """
        Process a request and yield its responses.

        Args:
            router_request: The request to process

        Yields:
            WebSocketResponse objects for streaming back to client
        """
        with TimedLogger(
            logger,
            "request_processed",
            request_id=router_request.request_id,
            request_type=router_request.request_type.value,
        ):
            try:
                accepted = await self._dispatch(router_request)
            except ValidationError as e:
                logger.warning(
                    event="invalid_payload",
                    request_id=router_request.request_id,
                    request_type=router_request.request_type.value,
                    error_count=e.error_count(),
                )
                yield WebSocketResponse(
                    request_id=router_request.request_id,
                    status="error",
                    error=f"Invalid payload for {router_request.request_type.value}: {e}",
                )
                return

            yield WebSocketResponse(
                request_id=router_request.request_id,
                status="complete",
                chunk=Chunk(
                    type=ChunkType.METADATA,
                    data={"accepted": accepted},
                    metadata={"action": router_request.request_type.value},
                ),
            )

    async def _dispatch(self, request: RouterRequest) -> bool:
        controller = self.controller
        request_type = request.request_type

        if request_type == RequestType.SEARCH:
            payload = SearchPayload.model_validate(request.payload)
            return await controller.search(payload.country)
        if request_type == RequestType.SWITCH_VIEW:
            payload = SwitchViewPayload.model_validate(request.payload)
            return await controller.switch_view(payload.view)
        if request_type == RequestType.GENERATE_VISION:
            return await controller.generate_vision()
        if request_type == RequestType.RESET_VISION:
            return await controller.reset_vision()
        if request_type == RequestType.CHAT:
            payload = ChatPayload.model_validate(request.payload)
            return await controller.send_chat(payload.text)

        await controller.publish()
        return True
