"""
Chat orchestrator: one streamed conversation with the animal's persona.

The transcript is append-only except for the most recent model message, whose
text grows while its reply streams. Only one send may be outstanding per
session; opening a new session discards the previous transcript and makes any
reply still streaming for it stale.
"""

from typing import Awaitable, Callable, List, Optional

from adapters import prompts
from adapters.base import ChatSessionHandle, ModelGateway
from common.errors import ConfigurationError, GatewayError
from common.logging import TimedLogger, get_logger
from common.models import ChatMessage, ChatRole

logger = get_logger(__name__)

SEVERED_MESSAGE = "The connection has been severed."
UNCONFIGURED_MESSAGE = "The spirit cannot be reached. The API credential is not configured."

DeltaCallback = Callable[[ChatMessage, str], Awaitable[None]]
ChangeCallback = Callable[[], Awaitable[None]]


class ChatOrchestrator:
    """Owns the chat session handle and the transcript for the CHAT view."""

    def __init__(
        self,
        gateway: ModelGateway,
        on_delta: Optional[DeltaCallback] = None,
        on_change: Optional[ChangeCallback] = None,
    ):
        self.gateway = gateway
        self.on_delta = on_delta
        self.on_change = on_change
        self.transcript: List[ChatMessage] = []
        self.busy = False
        self.error: Optional[str] = None
        self.country: Optional[str] = None
        self.animal_name: Optional[str] = None
        self._session: Optional[ChatSessionHandle] = None
        self._generation = 0

    @property
    def is_open(self) -> bool:
        return self._session is not None

    def open(self, country: str, animal_name: str) -> None:
        """Start a fresh session for the pair, seeded with a local greeting."""
        self.close()
        self.country = country
        self.animal_name = animal_name

        try:
            self._session = self.gateway.open_chat(country, animal_name)
        except ConfigurationError as e:
            logger.error(event="chat_open_failed", error=str(e))
            self.error = UNCONFIGURED_MESSAGE
            return

        self.transcript = [
            ChatMessage(role=ChatRole.MODEL, text=prompts.greeting(country, animal_name))
        ]
        logger.info(event="chat_opened", animal=animal_name, generation=self._generation)

    def close(self) -> None:
        """Discard the session; replies still streaming for it become stale."""
        self._generation += 1
        self._session = None
        self.transcript = []
        self.busy = False
        self.error = None

    async def send(self, text: str) -> bool:
        """
        Send a user turn and fold the streamed reply into a placeholder message.

        Returns False without touching the transcript when the text is blank,
        a reply is already streaming, or no session is open.
        """
        if not text.strip() or self.busy or self._session is None:
            return False

        session = self._session
        generation = self._generation
        self.busy = True

        self.transcript.append(ChatMessage(role=ChatRole.USER, text=text))
        placeholder = ChatMessage(role=ChatRole.MODEL, text="")
        self.transcript.append(placeholder)

        try:
            if self.on_change is not None:
                await self.on_change()
            with TimedLogger(logger, "chat_reply_streamed", message_id=placeholder.id):
                async for delta in session.send_streaming(text):
                    if generation != self._generation:
                        logger.info(event="stale_chat_delta_discarded", message_id=placeholder.id)
                        break
                    placeholder.text += delta
                    if self.on_delta is not None:
                        await self.on_delta(placeholder, delta)
        except GatewayError as e:
            if generation == self._generation:
                logger.warning(
                    event="chat_stream_interrupted",
                    message_id=placeholder.id,
                    received_chars=len(placeholder.text),
                    error=str(e),
                )
                self.transcript.append(ChatMessage(role=ChatRole.MODEL, text=SEVERED_MESSAGE))
        finally:
            if generation == self._generation:
                self.busy = False

        return True
