"""
Session controller: single owner of one session's state.

Applies the pure transitions from ``session.state``, mounts the per-view
panels, and pushes rendered snapshots to subscribed listeners.

- Async I/O for all gateway calls
- Stale results are discarded by generation, never applied
- Structured logging
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from adapters.base import ModelGateway
from common.config import SessionConfig
from common.errors import ConfigurationError, GatewayError
from common.logging import get_logger
from common.models import ChatMessage, SearchPhase, ViewMode
from session.chat import ChatOrchestrator
from session.insight import InsightPanel
from session.state import (
    SessionState,
    phase_of,
    reject_search,
    resolve_search,
    select_view,
    submit_search,
)
from session.vision import VisionPanel
from views.renderers import render_session

logger = get_logger(__name__)

SEARCH_FAILED_MESSAGE = "Could not locate that nation in the spiritual archives. Please try again."
UNCONFIGURED_MESSAGE = (
    "The spiritual archives are not configured. Please set the API credential."
)

Listener = Callable[[str, Dict[str, Any]], Awaitable[None]]


class SessionController:
    """
    Owns the SessionState of one connection.

    Every mutation goes through this class; listeners receive a ``state``
    event with the rendered session after each change and a ``chat_delta``
    event per streamed chat increment.
    """

    def __init__(self, gateway: ModelGateway, config: Optional[SessionConfig] = None):
        self.gateway = gateway
        self.config = config or SessionConfig()
        self.state = SessionState()
        self.insight: Optional[InsightPanel] = None
        self.vision: Optional[VisionPanel] = None
        self.chat = ChatOrchestrator(gateway, on_delta=self._on_chat_delta, on_change=self.publish)
        self._listeners: List[Listener] = []

    @property
    def phase(self) -> SearchPhase:
        return phase_of(self.state)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    async def publish(self) -> None:
        await self._notify("state", render_session(self))

    async def _notify(self, event: str, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event, payload)
            except Exception as e:
                logger.error(
                    event="listener_failed",
                    session_event=event,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    async def _on_chat_delta(self, message: ChatMessage, delta: str) -> None:
        await self._notify(
            "chat_delta", {"message_id": message.id, "delta": delta, "text": message.text}
        )

    async def search(self, country: str) -> bool:
        """
        Run a search. Returns False for blank input, which changes nothing.

        The profile request is tagged with the new generation; if another
        search starts before it resolves, its result is dropped.
        """
        submitted = submit_search(self.state, country)
        if submitted is None:
            logger.debug(event="blank_search_ignored")
            return False

        self._unmount_panels()
        self.chat.close()
        self.state = submitted
        generation = submitted.generation
        country = submitted.query.country
        logger.info(event="search_started", country=country, generation=generation)
        await self.publish()

        try:
            profile = await self.gateway.fetch_profile(country)
        except ConfigurationError as e:
            logger.error(event="search_unconfigured", error=str(e), generation=generation)
            next_state = reject_search(self.state, generation, UNCONFIGURED_MESSAGE)
        except GatewayError as e:
            logger.error(
                event="search_failed", country=country, error=str(e), generation=generation
            )
            next_state = reject_search(self.state, generation, SEARCH_FAILED_MESSAGE)
        else:
            next_state = resolve_search(self.state, generation, profile)

        if next_state is self.state:
            logger.info(
                event="stale_profile_discarded",
                country=country,
                generation=generation,
                current_generation=self.state.generation,
            )
            return True

        self.state = next_state
        animal = next_state.query.animal
        if animal is not None:
            self.vision = VisionPanel(self.gateway, country, animal, on_change=self.publish)
            logger.info(event="search_ready", country=country, animal=animal.name)
        await self.publish()
        return True

    async def switch_view(self, mode: ViewMode) -> bool:
        """Change the active view. Only permitted while READY."""
        if self.phase is not SearchPhase.READY:
            logger.info(event="view_switch_rejected", view=mode.value, phase=self.phase.value)
            return False

        leaving = self.state.view
        if leaving is mode:
            await self.publish()
            return True

        self.state = select_view(self.state, mode)
        if leaving is ViewMode.INSIGHT and self.insight is not None:
            self.insight.unmount()
            self.insight = None
        elif leaving is ViewMode.CHAT:
            self.chat.close()

        country = self.state.query.country
        animal = self.state.query.animal
        logger.info(event="view_switched", view=mode.value, previous=leaving.value)

        if mode is ViewMode.INSIGHT:
            panel = InsightPanel(self.gateway, country, animal)
            self.insight = panel
            await self.publish()
            await panel.load()
            if panel.mounted:
                await self.publish()
            return True

        if mode is ViewMode.CHAT:
            self.chat.open(country, animal.name)

        await self.publish()
        return True

    async def generate_vision(self) -> bool:
        if self.state.view is not ViewMode.VISION or self.vision is None:
            return False
        panel = self.vision
        started = await panel.generate()
        if started and panel is self.vision:
            await self.publish()
        return started

    async def reset_vision(self) -> bool:
        if self.state.view is not ViewMode.VISION or self.vision is None:
            return False
        self.vision.reset()
        await self.publish()
        return True

    async def send_chat(self, text: str) -> bool:
        if self.state.view is not ViewMode.CHAT:
            return False
        sent = await self.chat.send(text)
        if sent:
            await self.publish()
        return sent

    def close(self) -> None:
        """Release everything owned by the session; late results are ignored."""
        self._unmount_panels()
        self.chat.close()
        self._listeners.clear()

    def _unmount_panels(self) -> None:
        if self.insight is not None:
            self.insight.unmount()
            self.insight = None
        if self.vision is not None:
            self.vision.unmount()
            self.vision = None
