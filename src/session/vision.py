"""
Vision panel: user-initiated image generation for the current profile.
"""

from enum import Enum
from typing import Awaitable, Callable, Optional

from adapters.base import ModelGateway
from common.errors import NationSenseError
from common.logging import get_logger
from common.models import AnimalProfile

logger = get_logger(__name__)

VISION_FAILED_MESSAGE = "The vision could not be manifested. The ethereal plane is busy."


class VisionStatus(str, Enum):
    IDLE = "IDLE"
    GENERATING = "GENERATING"


class VisionPanel:
    """Holds at most one generated image and the last transient error."""

    def __init__(
        self,
        gateway: ModelGateway,
        country: str,
        animal: AnimalProfile,
        on_change: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.gateway = gateway
        self.country = country
        self.animal = animal
        self.on_change = on_change
        self.status = VisionStatus.IDLE
        self.image: Optional[str] = None
        self.error: Optional[str] = None
        self.mounted = True
        # Bumped by generate() and reset(); a result is applied only if its
        # ticket is still current.
        self._ticket = 0

    @property
    def can_generate(self) -> bool:
        return self.status is VisionStatus.IDLE and self.image is None

    async def generate(self) -> bool:
        """Request a new image. Returns False if a request is already running."""
        if self.status is VisionStatus.GENERATING:
            return False

        self._ticket += 1
        ticket = self._ticket
        self.status = VisionStatus.GENERATING
        self.error = None
        if self.on_change is not None:
            await self.on_change()

        try:
            image = await self.gateway.generate_vision(self.country, self.animal.name)
        except NationSenseError as e:
            if self._is_current(ticket):
                logger.warning(event="vision_failed", error=str(e), error_type=type(e).__name__)
                self.status = VisionStatus.IDLE
                self.error = VISION_FAILED_MESSAGE
            return True

        if self._is_current(ticket):
            self.status = VisionStatus.IDLE
            self.image = image
            self.animal.image_url = image
        else:
            logger.info(event="stale_vision_discarded", animal=self.animal.name)
        return True

    def reset(self) -> None:
        """Drop the held image, on the panel and the profile, and show the prompt again."""
        self._ticket += 1
        self.status = VisionStatus.IDLE
        self.image = None
        self.animal.image_url = None
        self.error = None

    def unmount(self) -> None:
        self.mounted = False

    def _is_current(self, ticket: int) -> bool:
        return self.mounted and ticket == self._ticket
