"""
Insight panel: shows the cultural narrative for the current profile.
"""

from enum import Enum
from typing import Optional

from adapters.base import ModelGateway
from common.errors import ConfigurationError, NationSenseError
from common.logging import get_logger
from common.models import AnimalProfile

logger = get_logger(__name__)

CLOUDED_MESSAGE = "The connection is clouded. Try again later."
UNCONFIGURED_MESSAGE = "The archives cannot be reached. The API credential is not configured."


class InsightStatus(str, Enum):
    FETCHING = "FETCHING"
    SHOWN = "SHOWN"
    DEGRADED = "DEGRADED"


class InsightPanel:
    """
    One mounted instance of the insight view.

    A populated ``cultural_significance`` on the profile is shown without a
    network call. Once unmounted the panel ignores any fetch that resolves
    later.
    """

    def __init__(self, gateway: ModelGateway, country: str, animal: AnimalProfile):
        self.gateway = gateway
        self.country = country
        self.animal = animal
        self.status = InsightStatus.FETCHING
        self.text: Optional[str] = None
        self.mounted = True

    async def load(self) -> None:
        if self.animal.cultural_significance:
            self.status = InsightStatus.SHOWN
            self.text = self.animal.cultural_significance
            return

        try:
            result = await self.gateway.fetch_insight(self.country, self.animal.name)
        except ConfigurationError as e:
            if self.mounted:
                logger.error(event="insight_unconfigured", error=str(e))
                self._degrade(UNCONFIGURED_MESSAGE)
            return
        except NationSenseError as e:
            if self.mounted:
                logger.warning(event="insight_clouded", error=str(e), error_type=type(e).__name__)
                self._degrade(CLOUDED_MESSAGE)
            return

        if not self.mounted:
            logger.info(event="stale_insight_discarded", animal=self.animal.name)
            return

        # Fallback text is shown but never attached to the profile
        if result.degraded:
            logger.info(event="insight_degraded", animal=self.animal.name)
            self._degrade(result.text)
            return

        self.animal.cultural_significance = result.text
        self.status = InsightStatus.SHOWN
        self.text = result.text

    def _degrade(self, message: str) -> None:
        self.status = InsightStatus.DEGRADED
        self.text = message

    def unmount(self) -> None:
        self.mounted = False
