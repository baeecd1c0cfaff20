"""
Base gateway interface for the generative model provider.

- Single responsibility: define the model gateway contract
- Type safety with Pydantic models
- Async design for I/O operations
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from common.models import AnimalProfile, InsightResult


class ChatSessionHandle(ABC):
    """Stateful remote conversation scoped to one (country, animal) pair."""

    @abstractmethod
    def send_streaming(self, text: str) -> AsyncIterator[str]:
        """
        Send one user turn and stream the reply.

        Returns a lazy, finite, non-restartable iterator of text increments.
        Failures at initiation or mid-stream raise StreamInterrupted.
        """
        pass


class ModelGateway(ABC):
    """Base class for model providers backing the four views."""

    @abstractmethod
    async def fetch_profile(self, country: str) -> AnimalProfile:
        """
        Identify the national animal of ``country``.

        Raises:
            ConfigurationError: credential missing
            GatewayError: network/auth failure, empty or unparseable response
        """
        pass

    @abstractmethod
    async def fetch_insight(self, country: str, animal_name: str) -> InsightResult:
        """
        Generate the cultural narrative for an animal-country pair.

        Provider failures degrade to a fallback text instead of raising; the
        result is then flagged ``degraded``.

        Raises:
            ConfigurationError: credential missing
        """
        pass

    @abstractmethod
    async def generate_vision(self, country: str, animal_name: str) -> str:
        """
        Generate an image of the animal and return it as a data URI.

        Raises:
            ConfigurationError: credential missing
            GatewayError: request failed or no image part in the response
        """
        pass

    @abstractmethod
    def open_chat(self, country: str, animal_name: str) -> ChatSessionHandle:
        """Open a chat seeded with the animal's persona. No network call."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the gateway is usable."""
        pass
