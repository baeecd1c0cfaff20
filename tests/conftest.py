"""
Shared fixtures: a scripted in-memory model gateway.
"""

import asyncio
from typing import AsyncIterator, Dict, List, Optional, Union

import pytest

from adapters.base import ChatSessionHandle, ModelGateway
from common.errors import GatewayError, StreamInterrupted
from common.models import AnimalProfile, InsightResult

CRANE = {
    "name": "Red-crowned Crane",
    "scientificName": "Grus japonensis",
    "description": "A tall white crane with a red crown.",
    "habitat": "Wetlands of Hokkaido",
    "traits": ["Longevity", "Fidelity", "Grace"],
}

EAGLE = {
    "name": "Bald Eagle",
    "scientificName": "Haliaeetus leucocephalus",
    "description": "A large raptor with a white head.",
    "habitat": "Near open water",
    "traits": ["Freedom", "Strength", "Vision"],
}


class FakeChatSession(ChatSessionHandle):
    def __init__(self, gateway: "FakeGateway", country: str, animal_name: str):
        self.gateway = gateway
        self.country = country
        self.animal_name = animal_name
        self.sent: List[str] = []

    async def send_streaming(self, text: str) -> AsyncIterator[str]:
        self.sent.append(text)
        for index, delta in enumerate(self.gateway.chat_deltas):
            if self.gateway.chat_fail_after == index:
                raise StreamInterrupted("stream dropped")
            if self.gateway.chat_gate is not None:
                await self.gateway.chat_gate.wait()
            yield delta
        if (
            self.gateway.chat_fail_after is not None
            and self.gateway.chat_fail_after >= len(self.gateway.chat_deltas)
        ):
            raise StreamInterrupted("stream dropped")


class FakeGateway(ModelGateway):
    """
    Scripted gateway.

    ``profiles`` maps a country to a profile dict or an exception instance.
    ``profile_gates`` holds an asyncio.Event per country that must be set
    before that lookup resolves.
    """

    def __init__(self):
        self.profiles: Dict[str, Union[dict, Exception]] = {"Japan": CRANE, "United States": EAGLE}
        self.profile_gates: Dict[str, asyncio.Event] = {}
        self.profile_calls: List[str] = []

        self.insight_result: Union[InsightResult, Exception] = InsightResult(
            text="The crane carries a thousand years."
        )
        self.insight_gate: Optional[asyncio.Event] = None
        self.insight_calls: List[tuple] = []

        self.vision_results: List[Union[str, Exception]] = []
        self.vision_gate: Optional[asyncio.Event] = None
        self.vision_calls: List[tuple] = []

        self.chat_deltas: List[str] = ["Hello", ", ", "traveler"]
        self.chat_fail_after: Optional[int] = None
        self.chat_gate: Optional[asyncio.Event] = None
        self.open_chat_error: Optional[Exception] = None
        self.chats: List[FakeChatSession] = []

    async def fetch_profile(self, country: str) -> AnimalProfile:
        self.profile_calls.append(country)
        gate = self.profile_gates.get(country)
        if gate is not None:
            await gate.wait()
        result = self.profiles.get(country)
        if result is None:
            raise GatewayError(f"unknown country {country}")
        if isinstance(result, Exception):
            raise result
        return AnimalProfile.model_validate(result)

    async def fetch_insight(self, country: str, animal_name: str) -> InsightResult:
        self.insight_calls.append((country, animal_name))
        if self.insight_gate is not None:
            await self.insight_gate.wait()
        if isinstance(self.insight_result, Exception):
            raise self.insight_result
        return self.insight_result

    async def generate_vision(self, country: str, animal_name: str) -> str:
        self.vision_calls.append((country, animal_name))
        if self.vision_gate is not None:
            await self.vision_gate.wait()
        result = (
            self.vision_results.pop(0)
            if self.vision_results
            else f"data:image/png;base64,image-{len(self.vision_calls)}"
        )
        if isinstance(result, Exception):
            raise result
        return result

    def open_chat(self, country: str, animal_name: str) -> ChatSessionHandle:
        if self.open_chat_error is not None:
            raise self.open_chat_error
        session = FakeChatSession(self, country, animal_name)
        self.chats.append(session)
        return session

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()
