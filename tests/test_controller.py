"""
Tests for the session controller: search lifecycle, stale suppression and
view switching.
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from adapters.gemini_adapter import INSIGHT_FALLBACK, GeminiGateway
from common.config import ProviderConfig
from common.errors import ConfigurationError, GatewayError
from common.models import SearchPhase, ViewMode
from session.controller import (
    SEARCH_FAILED_MESSAGE,
    UNCONFIGURED_MESSAGE,
    SessionController,
)
from session.insight import InsightStatus

from conftest import CRANE


@pytest.fixture
def controller(fake_gateway) -> SessionController:
    return SessionController(fake_gateway)


@pytest.fixture
def published(controller):
    events = []

    async def listener(event, payload):
        events.append((event, payload))

    controller.subscribe(listener)
    return events


@pytest.mark.asyncio
async def test_search_success_goes_through_loading(controller, published):
    assert await controller.search("Japan") is True

    phases = [payload["phase"] for event, payload in published if event == "state"]
    assert phases == ["LOADING", "READY"]
    assert controller.phase is SearchPhase.READY
    assert controller.state.view is ViewMode.PROFILE
    assert controller.state.query.animal.name == "Red-crowned Crane"


@pytest.mark.asyncio
async def test_blank_search_changes_nothing(controller, published, fake_gateway):
    assert await controller.search("   ") is False

    assert published == []
    assert fake_gateway.profile_calls == []
    assert controller.phase is SearchPhase.EMPTY


@pytest.mark.asyncio
async def test_search_failure_shows_fixed_message(controller, fake_gateway):
    await controller.search("Japan")
    fake_gateway.profiles["Atlantis"] = GatewayError("unparseable")

    await controller.search("Atlantis")

    assert controller.phase is SearchPhase.ERROR
    assert controller.state.query.error == SEARCH_FAILED_MESSAGE
    assert controller.state.query.animal is None


@pytest.mark.asyncio
async def test_missing_credential_surfaces_as_error(controller, fake_gateway):
    fake_gateway.profiles["Japan"] = ConfigurationError("GEMINI_API_KEY not set")

    await controller.search("Japan")

    assert controller.phase is SearchPhase.ERROR
    assert controller.state.query.error == UNCONFIGURED_MESSAGE


@pytest.mark.asyncio
async def test_newer_search_wins_over_late_success(controller, fake_gateway):
    gate = asyncio.Event()
    fake_gateway.profile_gates["Japan"] = gate

    first = asyncio.create_task(controller.search("Japan"))
    await asyncio.sleep(0)
    await controller.search("United States")
    assert controller.state.query.animal.name == "Bald Eagle"

    gate.set()
    await first

    assert controller.phase is SearchPhase.READY
    assert controller.state.query.country == "United States"
    assert controller.state.query.animal.name == "Bald Eagle"


@pytest.mark.asyncio
async def test_newer_search_wins_over_late_failure(controller, fake_gateway):
    gate = asyncio.Event()
    fake_gateway.profiles["Atlantis"] = GatewayError("down")
    fake_gateway.profile_gates["Atlantis"] = gate

    first = asyncio.create_task(controller.search("Atlantis"))
    await asyncio.sleep(0)
    await controller.search("Japan")

    gate.set()
    await first

    assert controller.phase is SearchPhase.READY
    assert controller.state.query.error is None
    assert controller.state.query.animal.name == "Red-crowned Crane"


@pytest.mark.asyncio
async def test_late_result_while_newer_search_still_loading(controller, fake_gateway):
    japan_gate, us_gate = asyncio.Event(), asyncio.Event()
    fake_gateway.profile_gates.update({"Japan": japan_gate, "United States": us_gate})

    first = asyncio.create_task(controller.search("Japan"))
    await asyncio.sleep(0)
    second = asyncio.create_task(controller.search("United States"))
    await asyncio.sleep(0)

    japan_gate.set()
    await first
    assert controller.phase is SearchPhase.LOADING
    assert controller.state.query.country == "United States"

    us_gate.set()
    await second
    assert controller.state.query.animal.name == "Bald Eagle"


@pytest.mark.asyncio
async def test_view_switch_disabled_until_ready(controller, fake_gateway):
    assert await controller.switch_view(ViewMode.CHAT) is False

    fake_gateway.profiles["Atlantis"] = GatewayError("down")
    await controller.search("Atlantis")
    assert await controller.switch_view(ViewMode.INSIGHT) is False
    assert fake_gateway.insight_calls == []


@pytest.mark.asyncio
async def test_switching_views_does_not_refetch_profile(controller, fake_gateway):
    await controller.search("Japan")
    await controller.switch_view(ViewMode.VISION)
    await controller.switch_view(ViewMode.PROFILE)

    assert fake_gateway.profile_calls == ["Japan"]
    assert controller.state.view is ViewMode.PROFILE


@pytest.mark.asyncio
async def test_new_search_resets_view_to_profile(controller):
    await controller.search("Japan")
    await controller.switch_view(ViewMode.CHAT)

    await controller.search("United States")

    assert controller.state.view is ViewMode.PROFILE
    assert controller.chat.transcript == []


@pytest.mark.asyncio
async def test_insight_reentry_uses_cached_narrative(controller, fake_gateway):
    await controller.search("Japan")
    await controller.switch_view(ViewMode.INSIGHT)
    assert controller.insight.status is InsightStatus.SHOWN

    await controller.switch_view(ViewMode.PROFILE)
    await controller.switch_view(ViewMode.INSIGHT)

    assert len(fake_gateway.insight_calls) == 1
    assert controller.insight.text == "The crane carries a thousand years."


@pytest.mark.asyncio
async def test_leaving_insight_before_it_resolves(controller, fake_gateway):
    fake_gateway.insight_gate = asyncio.Event()
    await controller.search("Japan")

    entering = asyncio.create_task(controller.switch_view(ViewMode.INSIGHT))
    await asyncio.sleep(0)
    panel = controller.insight
    await controller.switch_view(ViewMode.PROFILE)

    fake_gateway.insight_gate.set()
    await entering

    assert panel.status is InsightStatus.FETCHING
    assert controller.state.query.animal.cultural_significance is None


@pytest.mark.asyncio
async def test_vision_actions_require_vision_view(controller, fake_gateway):
    await controller.search("Japan")
    assert await controller.generate_vision() is False
    assert await controller.reset_vision() is False
    assert fake_gateway.vision_calls == []

    await controller.switch_view(ViewMode.VISION)
    assert await controller.generate_vision() is True
    assert controller.vision.image == "data:image/png;base64,image-1"


@pytest.mark.asyncio
async def test_chat_session_isolation_across_animals(controller, fake_gateway):
    await controller.search("Japan")
    await controller.switch_view(ViewMode.CHAT)
    await controller.send_chat("Who are you?")
    assert len(controller.chat.transcript) == 3

    await controller.search("United States")
    await controller.switch_view(ViewMode.CHAT)

    transcript = controller.chat.transcript
    assert len(transcript) == 1
    assert "Bald Eagle" in transcript[0].text
    assert "United States" in transcript[0].text
    assert len(fake_gateway.chats) == 2


@pytest.mark.asyncio
async def test_chat_deltas_are_published(controller, published):
    await controller.search("Japan")
    await controller.switch_view(ViewMode.CHAT)

    await controller.send_chat("Speak")

    deltas = [payload for event, payload in published if event == "chat_delta"]
    assert [d["delta"] for d in deltas] == ["Hello", ", ", "traveler"]
    assert [d["text"] for d in deltas] == ["Hello", "Hello, ", "Hello, traveler"]
    assert len({d["message_id"] for d in deltas}) == 1


@pytest.mark.asyncio
async def test_failing_listener_does_not_break_session(controller):
    async def broken(event, payload):
        raise RuntimeError("socket gone")

    controller.subscribe(broken)

    await controller.search("Japan")

    assert controller.phase is SearchPhase.READY


@pytest.mark.asyncio
async def test_end_to_end_japan(controller, published):
    await controller.search("Japan")

    profile_view = published[-1][1]
    assert profile_view["view"] == "PROFILE"
    badges = profile_view["content"]["badges"]
    assert [b["label"] for b in badges] == ["Longevity", "Fidelity", "Grace"]

    await controller.switch_view(ViewMode.CHAT)

    chat_view = published[-1][1]["content"]
    assert len(chat_view["messages"]) == 1
    greeting = chat_view["messages"][0]
    assert greeting["role"] == "model"
    assert "Red-crowned Crane" in greeting["text"]
    assert "Japan" in greeting["text"]


@pytest.mark.asyncio
async def test_insight_fallback_from_gemini_is_retried_on_reentry():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(
        side_effect=[
            SimpleNamespace(text=json.dumps(CRANE)),
            RuntimeError("quota exceeded"),
            SimpleNamespace(text="The crane carries a thousand years."),
        ]
    )
    controller = SessionController(GeminiGateway(ProviderConfig(request_timeout=0.5), client))

    await controller.search("Japan")
    await controller.switch_view(ViewMode.INSIGHT)

    assert controller.insight.status is InsightStatus.DEGRADED
    assert controller.insight.text == INSIGHT_FALLBACK
    assert controller.state.query.animal.cultural_significance is None

    await controller.switch_view(ViewMode.PROFILE)
    await controller.switch_view(ViewMode.INSIGHT)

    assert client.aio.models.generate_content.await_count == 3
    assert controller.insight.status is InsightStatus.SHOWN
    animal = controller.state.query.animal
    assert animal.cultural_significance == "The crane carries a thousand years."


@pytest.mark.asyncio
async def test_reset_vision_clears_image_from_profile(controller, published):
    await controller.search("Japan")
    await controller.switch_view(ViewMode.VISION)
    await controller.generate_vision()
    assert controller.state.query.animal.image_url == "data:image/png;base64,image-1"

    await controller.reset_vision()
    await controller.switch_view(ViewMode.PROFILE)

    assert controller.state.query.animal.image_url is None
    assert published[-1][1]["content"]["image_url"] is None
