"""
Presentation views: pure functions turning a session into JSON-ready payloads.

The client only draws what these return; no decisions are made client-side
beyond which controls to enable.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from common.models import AnimalProfile, SearchPhase, ViewMode

if TYPE_CHECKING:
    from session.chat import ChatOrchestrator
    from session.controller import SessionController
    from session.insight import InsightPanel
    from session.vision import VisionPanel

LOADING_MESSAGE = "Consulting the archives..."


def render_profile(country: str, animal: AnimalProfile) -> Dict[str, Any]:
    return {
        "title": animal.name,
        "subtitle": animal.scientific_name,
        "description": animal.description,
        "habitat": animal.habitat,
        "badges": [{"index": i, "label": trait} for i, trait in enumerate(animal.traits)],
        "image_url": animal.image_url,
        "country": country,
    }


def render_insight(
    country: str, animal: AnimalProfile, panel: Optional["InsightPanel"]
) -> Dict[str, Any]:
    if panel is None:
        return {"heading": f"The Sixth Sense of {country}", "status": None, "text": None}
    return {
        "heading": f"The Sixth Sense of {country}",
        "status": panel.status.value,
        "text": panel.text,
        "loading_caption": f"Communing with the spirit of the {animal.name}...",
    }


def render_vision(
    country: str, animal: AnimalProfile, panel: Optional["VisionPanel"]
) -> Dict[str, Any]:
    rendered: Dict[str, Any] = {
        "heading": "Manifest the Spirit Vision",
        "caption": f"Visualize the spiritual essence of the {animal.name} in {country}.",
        "status": None,
        "image": None,
        "error": None,
        "can_generate": False,
        "can_reset": False,
    }
    if panel is not None:
        rendered.update(
            status=panel.status.value,
            image=panel.image,
            error=panel.error,
            can_generate=panel.can_generate,
            can_reset=panel.image is not None,
            download_name=f"spirit-{animal.name}.png",
        )
    return rendered


def render_chat(chat: "ChatOrchestrator") -> Dict[str, Any]:
    return {
        "messages": [message.model_dump(mode="json") for message in chat.transcript],
        "typing": chat.busy,
        "input_enabled": chat.is_open and not chat.busy,
        "error": chat.error,
    }


def render_session(controller: "SessionController") -> Dict[str, Any]:
    """Render the whole session for the active view."""
    state = controller.state
    phase = controller.phase
    rendered: Dict[str, Any] = {
        "phase": phase.value,
        "view": state.view.value,
        "country": state.query.country,
        "generation": state.generation,
        "navigation_enabled": phase is SearchPhase.READY,
    }

    if phase is SearchPhase.EMPTY:
        rendered["suggestions"] = list(controller.config.suggestions)
        return rendered
    if phase is SearchPhase.LOADING:
        rendered["message"] = LOADING_MESSAGE
        return rendered
    if phase is SearchPhase.ERROR:
        rendered["error"] = state.query.error
        return rendered

    country = state.query.country
    animal = state.query.animal
    if state.view is ViewMode.PROFILE:
        rendered["content"] = render_profile(country, animal)
    elif state.view is ViewMode.INSIGHT:
        rendered["content"] = render_insight(country, animal, controller.insight)
    elif state.view is ViewMode.VISION:
        rendered["content"] = render_vision(country, animal, controller.vision)
    else:
        rendered["content"] = render_chat(controller.chat)
    return rendered
