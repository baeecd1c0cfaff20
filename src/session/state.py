"""
Session state and its pure transition functions.

Every transition returns a new SessionState; the controller is the only
component that stores the result. ``generation`` increases with each accepted
search and tags the in-flight profile request, so a result carrying an older
generation leaves the state untouched.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from common.models import AnimalProfile, NationQuery, SearchPhase, ViewMode


class SessionState(BaseModel):
    """Immutable snapshot of one session."""

    model_config = ConfigDict(frozen=True)

    query: NationQuery = Field(default_factory=NationQuery)
    view: ViewMode = ViewMode.PROFILE
    generation: int = 0


def phase_of(state: SessionState) -> SearchPhase:
    query = state.query
    if query.loading:
        return SearchPhase.LOADING
    if query.error:
        return SearchPhase.ERROR
    if query.animal is not None:
        return SearchPhase.READY
    return SearchPhase.EMPTY


def submit_search(state: SessionState, country: str) -> Optional[SessionState]:
    """Start a search; returns None for blank input (no transition)."""
    country = country.strip()
    if not country:
        return None
    return state.model_copy(
        update={
            "query": NationQuery(country=country, loading=True),
            "generation": state.generation + 1,
        }
    )


def resolve_search(state: SessionState, generation: int, profile: AnimalProfile) -> SessionState:
    if generation != state.generation:
        return state
    return state.model_copy(
        update={
            "query": NationQuery(country=state.query.country, animal=profile),
            "view": ViewMode.PROFILE,
        }
    )


def reject_search(state: SessionState, generation: int, message: str) -> SessionState:
    if generation != state.generation:
        return state
    return state.model_copy(
        update={"query": NationQuery(country=state.query.country, error=message)}
    )


def select_view(state: SessionState, mode: ViewMode) -> SessionState:
    """Switch the active view; only permitted once a profile is READY."""
    if phase_of(state) is not SearchPhase.READY:
        return state
    return state.model_copy(update={"view": mode})
