"""
Shared data models for the NationSense backend.

- Pydantic models for data validation
- Type hints throughout
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnimalProfile(BaseModel):
    """
    Structured record of a nation's animal.

    Created by the gateway's profile lookup. After creation only
    ``cultural_significance`` and ``image_url`` are ever attached.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    scientific_name: Optional[str] = Field(default=None, alias="scientificName")
    description: str
    habitat: Optional[str] = None
    traits: List[str] = Field(default_factory=list)
    cultural_significance: Optional[str] = Field(default=None, alias="culturalSignificance")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    @field_validator("name", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("traits", mode="before")
    @classmethod
    def _traits_default(cls, value: Any) -> Any:
        # The model may send null for an empty array
        return [] if value is None else value


class InsightResult(BaseModel):
    """Narrative for an animal-country pair; ``degraded`` marks fallback text."""

    text: str
    degraded: bool = False


class NationQuery(BaseModel):
    """The single search slot of a session; replaced wholesale on each search."""

    model_config = ConfigDict(frozen=True)

    country: str = ""
    animal: Optional[AnimalProfile] = None
    loading: bool = False
    error: Optional[str] = None


class ViewMode(str, Enum):
    """Which renderer consumes the current NationQuery."""

    PROFILE = "PROFILE"
    INSIGHT = "INSIGHT"
    VISION = "VISION"
    CHAT = "CHAT"


class SearchPhase(str, Enum):
    """Lifecycle of the NationQuery slot."""

    EMPTY = "EMPTY"
    LOADING = "LOADING"
    ERROR = "ERROR"
    READY = "READY"


class ChatRole(str, Enum):
    USER = "user"
    MODEL = "model"


class ChatMessage(BaseModel):
    """
    One transcript entry.

    ``text`` grows in place while the reply streams; ``id`` never changes.
    """

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    role: ChatRole
    text: str = ""


class ChunkType(str, Enum):
    """Type of data chunk being streamed to the client."""

    STATE = "state"
    TEXT = "text"
    ERROR = "error"
    METADATA = "metadata"


class Chunk(BaseModel):
    """Data chunk pushed from the gateway to a WebSocket client."""

    type: ChunkType
    data: Union[str, Dict[str, Any]]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WebSocketMessage(BaseModel):
    """
    WebSocket message format for client-gateway communication.
    """

    action: str = Field(
        ...,
        description=(
            "Action type: 'search', 'switch_view', 'generate_vision', "
            "'reset_vision', 'chat', 'snapshot'"
        ),
    )
    payload: Dict[str, Any] = Field(default_factory=dict)
    request_id: str = Field(..., description="Unique request identifier")


class WebSocketResponse(BaseModel):
    """
    WebSocket response format from gateway to client.
    """

    request_id: str
    status: str = Field(..., description="Status: 'processing', 'chunk', 'complete', 'error'")
    chunk: Optional[Chunk] = None
    error: Optional[str] = None
