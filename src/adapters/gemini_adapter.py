"""
Google Gemini gateway for profile, insight, vision and chat calls.

- Async I/O for all operations
- Single responsibility: Google Gemini API integration
- Structured logging with elapsed_ms
- Never log secrets, API keys or user chat text
- Timeout handling with explicit errors
"""

import asyncio
import base64
import os
from typing import Any, AsyncIterator, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from adapters import prompts
from adapters.base import ChatSessionHandle, ModelGateway
from common.config import ProviderConfig
from common.errors import ConfigurationError, GatewayError, StreamInterrupted
from common.logging import TimedLogger, get_logger
from common.models import AnimalProfile, InsightResult

logger = get_logger(__name__)

INSIGHT_FALLBACK = "Could not commune with the archives at this time."
INSIGHT_EMPTY = "The spirits are silent."


class GeminiChatSession(ChatSessionHandle):
    """Chat handle wrapping a google-genai AsyncChat."""

    def __init__(self, chat: Any, timeout: float):
        self._chat = chat
        self._timeout = timeout

    async def send_streaming(self, text: str) -> AsyncIterator[str]:
        try:
            stream = await asyncio.wait_for(
                self._chat.send_message_stream(text), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            raise StreamInterrupted(f"Chat stream did not start within {self._timeout}s")
        except Exception as e:
            raise StreamInterrupted(f"Chat stream failed to start: {e}") from e

        iterator = stream.__aiter__()
        while True:
            try:
                chunk = await asyncio.wait_for(iterator.__anext__(), timeout=self._timeout)
            except StopAsyncIteration:
                return
            except asyncio.TimeoutError:
                raise StreamInterrupted(f"No chat increment within {self._timeout}s")
            except Exception as e:
                raise StreamInterrupted(f"Chat stream interrupted: {e}") from e

            if chunk.text:
                yield chunk.text


class GeminiGateway(ModelGateway):
    """Gemini gateway with a lazily created client."""

    def __init__(self, config: ProviderConfig, client: Optional[Any] = None):
        """
        Initialize the Gemini gateway.

        Args:
            config: Provider settings (models, timeout, credential variable name)
            client: Pre-built google-genai client. When omitted, the client is
                    created on first use from the credential in the environment.
        """
        self.config = config
        self._client = client
        self.provider_name = "gemini"

    def _get_client(self) -> Any:
        """Return the client, creating it on first use."""
        if self._client is None:
            api_key = os.getenv(self.config.api_key_env)
            if not api_key:
                raise ConfigurationError(
                    f"{self.config.api_key_env} environment variable not set"
                )
            self._client = genai.Client(api_key=api_key)
            logger.info(
                event="gemini_client_initialized",
                message="Gemini client created",
                api_key_env=self.config.api_key_env,
            )
        return self._client

    def _generation_config(self, **kwargs: Any) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(temperature=self.config.temperature, **kwargs)

    async def _generate(
        self, model: str, contents: str, config: types.GenerateContentConfig
    ) -> Any:
        """Issue one generate_content request bounded by the configured timeout."""
        client = self._get_client()
        try:
            return await asyncio.wait_for(
                client.aio.models.generate_content(model=model, contents=contents, config=config),
                timeout=self.config.request_timeout,
            )
        except asyncio.TimeoutError:
            raise GatewayError(f"Request to {model} timed out after {self.config.request_timeout}s")
        except Exception as e:
            raise GatewayError(f"Request to {model} failed: {e}") from e

    async def fetch_profile(self, country: str) -> AnimalProfile:
        model = self.config.profile_model
        with TimedLogger(logger, "gemini_fetch_profile", model=model):
            try:
                response = await self._generate(
                    model,
                    prompts.profile_prompt(country, self.config.expected_trait_count),
                    self._generation_config(
                        response_mime_type="application/json",
                        response_schema=prompts.PROFILE_SCHEMA,
                    ),
                )
            except GatewayError as e:
                logger.error(event="gemini_profile_failed", error=str(e))
                raise

            text = response.text
            if not text:
                logger.error(event="gemini_profile_empty", model=model)
                raise GatewayError("No response text from Gemini")

            try:
                profile = AnimalProfile.model_validate_json(text)
            except ValidationError as e:
                logger.error(
                    event="gemini_profile_unparseable",
                    error_count=e.error_count(),
                    response_length=len(text),
                )
                raise GatewayError(f"Profile response did not match the expected shape: {e}") from e

        if len(profile.traits) != self.config.expected_trait_count:
            logger.warning(
                event="gemini_profile_trait_count",
                expected=self.config.expected_trait_count,
                received=len(profile.traits),
            )

        logger.info(event="gemini_profile_received", animal=profile.name)
        return profile

    async def fetch_insight(self, country: str, animal_name: str) -> InsightResult:
        model = self.config.insight_model
        with TimedLogger(logger, "gemini_fetch_insight", model=model):
            try:
                response = await self._generate(
                    model,
                    prompts.insight_prompt(country, animal_name),
                    self._generation_config(),
                )
            except GatewayError as e:
                logger.warning(
                    event="gemini_insight_degraded",
                    message="Insight request failed, using fallback text",
                    error=str(e),
                )
                return InsightResult(text=INSIGHT_FALLBACK, degraded=True)

        if not response.text:
            logger.warning(event="gemini_insight_empty", model=model)
            return InsightResult(text=INSIGHT_EMPTY, degraded=True)
        return InsightResult(text=response.text)

    async def generate_vision(self, country: str, animal_name: str) -> str:
        model = self.config.vision_model
        with TimedLogger(logger, "gemini_generate_vision", model=model):
            try:
                response = await self._generate(
                    model,
                    prompts.vision_prompt(country, animal_name),
                    self._generation_config(),
                )
            except GatewayError as e:
                logger.error(event="gemini_vision_failed", error=str(e))
                raise

        data_uri = extract_image_data_uri(response)
        if data_uri is None:
            logger.error(event="gemini_vision_no_image", model=model)
            raise GatewayError("No image data received")
        return data_uri

    def open_chat(self, country: str, animal_name: str) -> ChatSessionHandle:
        client = self._get_client()
        chat = client.aio.chats.create(
            model=self.config.chat_model,
            config=self._generation_config(
                system_instruction=prompts.persona_prompt(country, animal_name)
            ),
        )
        logger.info(event="gemini_chat_opened", model=self.config.chat_model, animal=animal_name)
        return GeminiChatSession(chat, self.config.request_timeout)

    async def health_check(self) -> bool:
        """Configured when a client exists or the credential is present."""
        return self._client is not None or bool(os.getenv(self.config.api_key_env))


def extract_image_data_uri(response: Any) -> Optional[str]:
    """Return the first inline image part of ``response`` as a data URI."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates or candidates[0].content is None:
        return None

    for part in candidates[0].content.parts or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            payload = inline.data
            if isinstance(payload, bytes):
                payload = base64.b64encode(payload).decode("ascii")
            return f"data:{inline.mime_type};base64,{payload}"
    return None
