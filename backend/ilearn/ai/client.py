"""Client for the text-generation service.

Talks to any OpenAI-compatible chat completions endpoint and returns output
validated against a Pydantic schema. One request per call; no retries.
"""

import json
import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .. import config
from ..errors import AIServiceError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class AIClient:
    """Structured single-shot generation."""

    def __init__(
        self,
        model_name: Optional[str] = None,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.model_name = model_name or config.AI_MODEL
        self.base_url = base_url or config.AI_BASE_URL
        self.api_key = api_key or config.AI_API_KEY
        self.temperature = config.AI_TEMPERATURE if temperature is None else temperature
        self.timeout = timeout or config.AI_TIMEOUT
        self._client = None

    @property
    def client(self):
        """Lazy load the OpenAI client with support for local and cloud endpoints."""
        if self._client is None:
            from openai import AsyncOpenAI

            client_kwargs = {"timeout": self.timeout}
            if self.base_url:
                client_kwargs["base_url"] = self.base_url

            is_local = self.base_url and ("localhost" in self.base_url or "127.0.0.1" in self.base_url)
            if not self.api_key and is_local:
                client_kwargs["api_key"] = "dummy-key"
            elif self.api_key:
                client_kwargs["api_key"] = self.api_key

            self._client = AsyncOpenAI(**client_kwargs)
        return self._client

    async def complete_json(self, system_prompt: str, user_prompt: str) -> str:
        """Raw JSON text from one chat completion."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            logger.error(f"AI request failed: {e}")
            raise AIServiceError(f"AI request failed: {e}") from e

        if not response.choices:
            raise AIServiceError("No choices in AI response")
        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise AIServiceError("Empty content in AI response")
        return content

    async def generate(self, system_prompt: str, user_prompt: str, schema: Type[T]) -> T:
        """Run a prompt and validate the answer against ``schema``."""
        content = await self.complete_json(system_prompt, user_prompt)
        try:
            return schema.model_validate(json.loads(content))
        except json.JSONDecodeError as e:
            raise AIServiceError(f"Failed to parse JSON response: {e}") from e
        except ValidationError as e:
            logger.warning(f"AI output did not match {schema.__name__}: {e}")
            raise AIServiceError(f"AI output did not match the expected format: {e}") from e


_default_client: Optional[AIClient] = None


def get_ai_client() -> AIClient:
    """Dependency returning the shared client."""
    global _default_client
    if _default_client is None:
        _default_client = AIClient()
    return _default_client
