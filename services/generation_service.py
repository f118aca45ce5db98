"""
Generative-text collaborator.

OpenAIGenerationProvider calls the chat completions API. StaticGenerationProvider
stands in when OPENAI_API_KEY is not configured: it always raises ProviderError
so callers take their static fallback path.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from backend.errors import ProviderError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-3.5-turbo"
REQUEST_TIMEOUT_SECONDS = 30.0


class GenerationProvider:

    live = False

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 300,
        temperature: float = 0.3,
    ) -> str:
        raise NotImplementedError


class OpenAIGenerationProvider(GenerationProvider):

    live = True

    def __init__(self, api_key: str, model: Optional[str] = None, client: Optional[AsyncOpenAI] = None):
        self.model = model or DEFAULT_MODEL
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=REQUEST_TIMEOUT_SECONDS)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 300,
        temperature: float = 0.3,
    ) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt}
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI request failed: {e}")

        if not response.choices:
            raise ProviderError("OpenAI returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise ProviderError("OpenAI returned an empty completion")
        return content.strip()


class StaticGenerationProvider(GenerationProvider):

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 300,
        temperature: float = 0.3,
    ) -> str:
        raise ProviderError("Generative text provider is not configured")
