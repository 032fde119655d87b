"""Concrete generative-text providers behind the GenerativeProvider protocol."""

from __future__ import annotations

from google import genai
from google.genai import types
from openai import AsyncOpenAI

from fleetmatch.exceptions import ProviderError
from fleetmatch.generation.gateway import RegisteredProvider
from fleetmatch.models.domain import ChatMessage, ProviderConfig
from fleetmatch.observability.logger import get_logger

logger = get_logger("providers")


class OpenAIChatProvider:
    """Chat completions over the OpenAI API or any OpenAI-compatible endpoint."""

    def __init__(self, api_key: str, model: str, base_url: str | None = None) -> None:
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._model = model

    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise ProviderError(f"{self._model} completion failed: {e}") from e
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


class GeminiProvider:
    """Google Gemini via the google-genai SDK."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash") -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model

    async def complete(
        self,
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> str:
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        contents = [
            types.Content(
                role="model" if m.role == "assistant" else "user",
                parts=[types.Part(text=m.content)],
            )
            for m in messages
            if m.role != "system"
        ]
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        if system:
            config.system_instruction = system
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            raise ProviderError(f"Gemini generation failed: {e}") from e
        return response.text or ""


def build_providers(settings) -> list[RegisteredProvider]:
    """Instantiate every provider that has an API key configured."""
    providers: list[RegisteredProvider] = []
    if settings.openai_api_key:
        providers.append(
            RegisteredProvider(
                config=ProviderConfig(
                    name="openai",
                    priority=settings.openai_priority,
                    model=settings.openai_model,
                ),
                client=OpenAIChatProvider(settings.openai_api_key, settings.openai_model),
            )
        )
    if settings.groq_api_key:
        providers.append(
            RegisteredProvider(
                config=ProviderConfig(
                    name="groq",
                    priority=settings.groq_priority,
                    model=settings.groq_model,
                ),
                client=OpenAIChatProvider(
                    settings.groq_api_key,
                    settings.groq_model,
                    base_url=settings.groq_base_url,
                ),
            )
        )
    if settings.google_api_key:
        providers.append(
            RegisteredProvider(
                config=ProviderConfig(
                    name="gemini",
                    priority=settings.gemini_priority,
                    model=settings.gemini_model,
                ),
                client=GeminiProvider(settings.google_api_key, settings.gemini_model),
            )
        )
    if not providers:
        logger.warning("no_generative_providers_configured")
    return providers
