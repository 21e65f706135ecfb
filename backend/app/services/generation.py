"""
Generation Gateway

Sends prompts to external text-generation providers. The candidate providers
form an explicit ordered list of strategies; each strategy returns a
``ProviderResult`` value (text or error) instead of raising, and the gateway
walks the list until one yields usable text. When every candidate fails, the
generic path returns a keyword-selected local template.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import httpx
from openai import AsyncOpenAI

from app.core.config import settings
from app.core.errors import InvalidInputError, NoProviderAvailableError
from app.prompts.fallback_templates import select_fallback_template

logger = logging.getLogger(__name__)

Message = Dict[str, str]


@dataclass
class GenerationOptions:
    temperature: float = 0.7
    max_output_tokens: int = 2048
    model: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.temperature <= 1:
            raise InvalidInputError("temperature must be between 0 and 1")
        if self.max_output_tokens <= 0:
            raise InvalidInputError("max_output_tokens must be a positive integer")


@dataclass
class ProviderResult:
    provider: str
    content: Optional[str] = None
    model: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.content and self.content.strip())


@dataclass
class GenerationResult:
    content: str
    provider: str
    model: Optional[str] = None
    fallback: bool = False
    attempts: List[ProviderResult] = field(default_factory=list)


class ProviderCallError(Exception):
    """Non-success response from a provider API."""


class ProviderStrategy:
    """One way of turning messages into text. Subclasses implement ``_call``."""
    name: str = ""
    default_model: str = ""

    def __init__(self, timeout: Optional[float] = None, default_model: Optional[str] = None):
        self.timeout = timeout if timeout is not None else settings.PROVIDER_TIMEOUT_SECONDS
        if default_model:
            self.default_model = default_model

    async def attempt(
        self, messages: Sequence[Message], options: GenerationOptions, api_key: str
    ) -> ProviderResult:
        """Run one bounded call; every failure comes back as an error result."""
        try:
            content, model = await asyncio.wait_for(
                self._call(messages, options, api_key), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            return ProviderResult(provider=self.name, error=f"timed out after {self.timeout}s")
        except Exception as e:
            return ProviderResult(provider=self.name, error=f"{type(e).__name__}: {e}")

        if not isinstance(content, str) or not content.strip():
            return ProviderResult(provider=self.name, model=model, error="empty response")
        return ProviderResult(provider=self.name, content=content, model=model)

    async def _call(
        self, messages: Sequence[Message], options: GenerationOptions, api_key: str
    ) -> Tuple[str, str]:
        raise NotImplementedError


def _split_system(messages: Sequence[Message]) -> Tuple[Optional[str], List[Message]]:
    system = "\n\n".join(m["content"] for m in messages if m.get("role") == "system") or None
    rest = [m for m in messages if m.get("role") != "system"]
    return system, rest


class OpenAIStrategy(ProviderStrategy):
    name = "openai"
    default_model = settings.OPENAI_MODEL

    async def _call(self, messages, options, api_key):
        model = options.model or self.default_model
        async with AsyncOpenAI(api_key=api_key, timeout=self.timeout, max_retries=0) as client:
            response = await client.chat.completions.create(
                model=model,
                messages=list(messages),
                temperature=options.temperature,
                max_tokens=options.max_output_tokens,
            )
        return response.choices[0].message.content, response.model or model


class AnthropicStrategy(ProviderStrategy):
    name = "anthropic"
    default_model = settings.ANTHROPIC_MODEL
    url = "https://api.anthropic.com/v1/messages"

    async def _call(self, messages, options, api_key):
        system, rest = _split_system(messages)
        model = options.model or self.default_model
        payload = {
            "model": model,
            "max_tokens": options.max_output_tokens,
            "temperature": options.temperature,
            "messages": [
                {"role": "assistant" if m["role"] == "assistant" else "user", "content": m["content"]}
                for m in rest
            ],
        }
        if system:
            payload["system"] = system
        headers = {
            "x-api-key": api_key,
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient() as client:
            response = await client.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        if response.status_code != 200:
            raise ProviderCallError(f"Anthropic API Error {response.status_code}: {response.text[:200]}")
        data = response.json()
        text = "".join(block["text"] for block in data["content"] if block.get("type") == "text")
        return text, data.get("model", model)


class GeminiStrategy(ProviderStrategy):
    name = "gemini"
    default_model = settings.GEMINI_MODEL
    base_url = "https://generativelanguage.googleapis.com/v1beta/models"

    async def _call(self, messages, options, api_key):
        system, rest = _split_system(messages)
        model = options.model or self.default_model
        payload = {
            "contents": [
                {"role": "model" if m["role"] == "assistant" else "user", "parts": [{"text": m["content"]}]}
                for m in rest
            ],
            "generationConfig": {
                "temperature": options.temperature,
                "maxOutputTokens": options.max_output_tokens,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        url = f"{self.base_url}/{model}:generateContent"
        async with httpx.AsyncClient() as client:
            response = await client.post(
                url, json=payload, headers={"x-goog-api-key": api_key}, timeout=self.timeout
            )
        if response.status_code != 200:
            raise ProviderCallError(f"Gemini API Error {response.status_code}: {response.text[:200]}")
        data = response.json()
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(p.get("text", "") for p in parts), model


class CohereStrategy(ProviderStrategy):
    name = "cohere"
    default_model = settings.COHERE_MODEL
    url = "https://api.cohere.com/v2/chat"

    async def _call(self, messages, options, api_key):
        model = options.model or self.default_model
        payload = {
            "model": model,
            "messages": list(messages),
            "temperature": options.temperature,
            "max_tokens": options.max_output_tokens,
        }
        headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}
        async with httpx.AsyncClient() as client:
            response = await client.post(self.url, json=payload, headers=headers, timeout=self.timeout)
        if response.status_code != 200:
            raise ProviderCallError(f"Cohere API Error {response.status_code}: {response.text[:200]}")
        data = response.json()
        blocks = data["message"]["content"]
        return "".join(b.get("text", "") for b in blocks if b.get("type") == "text"), model


STRATEGIES = {
    "openai": OpenAIStrategy,
    "anthropic": AnthropicStrategy,
    "gemini": GeminiStrategy,
    "cohere": CohereStrategy,
}


def default_strategies(
    priority: Optional[Sequence[str]] = None, timeout: Optional[float] = None
) -> List[ProviderStrategy]:
    order = priority if priority is not None else settings.PROVIDER_PRIORITY
    unknown = [name for name in order if name not in STRATEGIES]
    if unknown:
        raise ValueError(f"Unknown providers in PROVIDER_PRIORITY: {unknown}")
    return [STRATEGIES[name](timeout=timeout) for name in order]


def build_messages(prompt: str, system_prompt: Optional[str] = None) -> List[Message]:
    messages: List[Message] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    return messages


def _last_user_text(messages: Sequence[Message]) -> str:
    for message in reversed(messages):
        if message.get("role") == "user":
            return message.get("content", "")
    return ""


class GenerationGateway:
    def __init__(self, strategies: Optional[Sequence[ProviderStrategy]] = None):
        self.strategies: List[ProviderStrategy] = (
            list(strategies) if strategies is not None else default_strategies()
        )

    def candidates(self, api_keys: Mapping[str, Optional[str]]) -> List[Tuple[ProviderStrategy, str]]:
        """Strategies that have a key, in priority order."""
        return [(s, api_keys[s.name]) for s in self.strategies if api_keys.get(s.name)]

    def strategy_for(self, provider: str) -> ProviderStrategy:
        for strategy in self.strategies:
            if strategy.name == provider:
                return strategy
        if provider in STRATEGIES:
            return STRATEGIES[provider]()
        raise InvalidInputError(f"Unsupported provider: {provider}")

    async def generate(
        self,
        prompt: str,
        options: Optional[GenerationOptions] = None,
        api_keys: Optional[Mapping[str, Optional[str]]] = None,
        system_prompt: Optional[str] = None,
    ) -> GenerationResult:
        return await self.chat(build_messages(prompt, system_prompt), options, api_keys)

    async def chat(
        self,
        messages: Sequence[Message],
        options: Optional[GenerationOptions] = None,
        api_keys: Optional[Mapping[str, Optional[str]]] = None,
    ) -> GenerationResult:
        """
        Generic path: first usable provider response wins, otherwise a template.

        Never raises for provider problems.
        """
        options = options or GenerationOptions()
        attempts: List[ProviderResult] = []

        for strategy, api_key in self.candidates(api_keys or {}):
            result = await strategy.attempt(messages, options, api_key)
            attempts.append(result)
            if result.ok:
                return GenerationResult(
                    content=result.content,
                    provider=result.provider,
                    model=result.model,
                    attempts=attempts,
                )
            logger.warning(f"Provider {strategy.name} failed, trying next: {result.error}")

        logger.info(
            f"No provider produced a response ({len(attempts)} attempted), using fallback template"
        )
        return GenerationResult(
            content=select_fallback_template(_last_user_text(messages)),
            provider="template",
            fallback=True,
            attempts=attempts,
        )

    async def generate_with_provider(
        self,
        provider: str,
        messages: Sequence[Message],
        options: Optional[GenerationOptions] = None,
        api_key: Optional[str] = None,
    ) -> GenerationResult:
        """
        Named-provider path: no fallback.

        Raises:
            NoProviderAvailableError: If no key is configured for the provider,
                or the provider did not return usable text.
        """
        strategy = self.strategy_for(provider)
        if not api_key:
            raise NoProviderAvailableError(provider, reason="missing_key")

        result = await strategy.attempt(messages, options or GenerationOptions(), api_key)
        if not result.ok:
            logger.warning(f"Named provider {provider} failed: {result.error}")
            raise NoProviderAvailableError(provider, reason="unavailable")
        return GenerationResult(
            content=result.content, provider=result.provider, model=result.model, attempts=[result]
        )


def get_generation_gateway() -> GenerationGateway:
    return GenerationGateway()


async def generate_for_user(
    gateway: GenerationGateway,
    user_id,
    db,
    messages: Sequence[Message],
    options: Optional[GenerationOptions] = None,
    provider: Optional[str] = None,
    encryption_service=None,
) -> GenerationResult:
    """
    Resolve the user's keys just-in-time and run the matching gateway path.

    With ``provider`` set the named path is used and may raise
    ``NoProviderAvailableError``; otherwise the generic path never raises for
    provider problems. Decrypted keys are dropped as soon as the call returns
    (best effort: Python strings cannot be wiped).
    """
    from app.services.user_api_keys import get_effective_api_keys, require_api_key

    if provider:
        api_key = await require_api_key(user_id, provider, db, encryption_service)
        try:
            return await gateway.generate_with_provider(provider, messages, options, api_key)
        finally:
            del api_key

    api_keys = await get_effective_api_keys(user_id, db, encryption_service)
    try:
        return await gateway.chat(messages, options, api_keys)
    finally:
        api_keys.clear()
