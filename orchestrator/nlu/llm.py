"""Hosted-model classification and extraction via the OpenRouter chat API."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import time
from typing import Any, Mapping

import httpx

from orchestrator.core.errors import CapabilityFailure
from orchestrator.domain.schema import DomainConfig

from .base import IntentClassifier, SlotExtractor

logger = logging.getLogger("orchestrator.nlu")

_JSON_OBJECT = re.compile(r"\{[^{}]*\}", re.DOTALL)


class OpenRouterChat:
    """Minimal chat-completions client. One prompt in, one text reply out."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = "openai/gpt-3.5-turbo",
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str | None = None,
        title: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 200,
        timeout: float = 15.0,
        min_interval: float = 0.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._referer = referer
        self._title = title
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout
        self._transport = transport
        self._min_interval = max(0.0, min_interval)
        self._last_call = 0.0
        self._rate_lock = asyncio.Lock()

    async def complete(self, prompt: str, options: Mapping[str, Any] | None = None) -> str:
        options = options or {}
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        if self._referer:
            headers["HTTP-Referer"] = self._referer
        if self._title:
            headers["X-Title"] = self._title

        payload = {
            "model": options.get("model") or self._model,
            "temperature": options.get("temperature", self._temperature),
            "max_tokens": options.get("max_tokens", self._max_tokens),
            "messages": [{"role": "user", "content": prompt}],
        }

        if self._min_interval:
            async with self._rate_lock:
                now = time.monotonic()
                wait_for = self._min_interval - (now - self._last_call)
                if wait_for > 0:
                    await asyncio.sleep(wait_for)
                self._last_call = time.monotonic()

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self._base_url}/chat/completions",
                headers=headers,
                json=payload,
            )
            response.raise_for_status()
            data = response.json()

        choices = data.get("choices") or [{}]
        return str(choices[0].get("message", {}).get("content") or "").strip()


def _render(template: str, text: str) -> str:
    try:
        return template.format(text=text)
    except (KeyError, IndexError, ValueError) as exc:
        raise CapabilityFailure(f"Prompt template could not be rendered: {exc}") from exc


class LLMIntentClassifier(IntentClassifier):
    """Asks a hosted model to name the intent using the domain's detection prompt."""

    name = "llm-classifier"

    def __init__(self, chat: OpenRouterChat) -> None:
        super().__init__()
        self._chat = chat

    async def classify(self, text: str) -> str:
        if self.config is None:
            raise CapabilityFailure("Classifier is not bound to a domain")
        if not self.config.intent_detection_prompt:
            raise CapabilityFailure(f"Domain {self.config.name} has no intent detection prompt")

        prompt = _render(self.config.intent_detection_prompt, text)
        reply = await self._chat.complete(prompt, self.config.options.model)
        # Models sometimes echo quotes or trailing punctuation around the label.
        return reply.strip().strip("\"'`.").lower()


class LLMSlotExtractor(SlotExtractor):
    """Asks a hosted model for a JSON object of slot values."""

    name = "llm-extractor"

    def __init__(self, chat: OpenRouterChat) -> None:
        super().__init__()
        self._chat = chat

    def configure(self, config: DomainConfig) -> None:
        super().configure(config)
        logger.info(
            "LLM extractor bound to %s with %d extraction prompts",
            config.name,
            len(config.slot_extraction_prompts),
        )

    async def extract(self, intent_name: str, text: str) -> dict[str, Any]:
        if self.config is None:
            raise CapabilityFailure("Extractor is not bound to a domain")

        template = self.config.slot_extraction_prompts.get(intent_name)
        if not template:
            logger.debug("No slot extraction template for intent %s", intent_name)
            return {}

        reply = await self._chat.complete(_render(template, text), self.config.options.model)
        match = _JSON_OBJECT.search(reply)
        if not match:
            logger.warning("No JSON object in extraction reply for %s", intent_name)
            return {}
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.warning("Unparseable extraction reply for %s", intent_name)
            return {}
        return data if isinstance(data, dict) else {}
