"""
Provider Adapters

Concrete providers on the official SDKs:
- AnthropicProvider: anthropic.AsyncAnthropic
- OpenAICompatibleProvider: openai.AsyncOpenAI, also used for groq, xai,
  deepseek, mistral and perplexity through their OpenAI-compatible base URLs

Usage:
    from providers.clients import build_providers
    providers = build_providers()
"""

import logging
from typing import Dict, Any, List, Optional

import anthropic
from openai import AsyncOpenAI

from config.settings import PROVIDERS, ProviderSettings
from consensus.models import Stage
from providers.base import InferenceProvider, AnalysisRequest
from providers.parsers import parse_analysis_response
from services.exceptions import ProviderFailure, MalformedResponse

logger = logging.getLogger(__name__)

MAX_IMAGES = 5


class OpenAICompatibleProvider(InferenceProvider):
    """Chat-completions provider (OpenAI or any compatible endpoint)"""

    def __init__(self, settings: ProviderSettings, client: Optional[AsyncOpenAI] = None):
        self.settings = settings
        self.provider_id = settings.provider_id
        self.stage = Stage(settings.stage)
        self.supports_vision = settings.supports_vision
        self.timeout = settings.timeout
        self.client = client or AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    def _build_messages(self, request: AnalysisRequest) -> List[Dict[str, Any]]:
        messages = [{"role": "system", "content": request.prompt}]
        if request.images and self.supports_vision:
            content = [{"type": "text", "text": request.user_message()}]
            for img in request.images[:MAX_IMAGES]:
                content.append({
                    "type": "image_url",
                    "image_url": {
                        "url": f"data:{img['media_type']};base64,{img['data']}",
                        "detail": "low",
                    },
                })
            messages.append({"role": "user", "content": content})
        else:
            messages.append({"role": "user", "content": request.user_message()})
        return messages

    async def analyze(self, request: AnalysisRequest) -> Dict[str, Any]:
        try:
            response = await self.client.chat.completions.create(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                messages=self._build_messages(request),
            )
        except Exception as e:
            raise ProviderFailure(self.provider_id, f"API error: {type(e).__name__}", cause=e)

        if not response.choices or not response.choices[0].message.content:
            raise MalformedResponse(self.provider_id, "empty response")

        raw = response.choices[0].message.content.strip()
        return parse_analysis_response(raw, self.provider_id)


class AnthropicProvider(InferenceProvider):
    """Claude messages API provider"""

    def __init__(self, settings: ProviderSettings, client: Optional[anthropic.AsyncAnthropic] = None):
        self.settings = settings
        self.provider_id = settings.provider_id
        self.stage = Stage(settings.stage)
        self.supports_vision = settings.supports_vision
        self.timeout = settings.timeout
        self.client = client or anthropic.AsyncAnthropic(api_key=settings.api_key)

    def _build_content(self, request: AnalysisRequest):
        if not request.images:
            return request.user_message()
        content = [{"type": "text", "text": request.user_message()}]
        for img in request.images[:MAX_IMAGES]:
            content.append({
                "type": "image",
                "source": {"type": "base64", "media_type": img['media_type'], "data": img['data']},
            })
        return content

    async def analyze(self, request: AnalysisRequest) -> Dict[str, Any]:
        try:
            response = await self.client.messages.create(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                system=request.prompt,
                messages=[{"role": "user", "content": self._build_content(request)}],
            )
        except Exception as e:
            raise ProviderFailure(self.provider_id, f"API error: {type(e).__name__}", cause=e)

        if not response.content:
            raise MalformedResponse(self.provider_id, "empty response")

        raw = response.content[0].text.strip()
        return parse_analysis_response(raw, self.provider_id)


def create_provider(settings: ProviderSettings) -> InferenceProvider:
    if settings.provider_id == 'anthropic':
        return AnthropicProvider(settings)
    return OpenAICompatibleProvider(settings)


def build_providers(settings: Dict[str, ProviderSettings] = None) -> List[InferenceProvider]:
    """Instantiate every provider that has an API key configured"""
    settings = settings or PROVIDERS
    providers = []
    for provider_id, provider_settings in settings.items():
        if not provider_settings.api_key:
            logger.info(f"[PROVIDERS] {provider_id} disabled (no {provider_settings.api_key_env})")
            continue
        providers.append(create_provider(provider_settings))
        logger.info(f"[PROVIDERS] {provider_id} enabled ({provider_settings.model}, stage={provider_settings.stage})")

    if not providers:
        logger.warning("[PROVIDERS] No inference providers configured - every analysis will be FALLBACK")
    return providers
