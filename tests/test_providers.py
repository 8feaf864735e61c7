import asyncio
from types import SimpleNamespace

import pytest

from config.settings import ProviderSettings
from consensus.models import Stage
from providers.base import AnalysisRequest
from providers.clients import (
    AnthropicProvider,
    OpenAICompatibleProvider,
    build_providers,
    create_provider,
)
from services.exceptions import MalformedResponse, ProviderFailure

ANSWER = '{"itemName": "LEGO 75192", "estimatedValue": 650, "decision": "BUY", "confidence": 0.9}'
IMAGE = {"media_type": "image/jpeg", "data": "aGVsbG8="}


class FakeChatCompletions:
    def __init__(self, content=ANSWER, error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeMessages:
    def __init__(self, text=ANSWER, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(content=[SimpleNamespace(text=self.text)])


def openai_settings(**overrides) -> ProviderSettings:
    values = dict(provider_id="openai", model="gpt-test", api_key_env="HYDRA_TEST_OPENAI_KEY")
    values.update(overrides)
    return ProviderSettings(**values)


def openai_provider(completions: FakeChatCompletions, **overrides) -> OpenAICompatibleProvider:
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OpenAICompatibleProvider(openai_settings(**overrides), client=client)


# ============================================================
# OPENAI-COMPATIBLE
# ============================================================

def test_openai_provider_parses_completion() -> None:
    completions = FakeChatCompletions()
    provider = openai_provider(completions)
    analysis = asyncio.run(provider.analyze(AnalysisRequest(item_text="Millennium Falcon set")))

    assert analysis["itemName"] == "LEGO 75192"
    assert analysis["estimatedValue"] == 650.0
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["messages"][1]["content"] == "Item: Millennium Falcon set"


def test_vision_request_sends_data_uri() -> None:
    completions = FakeChatCompletions()
    provider = openai_provider(completions)
    asyncio.run(provider.analyze(AnalysisRequest(images=[IMAGE])))

    content = completions.calls[0]["messages"][1]["content"]
    assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,aGVsbG8="


def test_text_only_provider_ignores_images() -> None:
    completions = FakeChatCompletions()
    provider = openai_provider(completions, provider_id="groq", stage="text", supports_vision=False)
    request = AnalysisRequest(item_text="Old lamp", images=[IMAGE])
    asyncio.run(provider.analyze(request))

    assert isinstance(completions.calls[0]["messages"][1]["content"], str)
    assert provider.stage == Stage.TEXT


def test_image_only_request_not_accepted_by_text_provider() -> None:
    provider = openai_provider(FakeChatCompletions(), supports_vision=False)
    assert not provider.accepts(AnalysisRequest(images=[IMAGE]))
    assert provider.accepts(AnalysisRequest(item_text="x", images=[IMAGE]))


def test_sdk_error_becomes_provider_failure() -> None:
    provider = openai_provider(FakeChatCompletions(error=RuntimeError("503")))
    with pytest.raises(ProviderFailure) as exc_info:
        asyncio.run(provider.analyze(AnalysisRequest(item_text="x")))
    assert exc_info.value.provider == "openai"
    assert isinstance(exc_info.value.cause, RuntimeError)


def test_empty_completion_is_malformed() -> None:
    provider = openai_provider(FakeChatCompletions(content=""))
    with pytest.raises(MalformedResponse):
        asyncio.run(provider.analyze(AnalysisRequest(item_text="x")))


# ============================================================
# ANTHROPIC
# ============================================================

def test_anthropic_provider_sends_system_prompt_and_images() -> None:
    messages = FakeMessages()
    settings = ProviderSettings(provider_id="anthropic", model="claude-test", api_key_env="HYDRA_TEST_ANTHROPIC_KEY")
    provider = AnthropicProvider(settings, client=SimpleNamespace(messages=messages))

    analysis = asyncio.run(provider.analyze(AnalysisRequest(item_text="set", images=[IMAGE])))

    assert analysis["decision"] == "BUY"
    call = messages.calls[0]
    assert call["system"].startswith("You are an expert appraiser")
    content = call["messages"][0]["content"]
    assert content[1]["source"]["media_type"] == "image/jpeg"


def test_anthropic_garbage_text_is_malformed() -> None:
    settings = ProviderSettings(provider_id="anthropic", model="claude-test", api_key_env="HYDRA_TEST_ANTHROPIC_KEY")
    provider = AnthropicProvider(settings, client=SimpleNamespace(messages=FakeMessages(text="I cannot tell")))
    with pytest.raises(MalformedResponse):
        asyncio.run(provider.analyze(AnalysisRequest(item_text="x")))


# ============================================================
# REGISTRY
# ============================================================

def test_build_providers_skips_missing_keys(monkeypatch) -> None:
    monkeypatch.setenv("HYDRA_TEST_GROQ_KEY", "gsk-test")
    monkeypatch.setenv("HYDRA_TEST_XAI_KEY", "YOUR_XAI_KEY")
    monkeypatch.delenv("HYDRA_TEST_MISTRAL_KEY", raising=False)
    settings = {
        "groq": ProviderSettings("groq", "llama", "HYDRA_TEST_GROQ_KEY", stage="text",
                                 base_url="https://api.groq.com/openai/v1", supports_vision=False),
        "xai": ProviderSettings("xai", "grok", "HYDRA_TEST_XAI_KEY", stage="text"),
        "mistral": ProviderSettings("mistral", "small", "HYDRA_TEST_MISTRAL_KEY", stage="text"),
    }
    providers = build_providers(settings)
    assert [p.provider_id for p in providers] == ["groq"]
    assert providers[0].stage == Stage.TEXT


def test_create_provider_picks_adapter(monkeypatch) -> None:
    monkeypatch.setenv("HYDRA_TEST_ANTHROPIC_KEY", "sk-ant-test")
    monkeypatch.setenv("HYDRA_TEST_OPENAI_KEY", "sk-test")
    anthropic_settings = ProviderSettings("anthropic", "claude-test", "HYDRA_TEST_ANTHROPIC_KEY")
    assert isinstance(create_provider(anthropic_settings), AnthropicProvider)
    assert isinstance(create_provider(openai_settings()), OpenAICompatibleProvider)
