"""
Script generation and summary cards, with and without a working provider
"""
import pytest

from backend.errors import ProviderError
from models.recording import RecordingRecord
from services.generation_service import GenerationProvider, OpenAIGenerationProvider, StaticGenerationProvider
from services.script_service import (
    SCENARIOS,
    SCRIPT_NOT_AVAILABLE,
    STATIC_SCRIPTS,
    ScriptService,
    build_script_prompt,
    format_duration,
    static_summary_card,
)


class RecordingProvider(GenerationProvider):
    """Returns a canned completion and remembers the prompts it was given"""

    live = True

    def __init__(self, reply="Generated script"):
        self.reply = reply
        self.calls = []

    async def complete(self, system_prompt, user_prompt, max_tokens=300, temperature=0.3):
        self.calls.append((system_prompt, user_prompt, max_tokens, temperature))
        return self.reply


class FailingProvider(GenerationProvider):

    live = True

    async def complete(self, system_prompt, user_prompt, max_tokens=300, temperature=0.3):
        raise ProviderError("quota exceeded")


class BrokenProvider(GenerationProvider):

    async def complete(self, system_prompt, user_prompt, max_tokens=300, temperature=0.3):
        raise RuntimeError("unexpected")


def make_record(**overrides):
    values = {
        "id": "rec-1",
        "timestamp": "2024-05-01T12:00:00+00:00",
        "duration": 125,
        "notes": "Asked if I was free to leave",
        "location": "CA",
    }
    values.update(overrides)
    return RecordingRecord(**values)


def test_every_scenario_has_english_and_spanish_templates():
    for scenario in SCENARIOS:
        assert set(STATIC_SCRIPTS[scenario]) == {"en", "es"}


@pytest.mark.asyncio
async def test_spanish_traffic_stop_without_provider():
    service = ScriptService(StaticGenerationProvider())

    script = await service.generate("traffic-stop", "CA", language="es")

    assert script == STATIC_SCRIPTS["traffic-stop"]["es"]
    assert script.startswith('"Buenas tardes, oficial.')


@pytest.mark.asyncio
async def test_unknown_scenario_returns_not_available():
    provider = RecordingProvider()
    service = ScriptService(provider)

    assert await service.generate("jaywalking", "CA") == SCRIPT_NOT_AVAILABLE
    assert provider.calls == []


@pytest.mark.asyncio
async def test_unsupported_language_is_treated_as_english():
    service = ScriptService(StaticGenerationProvider())

    assert await service.generate("arrest", "NY", language="fr") == STATIC_SCRIPTS["arrest"]["en"]


@pytest.mark.asyncio
@pytest.mark.parametrize("provider", [FailingProvider(), BrokenProvider()])
async def test_provider_failures_fall_back_to_static_script(provider):
    service = ScriptService(provider)

    assert await service.generate("questioning", "TX") == STATIC_SCRIPTS["questioning"]["en"]


@pytest.mark.asyncio
async def test_live_provider_receives_jurisdiction_and_context():
    provider = RecordingProvider()
    service = ScriptService(provider)

    script = await service.generate("search-request", "FL", language="es", context="They want to search my trunk")

    assert script == "Generated script"
    _, user_prompt, max_tokens, _ = provider.calls[0]
    assert "FL" in user_prompt
    assert "They want to search my trunk" in user_prompt
    assert "Respond in Spanish." in user_prompt
    assert max_tokens == 300


def test_script_prompt_mentions_scenario_description():
    prompt = build_script_prompt("stop-and-frisk", "NY", "en")
    assert SCENARIOS["stop-and-frisk"]["description"] in prompt


@pytest.mark.asyncio
async def test_summary_card_falls_back_to_static_card():
    record = make_record()
    service = ScriptService(FailingProvider())

    card = await service.generate_summary_card(record)

    assert card == static_summary_card(record)
    assert "Duration: 02:05" in card
    assert "Location: CA" in card
    assert "Asked if I was free to leave" in card


def test_static_summary_card_placeholders():
    card = static_summary_card(make_record(duration=0, notes="", location=None))

    assert "Location: Not specified" in card
    assert "Duration: Not specified" in card
    assert "No additional notes provided" in card


def test_format_duration():
    assert format_duration(0) == "00:00"
    assert format_duration(59) == "00:59"
    assert format_duration(3600) == "60:00"
    assert format_duration(None) == "00:00"


class _Message:
    def __init__(self, content):
        self.content = content


class _Choice:
    def __init__(self, content):
        self.message = _Message(content)


class _Completion:
    def __init__(self, contents):
        self.choices = [_Choice(content) for content in contents]


class FakeCompletions:
    def __init__(self, contents):
        self.contents = contents
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return _Completion(self.contents)


class FakeOpenAIClient:
    def __init__(self, contents):
        self.chat = type("Chat", (), {})()
        self.chat.completions = FakeCompletions(contents)


@pytest.mark.asyncio
async def test_openai_provider_strips_completion():
    client = FakeOpenAIClient(["  Stay calm.  "])
    provider = OpenAIGenerationProvider("sk-test", model="gpt-test", client=client)

    text = await provider.complete("system", "user", max_tokens=50, temperature=0.1)

    assert text == "Stay calm."
    assert client.chat.completions.kwargs["model"] == "gpt-test"
    assert client.chat.completions.kwargs["max_tokens"] == 50


@pytest.mark.asyncio
@pytest.mark.parametrize("contents", [[], ["   "], [None]])
async def test_openai_provider_rejects_empty_completions(contents):
    provider = OpenAIGenerationProvider("sk-test", client=FakeOpenAIClient(contents))

    with pytest.raises(ProviderError):
        await provider.complete("system", "user")
