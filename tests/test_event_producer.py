from types import SimpleNamespace

import pytest

from wizard_prompts.llm.providers.openai_provider import OpenAIProvider
from wizard_prompts.llm.types import LLMRequest, ProviderError
from wizard_prompts.prompting.types import ProcessedPrompt, PromptConfig
from wizard_prompts.streaming.connection import iter_sse_messages
from wizard_prompts.streaming.events import process_event
from wizard_prompts.streaming.producer import stream_prompt_events


def _processed():
    config = PromptConfig(
        name="potential-causes",
        version="1.0.0",
        description="causes",
        model_config={"model": "gpt-4.1-mini", "temperature": 0.3, "max_tokens": 800},
        template="{{health_concern}}",
        schema={"type": "json_schema", "name": "causes", "schema": {"type": "object"}},
    )
    return ProcessedPrompt(prompt="insomnia", config=config)


class ChunkProvider:
    name = "fake"

    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.requests = []

    def stream_text(self, request):
        self.requests.append(request)
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


def _events(frames):
    return [process_event(m) for m in iter_sse_messages(frames)]


def test_stream_emits_chunks_then_completion():
    provider = ChunkProvider(['{"data": {"potential_causes"', ": []}}"])
    events = _events(stream_prompt_events(provider, _processed()))

    assert [e.kind for e in events] == ["text_chunk", "text_chunk", "completion"]
    assert all(e.is_valid for e in events)
    assert events[-1].data == {"data": {"potential_causes": []}}

    request = provider.requests[0]
    assert request.model == "gpt-4.1-mini"
    assert request.max_tokens == 800
    assert request.meta == {"prompt_name": "potential-causes", "prompt_version": "1.0.0"}


def test_provider_failure_becomes_error_event():
    provider = ChunkProvider(["partial"], error=ProviderError("rate limited"))
    events = _events(stream_prompt_events(provider, _processed()))

    assert [e.kind for e in events] == ["text_chunk", "error"]
    assert events[-1].message == "rate limited"


def test_unparseable_final_output_becomes_error_event():
    events = _events(stream_prompt_events(ChunkProvider(["not", " json"]), _processed()))
    assert events[-1].kind == "error"
    assert events[-1].message == "Failed to parse streamed response"


class FakeResponses:
    def __init__(self, events):
        self.events = events
        self.params = None

    def create(self, **params):
        self.params = params
        return iter(self.events)


def test_openai_provider_streams_text_deltas():
    responses = FakeResponses(
        [
            SimpleNamespace(type="response.created"),
            SimpleNamespace(type="response.output_text.delta", delta='{"a"'),
            SimpleNamespace(type="response.output_text.delta", delta=": 1}"),
            SimpleNamespace(type="response.completed"),
        ]
    )
    provider = OpenAIProvider(client=SimpleNamespace(responses=responses))
    request = LLMRequest.from_processed_prompt(_processed(), timeout_seconds=10)

    assert list(provider.stream_text(request)) == ['{"a"', ": 1}"]
    assert responses.params["stream"] is True
    assert responses.params["max_output_tokens"] == 800
    assert responses.params["text"] == {"format": _processed().config.schema}
    assert responses.params["input"] == [{"role": "user", "content": "insomnia"}]


def test_openai_provider_raises_on_failed_stream():
    responses = FakeResponses([SimpleNamespace(type="error", message="server error")])
    provider = OpenAIProvider(client=SimpleNamespace(responses=responses))

    with pytest.raises(ProviderError):
        list(provider.stream_text(LLMRequest.from_processed_prompt(_processed())))


def test_openai_provider_without_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    provider = OpenAIProvider()

    with pytest.raises(ProviderError):
        list(provider.stream_text(LLMRequest.from_processed_prompt(_processed())))


def _interrupted_stream():
    yield SimpleNamespace(type="response.output_text.delta", delta='{"data"')
    raise TimeoutError("read timed out")


def test_mid_stream_transport_failure_becomes_error_event():
    responses = SimpleNamespace(create=lambda **params: _interrupted_stream())
    provider = OpenAIProvider(client=SimpleNamespace(responses=responses))

    events = _events(stream_prompt_events(provider, _processed()))

    assert [e.kind for e in events] == ["text_chunk", "error"]
    assert events[-1].is_valid is True
    assert events[-1].message == "read timed out"


def test_openai_provider_wraps_iteration_errors():
    responses = SimpleNamespace(create=lambda **params: _interrupted_stream())
    provider = OpenAIProvider(client=SimpleNamespace(responses=responses))

    with pytest.raises(ProviderError) as excinfo:
        list(provider.stream_text(LLMRequest.from_processed_prompt(_processed())))
    assert isinstance(excinfo.value.__cause__, TimeoutError)
