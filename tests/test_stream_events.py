import json

import pytest

from wizard_prompts.streaming.events import (
    format_sse_event,
    parse_final_payload,
    process_event,
    validate_event,
)
from wizard_prompts.streaming.types import (
    Completion,
    ProcessedEvent,
    RawMessage,
    StreamError,
    StreamParseError,
    TextChunk,
)


def test_text_chunk_event_is_valid():
    result = process_event('{"type":"text_chunk","content":"hi"}')

    assert result == ProcessedEvent(kind="text_chunk", is_valid=True, content="hi")
    assert result.to_dict() == {"type": "text_chunk", "content": "hi", "isValid": True}
    assert result.to_event() == TextChunk(content="hi")


def test_completion_with_empty_array_is_valid():
    result = process_event(RawMessage(data='{"type":"completion","data":[]}'))

    assert result.is_valid is True
    assert result.kind == "completion"
    assert result.data == []
    assert result.to_dict() == {"type": "completion", "data": [], "isValid": True}
    assert result.to_event() == Completion(data=[])


def test_error_event_is_valid():
    result = process_event('{"type":"error","message":"model overloaded"}')
    assert result.is_valid is True
    assert result.to_event() == StreamError(message="model overloaded")


def test_unparseable_event_is_reported_not_raised():
    result = process_event("not json")

    assert result.to_dict() == {
        "type": "error",
        "message": "Failed to parse stream event",
        "isValid": False,
        "originalData": "not json",
    }


def test_missing_type_is_invalid():
    result = process_event('{"content":"x"}')
    assert result.is_valid is False
    assert result.kind == "error"
    assert result.message == "Invalid stream event: missing type"
    assert result.original_data == '{"content":"x"}'


def test_non_object_payload_is_missing_type():
    assert process_event("[1, 2]").message == "Invalid stream event: missing type"


def test_unknown_type_is_invalid():
    result = process_event('{"type":"structured_complete","data":{}}')
    assert result.is_valid is False
    assert result.message == "Unknown stream event type: structured_complete"


def test_kind_discriminator_is_accepted():
    result = process_event('{"kind":"text_chunk","content":"x"}')
    assert result.is_valid is True
    assert result.content == "x"


def test_validate_event_accepts_well_formed_events():
    assert validate_event({"type": "text_chunk", "content": "a"}).is_valid is True
    assert validate_event({"type": "completion", "data": []}).is_valid is True
    assert validate_event({"type": "error", "message": "boom"}).is_valid is True


def test_validate_event_reports_missing_companion_fields():
    assert validate_event({"type": "text_chunk"}).errors == ["text_chunk events must have content field"]
    assert validate_event({"type": "completion"}).errors == ["completion events must have data field"]
    assert validate_event({"type": "error", "message": ""}).errors == ["error events must have message field"]


def test_validate_event_missing_type():
    result = validate_event({"content": "orphan"})
    assert result.is_valid is False
    assert result.errors == ["Missing required field: type"]


def test_parse_final_payload():
    assert parse_final_payload('{"data": {"potential_causes": []}}') == {"data": {"potential_causes": []}}


def test_parse_final_payload_is_strict():
    with pytest.raises(StreamParseError) as excinfo:
        parse_final_payload('{"data": [1, 2')
    assert str(excinfo.value) == "Failed to parse streamed response"
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


def test_format_sse_event():
    assert format_sse_event(TextChunk(content="hi")) == 'data: {"type":"text_chunk","content":"hi"}\n\n'
    assert format_sse_event({"type": "completion", "data": []}) == 'data: {"type":"completion","data":[]}\n\n'


def test_validate_event_rejects_non_objects():
    for value in (["text_chunk", "hi"], "text_chunk", None):
        result = validate_event(value)
        assert result.is_valid is False
        assert result.errors == ["Missing required field: type"]
