import json

import pytest

from sourcebrief.backends.groq import GroqBackend
from sourcebrief.backends.mock import MockBackend, build_mock_brief
from sourcebrief.db.memory import MemoryBriefStore
from sourcebrief.orchestrator.errors import (
    InvalidRequestError,
    LlmNotConfiguredError,
    MalformedModelOutputError,
    NotFoundError,
    RateLimitedError,
    SchemaViolationError,
    StorageError,
    TransportError,
)
from sourcebrief.orchestrator.generator import (
    BriefGenerator,
    check_urls,
    parse_model_output,
    select_backend,
)
from sourcebrief.orchestrator.validator import Valid, validate_brief


class StubBackend:
    name = "Stub"

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def draft(self, urls):
        self.calls.append(urls)
        if self.error:
            raise self.error
        return self.text


class BrokenStore(MemoryBriefStore):
    async def append(self, brief):
        raise OSError("disk full")


@pytest.fixture
def store():
    return MemoryBriefStore()


async def test_mock_path_returns_valid_stored_brief(store, urls):
    generator = BriefGenerator(store, MockBackend())
    brief = await generator.generate(urls)
    assert isinstance(validate_brief(brief.to_json()), Valid)
    assert len(brief.sources) == 2
    assert await store.get(brief.id) == brief


async def test_llm_output_is_parsed_and_stored(store, urls):
    backend = StubBackend(text=json.dumps(build_mock_brief(urls)))
    brief = await BriefGenerator(store, backend).generate(urls)
    assert backend.calls == [urls]
    assert await store.count() == 1
    assert brief.key_points


async def test_urls_are_trimmed(store):
    backend = StubBackend(text=json.dumps(build_mock_brief(["https://a.example/1"])))
    await BriefGenerator(store, backend).generate(["  https://a.example/1 "])
    assert backend.calls == [["https://a.example/1"]]


@pytest.mark.parametrize("urls", [[], None, "https://a.example", {"urls": []}])
async def test_invalid_url_list_rejected_without_mutation(store, urls):
    backend = StubBackend(text="{}")
    with pytest.raises(InvalidRequestError):
        await BriefGenerator(store, backend).generate(urls)
    assert backend.calls == []
    assert await store.count() == 0


async def test_each_bad_url_is_reported(store):
    with pytest.raises(InvalidRequestError) as info:
        await BriefGenerator(store, MockBackend()).generate(
            ["https://ok.example", "not a url", "ftp://files.example/x", 12]
        )
    assert [v.path for v in info.value.details] == ["urls.1", "urls.2", "urls.3"]
    assert await store.count() == 0


async def test_missing_backend_is_not_configured(store, urls):
    with pytest.raises(LlmNotConfiguredError):
        await BriefGenerator(store, None).generate(urls)


async def test_malformed_output(store, urls):
    backend = StubBackend(text="Here is your brief: {")
    with pytest.raises(MalformedModelOutputError):
        await BriefGenerator(store, backend).generate(urls)
    assert await store.count() == 0


async def test_schema_violation_carries_violations(store, urls):
    data = build_mock_brief(urls)
    data["key_points"][0]["credibility"] = "extreme"
    del data["summary"]
    backend = StubBackend(text=json.dumps(data))
    with pytest.raises(SchemaViolationError) as info:
        await BriefGenerator(store, backend).generate(urls)
    assert {v.path for v in info.value.details} == {"summary", "key_points.0.credibility"}
    assert await store.count() == 0


async def test_non_object_json_is_schema_violation(store, urls):
    backend = StubBackend(text="[1, 2, 3]")
    with pytest.raises(SchemaViolationError):
        await BriefGenerator(store, backend).generate(urls)


async def test_backend_errors_propagate_typed(store, urls):
    backend = StubBackend(error=RateLimitedError("slow down", upstream_status=429))
    with pytest.raises(RateLimitedError):
        await BriefGenerator(store, backend).generate(urls)


async def test_untyped_backend_error_becomes_transport_failure(store, urls):
    backend = StubBackend(error=RuntimeError("socket closed"))
    with pytest.raises(TransportError):
        await BriefGenerator(store, backend).generate(urls)


async def test_store_failure_is_typed(urls):
    with pytest.raises(StorageError):
        await BriefGenerator(BrokenStore(), MockBackend()).generate(urls)


async def test_get_and_mark_saved(store, urls):
    generator = BriefGenerator(store, MockBackend())
    brief = await generator.generate(urls)
    assert await generator.get(brief.id) == brief

    saved = await generator.mark_saved(brief.id)
    again = await generator.mark_saved(brief.id)
    assert saved.saved_at == again.saved_at
    assert await generator.list_saved() == [saved]


async def test_unknown_id_is_not_found(store):
    generator = BriefGenerator(store, MockBackend())
    with pytest.raises(NotFoundError):
        await generator.get("missing")
    with pytest.raises(NotFoundError):
        await generator.mark_saved("missing")
    assert await store.count() == 0


def test_parse_strips_code_fence():
    assert parse_model_output('```json\n{"a": 1}\n```') == {"a": 1}
    assert parse_model_output('  {"a": 1}  ') == {"a": 1}


def test_check_urls_accepts_http_and_https():
    assert check_urls(["http://a.example", "https://b.example/x?y=1"]) == [
        "http://a.example",
        "https://b.example/x?y=1",
    ]


def test_select_backend(make_settings):
    assert isinstance(select_backend(make_settings(groq_api_key="gsk-1")), GroqBackend)
    assert isinstance(select_backend(make_settings()), MockBackend)
    assert select_backend(make_settings(mock_fallback=False)) is None
    assert isinstance(select_backend(make_settings(groq_api_key="   ")), MockBackend)


async def test_model_supplied_saved_at_is_dropped(store, urls):
    data = build_mock_brief(urls)
    data["saved_at"] = "2020-01-01T00:00:00Z"
    brief = await BriefGenerator(store, StubBackend(text=json.dumps(data))).generate(urls)
    assert brief.saved_at is None
    assert (await store.get(brief.id)).saved_at is None
    assert await store.list_saved() == []


async def test_reused_brief_id_is_schema_violation(store, urls):
    text = json.dumps(build_mock_brief(urls))
    generator = BriefGenerator(store, StubBackend(text=text))
    await generator.generate(urls)
    with pytest.raises(SchemaViolationError) as info:
        await generator.generate(urls)
    assert [(v.path, v.code) for v in info.value.details] == [("id", "duplicate_id")]
    assert await store.count() == 1
