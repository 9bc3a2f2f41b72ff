# test_adapter.py
# ============================================================
# Completion clients and the stage-aware adapter, no network
# ============================================================

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest
from ollama import ResponseError

from storyloom.errors import CompletionTimeout, ConfigurationError, UpstreamError
from storyloom.llm_interaction.adapter import (
    LLMAdapter,
    OllamaCompletionClient,
    OpenAICompletionClient,
    SamplingParams,
    build_completion_client,
)
from storyloom.settings import Provider, StoryloomSettings


MESSAGES = [{"role": "user", "content": "hi"}]
PARAMS = SamplingParams(model="m", temperature=0.4, options={"top_p": 0.9, "num_ctx": 4096})


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://api.example.test/v1/chat/completions")


# ------------------------------------------------------------
# Fakes
# ------------------------------------------------------------

class FakeOpenAI:
    def __init__(self, content=None, error=None):
        self.kwargs = None
        self._content = content
        self._error = error
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.kwargs = kwargs
        if self._error is not None:
            raise self._error
        message = SimpleNamespace(content=self._content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOllama:
    def __init__(self, response=None, error=None):
        self.kwargs = None
        self._response = response
        self._error = error

    def chat(self, **kwargs):
        self.kwargs = kwargs
        if self._error is not None:
            raise self._error
        return self._response


# ------------------------------------------------------------
# OpenAI client
# ------------------------------------------------------------

def test_openai_client_sends_messages_and_sampling():
    fake = FakeOpenAI(content="Hello")
    client = OpenAICompletionClient("key", client=fake)

    assert client.complete(MESSAGES, PARAMS) == "Hello"
    assert fake.kwargs == {"model": "m", "messages": MESSAGES, "temperature": 0.4, "top_p": 0.9}


def test_openai_client_none_content_is_empty():
    assert OpenAICompletionClient("key", client=FakeOpenAI(content=None)).complete(MESSAGES, PARAMS) == ""


def test_openai_timeout_maps_to_completion_timeout():
    fake = FakeOpenAI(error=openai.APITimeoutError(request=_request()))
    client = OpenAICompletionClient("key", timeout=5, client=fake)
    with pytest.raises(CompletionTimeout) as info:
        client.complete(MESSAGES, PARAMS)
    assert "5s" in info.value.message


def test_openai_other_errors_map_to_upstream():
    fake = FakeOpenAI(error=openai.APIConnectionError(request=_request()))
    with pytest.raises(UpstreamError) as info:
        OpenAICompletionClient("key", client=fake).complete(MESSAGES, PARAMS)
    assert not isinstance(info.value, CompletionTimeout)
    assert info.value.retryable is True


# ------------------------------------------------------------
# Ollama client
# ------------------------------------------------------------

def test_ollama_client_reads_message_content():
    fake = FakeOllama(response={"message": {"role": "assistant", "content": "Hi there"}})
    client = OllamaCompletionClient(client=fake)

    assert client.complete(MESSAGES, PARAMS) == "Hi there"
    assert fake.kwargs["options"] == {"top_p": 0.9, "num_ctx": 4096, "temperature": 0.4}


def test_ollama_timeout_maps_to_completion_timeout():
    fake = FakeOllama(error=httpx.ReadTimeout("timed out"))
    with pytest.raises(CompletionTimeout):
        OllamaCompletionClient(client=fake).complete(MESSAGES, PARAMS)


def test_ollama_response_error_maps_to_upstream():
    fake = FakeOllama(error=ResponseError("model 'm' not found", 404))
    with pytest.raises(UpstreamError) as info:
        OllamaCompletionClient(client=fake).complete(MESSAGES, PARAMS)
    assert "not found" in info.value.message


def test_ollama_response_error_with_raw_text_is_recovered():
    fake = FakeOllama(error=ResponseError("failed to parse raw='Q1?' from model"))
    assert OllamaCompletionClient(client=fake).complete(MESSAGES, PARAMS) == "Q1?"


def test_ollama_connection_refused_maps_to_upstream():
    fake = FakeOllama(error=ConnectionError("refused"))
    with pytest.raises(UpstreamError):
        OllamaCompletionClient(client=fake).complete(MESSAGES, PARAMS)


# ------------------------------------------------------------
# Client construction
# ------------------------------------------------------------

def test_build_openai_requires_credential():
    with pytest.raises(ConfigurationError) as info:
        build_completion_client(StoryloomSettings(provider=Provider.OPENAI, api_key=None))
    assert info.value.message.startswith("Missing credential")


def test_build_openai_with_credential():
    client = build_completion_client(StoryloomSettings(api_key="sk-test", timeout_seconds=12))
    assert isinstance(client, OpenAICompletionClient)
    assert client.timeout == 12


def test_build_ollama_without_credential():
    client = build_completion_client(StoryloomSettings(provider=Provider.OLLAMA))
    assert isinstance(client, OllamaCompletionClient)


# ------------------------------------------------------------
# Adapter
# ------------------------------------------------------------

def test_adapter_merges_stage_options(stub_client):
    adapter = LLMAdapter(
        lambda: stub_client,
        model="m",
        default_options={"temperature": 0.7, "top_p": 0.5},
        stage_options={"essay": {"temperature": 0.85}},
    )
    assert adapter.sampling_for("essay") == SamplingParams(model="m", temperature=0.85, options={"top_p": 0.5})
    assert adapter.sampling_for("questions").temperature == 0.7


def test_adapter_builds_client_lazily_once(stub_client):
    built = []

    def factory():
        built.append(1)
        return stub_client

    adapter = LLMAdapter(factory, model="m")
    assert built == []
    adapter.request_text("questions", MESSAGES)
    adapter.request_text("essay", MESSAGES)
    assert built == [1]


def test_adapter_makes_exactly_one_call(stub_client):
    stub_client.script("")
    adapter = LLMAdapter(lambda: stub_client, model="m")
    assert adapter.request_text("essay", MESSAGES) == ""
    assert len(stub_client.calls) == 1


def test_adapter_wraps_unknown_errors(stub_client):
    stub_client.script(ValueError("bad payload"))
    adapter = LLMAdapter(lambda: stub_client, model="m")
    with pytest.raises(UpstreamError) as info:
        adapter.request_text("essay", MESSAGES)
    assert isinstance(info.value.cause, ValueError)


def test_adapter_surfaces_configuration_error():
    def factory():
        raise ConfigurationError("Missing credential: set OPENAI_API_KEY")

    with pytest.raises(ConfigurationError):
        LLMAdapter(factory, model="m").request_text("questions", MESSAGES)
