"""
Unit tests for the OpenAI chat client: wire-format conversion and reply parsing.
"""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from docagent.agent.llm import ChatModel, to_openai_messages
from docagent.core.errors import ModelInvocationError, ServiceUnavailableError
from docagent.schemas.messages import AIMessage, HumanMessage, ToolCall, ToolMessage


def _client_returning(message) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[SimpleNamespace(message=message)])
    return client


def test_to_openai_messages() -> None:
    history = [
        HumanMessage(content="refunds?"),
        AIMessage(tool_calls=[ToolCall(id="c1", name="document_search", arguments={"query": "refunds"})]),
        ToolMessage(tool_call_id="c1", name="document_search", content="[]"),
    ]
    out = to_openai_messages("sys", history)
    assert out[0] == {"role": "system", "content": "sys"}
    assert out[1] == {"role": "user", "content": "refunds?"}
    assert out[2]["role"] == "assistant"
    assert out[2]["tool_calls"][0]["function"] == {"name": "document_search", "arguments": json.dumps({"query": "refunds"})}
    assert out[3] == {"role": "tool", "tool_call_id": "c1", "content": "[]"}


def test_invoke_parses_tool_calls() -> None:
    raw_call = SimpleNamespace(id="c9", function=SimpleNamespace(name="document_search", arguments='{"query": "leave", "n": 3}'))
    client = _client_returning(SimpleNamespace(content=None, tool_calls=[raw_call]))
    model = ChatModel(api_key="", model="gpt-test", client=client)

    reply = model.invoke("sys", [HumanMessage(content="leave?")], [{"type": "function", "function": {"name": "document_search"}}])

    assert reply == AIMessage(content="", tool_calls=[ToolCall(id="c9", name="document_search", arguments={"query": "leave", "n": 3})])
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["temperature"] == 0.0
    assert kwargs["model"] == "gpt-test"


def test_invoke_final_answer_and_bad_arguments() -> None:
    client = _client_returning(SimpleNamespace(content="  FINAL ANSWER: 30 days ", tool_calls=None))
    reply = ChatModel(api_key="", model="m", client=client).invoke("sys", [], [])
    assert reply == AIMessage(content="FINAL ANSWER: 30 days")
    assert "tools" not in client.chat.completions.create.call_args.kwargs

    bad = SimpleNamespace(id="c1", function=SimpleNamespace(name="document_search", arguments="{not json"))
    client = _client_returning(SimpleNamespace(content="", tool_calls=[bad]))
    reply = ChatModel(api_key="", model="m", client=client).invoke("sys", [], [])
    assert reply.tool_calls[0].arguments == {}


def test_api_error_becomes_model_invocation_error() -> None:
    client = MagicMock()
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)
    with pytest.raises(ModelInvocationError):
        ChatModel(api_key="", model="m", client=client).invoke("sys", [], [])


def test_empty_choices_is_an_error() -> None:
    client = MagicMock()
    client.chat.completions.create.return_value = SimpleNamespace(choices=[])
    with pytest.raises(ModelInvocationError):
        ChatModel(api_key="", model="m", client=client).invoke("sys", [], [])


def test_missing_key() -> None:
    with pytest.raises(ServiceUnavailableError):
        ChatModel(api_key="", model="m")


def test_sdk_client_does_not_retry() -> None:
    model = ChatModel(api_key="sk-test", model="m")
    assert model._client.max_retries == 0
