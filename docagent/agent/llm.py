"""
Agent LLM: OpenAI chat completions with tool calling.

Converts the conversation (HumanMessage / AIMessage / ToolMessage) to the OpenAI
wire format and the reply back to an AIMessage.
"""

import json
import logging
from typing import Any

import openai

from docagent.core.errors import ModelInvocationError, ServiceUnavailableError
from docagent.schemas.messages import AIMessage, HumanMessage, Message, ToolCall, ToolMessage

logger = logging.getLogger(__name__)


def to_openai_messages(system: str, messages: list[Message]) -> list[dict[str, Any]]:
    """System instruction first, then the history in order."""
    out: list[dict[str, Any]] = [{"role": "system", "content": system}]
    for m in messages:
        if isinstance(m, HumanMessage):
            out.append({"role": "user", "content": m.content})
        elif isinstance(m, AIMessage):
            msg: dict[str, Any] = {"role": "assistant", "content": m.content or ""}
            if m.tool_calls:
                msg["tool_calls"] = [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
                    }
                    for tc in m.tool_calls
                ]
            out.append(msg)
        elif isinstance(m, ToolMessage):
            out.append({"role": "tool", "tool_call_id": m.tool_call_id, "content": m.content})
    return out


def _parse_tool_calls(raw_tool_calls: Any) -> list[ToolCall]:
    tool_calls = []
    for tc in raw_tool_calls or []:
        fn = getattr(tc, "function", None)
        if not fn:
            continue
        fargs = getattr(fn, "arguments", None) or "{}"
        try:
            args = json.loads(fargs) if isinstance(fargs, str) else fargs
        except json.JSONDecodeError:
            args = {}
        if not isinstance(args, dict):
            args = {}
        tool_calls.append(ToolCall(id=getattr(tc, "id", None) or "", name=getattr(fn, "name", None) or "", arguments=args))
    return tool_calls


class ChatModel:
    """OpenAI chat client bound to one model, pinned to low temperature."""

    def __init__(
        self,
        api_key: str,
        model: str,
        temperature: float = 0.0,
        max_tokens: int = 1024,
        client: Any = None,
    ) -> None:
        if client is None:
            if not api_key:
                raise ServiceUnavailableError("OPENAI_API_KEY must be set in .env")
            # No SDK-level retries
            client = openai.OpenAI(api_key=api_key, max_retries=0)
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def invoke(self, system: str, messages: list[Message], tools: list[dict[str, Any]]) -> AIMessage:
        """
        One model turn. Returns an AIMessage; tool_calls is non-empty when the
        model wants tools run before answering.

        Raises ModelInvocationError when the API call fails or returns no message.
        """
        payload = to_openai_messages(system, messages)
        logger.info("[llm:invoke] IN  messages=%d tools=%s", len(payload), [t["function"]["name"] for t in tools])
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": payload,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            kwargs["tools"] = tools
        try:
            response = self._client.chat.completions.create(**kwargs)
        except openai.OpenAIError as e:
            logger.warning("[llm:invoke] OpenAI call failed: %s", e)
            raise ModelInvocationError(f"Language model call failed: {e}") from e
        msg = response.choices[0].message if response.choices else None
        if msg is None:
            raise ModelInvocationError("Language model returned no message")
        content = (getattr(msg, "content", None) or "").strip()
        tool_calls = _parse_tool_calls(getattr(msg, "tool_calls", None))
        if tool_calls:
            logger.info("[llm:invoke] OUT tool_calls=%s", [t.name for t in tool_calls])
        else:
            logger.info("[llm:invoke] OUT content_len=%d", len(content))
        return AIMessage(content=content, tool_calls=tool_calls)

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            close()
