"""Conversation messages: the unit of thread state and checkpoints."""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class ToolCall(BaseModel):
    """One tool invocation requested by the model."""

    id: str = Field(..., description="Correlation id; echoed back by the matching ToolMessage.")
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class HumanMessage(BaseModel):
    type: Literal["human"] = "human"
    content: str


class AIMessage(BaseModel):
    """Model turn. Final answer when tool_calls is empty."""

    type: Literal["ai"] = "ai"
    content: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)


class ToolMessage(BaseModel):
    """Result of one tool call. is_error marks payloads the model should recover from."""

    type: Literal["tool"] = "tool"
    tool_call_id: str
    name: str
    content: str
    is_error: bool = False


Message = Annotated[Union[HumanMessage, AIMessage, ToolMessage], Field(discriminator="type")]

_conversation_adapter = TypeAdapter(list[Message])


def dump_messages(messages: list[Message]) -> str:
    """Serialize a conversation to JSON."""
    return _conversation_adapter.dump_json(messages).decode("utf-8")


def load_messages(raw: str | bytes) -> list[Message]:
    """Parse a conversation serialized by dump_messages. Raises pydantic.ValidationError."""
    return _conversation_adapter.validate_json(raw)


def messages_to_dicts(messages: list[Message]) -> list[dict[str, Any]]:
    return _conversation_adapter.dump_python(messages, mode="json")
