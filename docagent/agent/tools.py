"""
Agent tools: definitions and execution for tool-calling mode.

Each tool is a name, a description, a pydantic argument model and an executor.
The registry is fixed at startup; execute() always returns a ToolMessage so the
model can read failures (unknown tool, bad arguments, search errors) and recover.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, Field, ValidationError

from docagent.core.errors import RetrievalServiceError, UnknownToolError
from docagent.schemas.messages import ToolCall, ToolMessage
from docagent.services.retrieval_service import Retriever, serialize_results

logger = logging.getLogger(__name__)

_TOOL_NAME = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    args_model: type[BaseModel]
    executor: Callable[[BaseModel], Any]

    def spec(self) -> dict[str, Any]:
        """OpenAI function-calling definition."""
        schema = self.args_model.model_json_schema()
        schema.pop("title", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }


class ToolRegistry:
    """Static name -> tool mapping."""

    def __init__(self, tools: list[Tool]) -> None:
        if not tools:
            raise ValueError("at least one tool is required")
        self._tools: dict[str, Tool] = {}
        for t in tools:
            if not _TOOL_NAME.match(t.name):
                raise ValueError(f"invalid tool name: {t.name!r}")
            if t.name in self._tools:
                raise ValueError(f"duplicate tool name: {t.name!r}")
            self._tools[t.name] = t

    def names(self) -> list[str]:
        return list(self._tools)

    def specs(self) -> list[dict[str, Any]]:
        return [t.spec() for t in self._tools.values()]

    def get(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def execute(self, call: ToolCall) -> ToolMessage:
        """Run one tool call and wrap the outcome (or the failure) as a ToolMessage."""
        logger.info("[tools] execute name=%r arguments=%r", call.name, call.arguments)
        try:
            tool = self.get(call.name)
            args = tool.args_model.model_validate(call.arguments or {})
            result = tool.executor(args)
        except UnknownToolError as e:
            logger.warning("[tools] %s", e.message)
            return _error(call, f"{e.message}. Available tools: {', '.join(self.names())}")
        except ValidationError as e:
            logger.warning("[tools] invalid arguments for %s: %s", call.name, e)
            return _error(call, f"Invalid arguments for tool {call.name!r}: {e.errors(include_url=False)}")
        except RetrievalServiceError as e:
            return _error(call, f"Tool {call.name!r} failed: {e.message}")
        except ValueError as e:
            return _error(call, f"Tool {call.name!r} rejected the request: {e}")
        content = result if isinstance(result, str) else json.dumps(result, default=str)
        logger.info("[tools] OUT name=%s result_len=%d", call.name, len(content))
        return ToolMessage(tool_call_id=call.id, name=call.name, content=content)


def _error(call: ToolCall, message: str) -> ToolMessage:
    payload = json.dumps({"error": message, "tool": call.name})
    return ToolMessage(tool_call_id=call.id, name=call.name, content=payload, is_error=True)


class DocumentSearchArgs(BaseModel):
    query: str = Field(..., description="The search query")
    n: int = Field(10, description="Number of results to return")


def build_document_search_tool(retriever: Retriever) -> Tool:
    """The retrieval tool: similarity search over the SharePoint document index."""

    def _run(args: DocumentSearchArgs) -> str:
        logger.info("Document search tool called")
        return serialize_results(retriever.search(args.query, args.n))

    return Tool(
        name="document_search",
        description="Searches through Microsoft SharePoint documents to find relevant information",
        args_model=DocumentSearchArgs,
        executor=_run,
    )
