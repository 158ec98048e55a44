"""
Agent control loop: Deciding <-> ToolExecuting until the model answers.

One run() is one conversational turn on a thread:
load checkpoint -> append question -> ask model -> run requested tools -> ask model ...
-> save checkpoint -> return the final answer.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from docagent.agent.tools import ToolRegistry
from docagent.core.checkpoint_store import CheckpointStore
from docagent.core.errors import IterationLimitExceeded
from docagent.schemas.messages import AIMessage, HumanMessage, Message, ToolMessage

logger = logging.getLogger(__name__)

SYSTEM_MESSAGE = "You are a knowledgeable assistant with access to documents stored in Microsoft SharePoint"

SYSTEM_TEMPLATE = """You are a knowledgeable AI assistant with access to Microsoft SharePoint documents. Your role is to:

1. Search through documents using the document_search tool to find relevant information
2. Analyze and synthesize information from multiple documents when necessary
3. Provide accurate, well-structured answers based on the document content
4. Cite specific documents or sections when providing information
5. Admit when you cannot find relevant information in the documents
6. Always prefix your final answer with "FINAL ANSWER" when you have found the complete information

When searching:
- Use specific, targeted search queries
- Consider trying multiple searches with different terms if initial results aren't sufficient
- Look for the most recent and relevant documents

You have access to the following tools: {tool_names}

{system_message}
Current time: {time}"""

LIMIT_NOTICE = "Not executed: iteration limit reached before a final answer."


class Phase(str, Enum):
    DECIDING = "deciding"
    TOOL_EXECUTING = "tool_executing"


def build_system_prompt(tool_names: list[str], now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return SYSTEM_TEMPLATE.format(
        tool_names=", ".join(tool_names),
        system_message=SYSTEM_MESSAGE,
        time=now.isoformat(),
    )


class AgentLoop:
    """
    Bounded tool-calling loop over a checkpointed thread.

    max_iterations caps the number of ToolExecuting phases per run. When
    parallel_tool_calls is set, the calls of one model turn run concurrently;
    their results are still appended in the order the model requested them.
    """

    def __init__(
        self,
        chat_model: Any,
        tools: ToolRegistry,
        checkpoints: CheckpointStore,
        max_iterations: int = 15,
        parallel_tool_calls: bool = False,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be >= 1")
        self.chat_model = chat_model
        self.tools = tools
        self.checkpoints = checkpoints
        self.max_iterations = max_iterations
        self.parallel_tool_calls = parallel_tool_calls

    def run(self, thread_id: str, query: str) -> str:
        """
        Answer query on thread_id and persist the updated thread.

        Raises ModelInvocationError (state of this turn is not saved),
        IterationLimitExceeded (state is saved first) and CheckpointStoreError.
        """
        # thread_id is opaque: only blank ids are rejected, the key is stored as given
        if not thread_id or not str(thread_id).strip():
            raise ValueError("thread_id is required")
        if not query or not str(query).strip():
            raise ValueError("query is required")
        q = str(query).strip()

        messages: list[Message] = self.checkpoints.load(thread_id)
        start_len = len(messages)
        logger.info("[agent:run] START thread_id=%s history_len=%d query=%r", thread_id[:16], start_len, q)
        messages.append(HumanMessage(content=q))

        system = build_system_prompt(self.tools.names())
        tool_specs = self.tools.specs()
        phase = Phase.DECIDING
        iterations = 0
        response: AIMessage | None = None

        while True:
            if phase is Phase.DECIDING:
                response = self.chat_model.invoke(system, messages, tool_specs)
                messages.append(response)
                if not response.tool_calls:
                    break
                phase = Phase.TOOL_EXECUTING
                continue

            if iterations >= self.max_iterations:
                # Answer the pending calls so the saved thread stays well formed
                messages.extend(
                    ToolMessage(tool_call_id=tc.id, name=tc.name, content=LIMIT_NOTICE, is_error=True)
                    for tc in response.tool_calls
                )
                self.checkpoints.save(thread_id, messages)
                logger.warning("[agent:run] iteration limit %d hit thread_id=%s", self.max_iterations, thread_id[:16])
                raise IterationLimitExceeded(thread_id, self.max_iterations)

            messages.extend(self._execute_tools(response))
            iterations += 1
            logger.info("[agent:run] iteration=%d tools=%s", iterations, [tc.name for tc in response.tool_calls])
            phase = Phase.DECIDING

        self.checkpoints.save(thread_id, messages)
        logger.info(
            "[agent:run] END thread_id=%s iterations=%d appended=%d answer_len=%d",
            thread_id[:16], iterations, len(messages) - start_len, len(response.content),
        )
        return response.content

    def _execute_tools(self, response: AIMessage) -> list[ToolMessage]:
        calls = response.tool_calls
        if self.parallel_tool_calls and len(calls) > 1:
            with ThreadPoolExecutor(max_workers=len(calls)) as pool:
                return list(pool.map(self.tools.execute, calls))
        return [self.tools.execute(tc) for tc in calls]

    def history(self, thread_id: str) -> list[Message]:
        return self.checkpoints.load(thread_id)
