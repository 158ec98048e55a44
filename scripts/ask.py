#!/usr/bin/env python3
"""
Ask the agent one question on a thread and print the final answer.

Run from project root:

    python scripts/ask.py --thread t1 "What is the refund policy?"

Re-running with the same --thread continues the conversation from its checkpoint.
"""

import argparse
import logging
import sys
from pathlib import Path

# Project root on path so "docagent" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from docagent.core.config import LOG_LEVEL
from docagent.services.agent_service import AgentRuntime


def main() -> None:
    parser = argparse.ArgumentParser(description="Ask the document agent a question.")
    parser.add_argument("question", help="Question for the agent.")
    parser.add_argument("--thread", required=True, help="Conversation thread id.")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL)
    runtime = AgentRuntime.from_config()
    runtime.open()
    try:
        print(runtime.run(args.thread, args.question))
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
