# Run from project root: uvicorn docagent.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from docagent.api.routes import router
from docagent.core.config import LOG_LEVEL
from docagent.services.agent_service import AgentRuntime

logging.basicConfig(level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    runtime = AgentRuntime.from_config()
    runtime.open()
    app.state.runtime = runtime
    try:
        yield
    finally:
        runtime.close()


app = FastAPI(title="Document Q&A Agent", lifespan=lifespan)
app.include_router(router)
