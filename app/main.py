# Run from project root: uvicorn app.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.api.routes import router
from app.core.scheduler import shutdown_session_scheduler, start_session_scheduler
from app.knowledge.loader import get_knowledge_base

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_knowledge_base()
    start_session_scheduler(app)
    yield
    shutdown_session_scheduler(app)


app = FastAPI(title="AU Smart Assistant", lifespan=lifespan)
app.include_router(router)
