import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dndtracker.logging_setup import setup_logging
from dndtracker.db.init_db import init_db
from dndtracker.api.routers.templates import router as templates_router
from dndtracker.api.routers.conditions import router as conditions_router
from dndtracker.api.routers.encounters import router as encounters_router
from dndtracker.api.routers.encounter_runtime import router as encounter_runtime_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()
    logger.info("dndtracker api started")
    yield


app = FastAPI(title="D&D Combat Tracker", lifespan=lifespan)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(templates_router)
app.include_router(conditions_router)
app.include_router(encounters_router)
app.include_router(encounter_runtime_router)
