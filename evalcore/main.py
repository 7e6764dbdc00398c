from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from evalcore.api.evaluations import router as evaluations_router
from evalcore.config.settings import settings
from evalcore.core.logger import setup_logger
from evalcore.db.models import Base
from evalcore.db.session import check_database_connection, get_engine

setup_logger(level=settings.log_level, log_file=settings.log_file)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Ensure tables exist before serving requests.

    Note: FastAPI requires async for lifespan context manager,
    even if no await operations are used.
    """
    check_database_connection()
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables verified")
    yield
    logger.info("Shutting down")


app = FastAPI(title="Physical Evaluation Core", lifespan=lifespan)
app.include_router(evaluations_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
