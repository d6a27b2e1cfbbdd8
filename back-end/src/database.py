import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

# Register every table on SQLModel.metadata before create_all runs
from models import relational_models  # noqa: F401


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./jobboard.db")

DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() in ("1", "true", "yes")

async_engine = create_async_engine(
    DATABASE_URL,
    echo=DATABASE_ECHO,
    pool_pre_ping=True,
)


async def create_db_and_tables(engine=async_engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create tables on startup and release pooled connections on shutdown.
    """
    await create_db_and_tables()
    logger.info("Database ready")
    yield
    await async_engine.dispose()
