import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from follow_manager.routes import register_routes

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app):
    import follow_manager.database
    await follow_manager.database.init_db()
    yield


api = FastAPI(title="follow-manager", lifespan=lifespan)
register_routes(api)


@api.get("/health")
async def health():
    return {"status": "ok"}
