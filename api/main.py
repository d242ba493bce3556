from contextlib import asynccontextmanager

from fastapi import FastAPI

import config
from api.deps import close_aggregator
from api.routers import search

config.setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_aggregator()


app = FastAPI(
    title="Wohnungsfinder API",
    version="1.0.0",
    description="Rental listings aggregated from Immowelt, Kleinanzeigen and WG-Gesucht.",
    lifespan=lifespan,
)

app.include_router(search.router)


@app.get("/api/health")
def health():
    return {"status": "ok"}
