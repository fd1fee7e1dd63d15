"""FastAPI application entry point for asset certification."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.middleware import LoggingMiddleware, MetricsMiddleware
from src.api.routes import certification_router, health_router, metrics_router
from src.api.startup import on_shutdown, on_startup


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await on_startup()
    yield
    await on_shutdown()


app = FastAPI(
    title="Asset Certification API",
    description="Ledger certification of creator assets",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

app.include_router(health_router)
app.include_router(metrics_router)
app.include_router(certification_router)
