"""ContextFlow API: turns tagged manifest commits into pending status suggestions."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.database import close_db, init_db
from src.middleware.rate_limit import RateLimitMiddleware, rate_limiter
from src.routes import health, microservices, repos, suggestions, usage, webhook
from src.config import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    rate_limiter.start()
    yield
    await rate_limiter.stop()
    await close_db()


app = FastAPI(
    title="ContextFlow",
    description="Tracks microservice status from vibe.json manifests and tagged GitHub commits",
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RateLimitMiddleware)

app.include_router(webhook.router, prefix=settings.api_prefix)
app.include_router(suggestions.router, prefix=settings.api_prefix)
app.include_router(microservices.router, prefix=settings.api_prefix)
app.include_router(health.router, prefix=settings.api_prefix)
app.include_router(usage.router, prefix=settings.api_prefix)
app.include_router(repos.router, prefix=settings.api_prefix)


@app.get("/health")
async def service_health():
    return {"status": "healthy", "service": "contextflow", "version": settings.api_version}
