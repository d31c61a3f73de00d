"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from omnivoice.api import auth, health, search, session
from omnivoice.core.config import settings
from omnivoice.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    yield


app = FastAPI(
    title="Omni-Voice",
    description="Unified voice sessions across Vogent, Vapi and Ultravox",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, tags=["auth"])
app.include_router(session.router, tags=["session"])
app.include_router(search.router, tags=["search"])


@app.get("/")
async def root():
    """Service banner."""
    return {
        "message": "Omni-Voice API",
        "version": "0.1.0",
        "providers": ["vogent", "vapi", "ultravox"],
    }


def run() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    uvicorn.run("omnivoice.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
