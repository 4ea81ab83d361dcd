"""
Main FastAPI application for the Lumo workspace agents

This module creates and configures the FastAPI application with:
- CORS middleware for frontend integration
- Global agent routes (chat stream, daily digest)
- Project agent routes (chat stream)
- Health check endpoint
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from lumo import __version__
from lumo.api.models import HealthResponse
from lumo.api.routes import agent, projects
from lumo.config.settings import settings
from lumo.infra.database import close_database
from lumo.llm import llm_enabled
from lumo.utils.logger import setup_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events

    Startup configures logging and reports whether the model is configured;
    shutdown releases the database pool if one was opened.
    """
    setup_logger(settings.log_level)
    logger.info("🚀 Lumo API starting...")
    if not llm_enabled():
        logger.warning("⚠️  OPENAI_API_KEY is not set - agents will answer with the unavailable reply")

    yield

    logger.info("🛑 Lumo API shutting down...")
    close_database()


app = FastAPI(
    title="Lumo Agent API",
    description="""
    Streaming chat and daily digest API for the Lumo workspace.

    * **Project agent** answers about one project using its notes, tasks and chat history
    * **Global agent** answers across every project the user owns
    * **Server-Sent Events** stream token chunks, references and a final payload
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(agent.router)
app.include_router(projects.router)


@app.get("/", tags=["root"])
async def root():
    """
    Root endpoint - API information
    """
    return {
        "service": "Lumo Agent API",
        "version": __version__,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "global_chat_stream": "/api/agent/global/chat/stream",
            "global_digest": "/api/agent/global/digest",
            "project_chat_stream": "/api/projects/{slug}/agent/chat/stream",
        },
    }


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """
    Health check endpoint

    Returns:
        HealthResponse with service status
    """
    return HealthResponse(
        status="healthy",
        service="lumo-api",
        version=__version__,
        model_enabled=llm_enabled(),
    )
