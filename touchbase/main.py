from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from touchbase import __version__
from touchbase.api.responses import (
    request_validation_handler,
    touchbase_error_handler,
    unhandled_error_handler,
)
from touchbase.api.routes import calls, voice, webhooks
from touchbase.config import get_settings
from touchbase.errors import TouchbaseError
from touchbase.log import configure_logging
from touchbase.playht.config import validate_playht_config
from touchbase.vapi.config import validate_vapi_config

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    logger.info(
        "Starting Touchbase...",
        vapi_configured=validate_vapi_config(),
        playht_configured=validate_playht_config(),
    )
    yield
    # Shutdown
    logger.info("Shutting down Touchbase...")


app = FastAPI(
    title="Touchbase",
    description="AI voice calls that help you reconnect with old friends",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Errors
app.add_exception_handler(TouchbaseError, touchbase_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Routes
app.include_router(calls.router, prefix="/api")
app.include_router(voice.router, prefix="/api")
app.include_router(webhooks.router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Touchbase API", "version": __version__}


@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "vapi_configured": validate_vapi_config(),
        "playht_configured": validate_playht_config(),
    }


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("touchbase.main:app", host="0.0.0.0", port=settings.port, reload=settings.debug)
