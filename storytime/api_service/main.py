"""
Main API Service Application

FastAPI application serving onboarding, voice cloning, stories
and LiveKit connection details for Story Time.
"""
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv

from storytime.shared.config import ENV_FILE_PATH

# Load environment variables from .env file
load_dotenv(ENV_FILE_PATH)

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storytime.shared.logging import ServiceLogger
from storytime.shared.config import base_config

from .core.database import db_manager
from .schemas import HealthResponse, MessageResponse
from .routers import onboarding, voice, story, livekit

logger = ServiceLogger("api-service")

SERVICE_NAME = "api-service"

# Service startup time
service_start_time = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage service lifecycle"""
    logger.service_start(base_config.api_port)

    db_health = db_manager.health_check()
    if db_health["status"] != "healthy":
        logger.warning("Database connection failed - database features will not work")
    else:
        logger.success("Database connected successfully")

    logger.service_ready(base_config.api_port)

    yield

    logger.service_stop()


app = FastAPI(
    title="Story Time API Service",
    description="Onboarding, voice cloning and stories for Story Time",
    version=base_config.service_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Return error details as the response body"""
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are client errors, reported in the API error shape"""
    errors = exc.errors()
    logger.warning(f"Invalid request to {request.url.path}: {len(errors)} validation error(s)")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "detail": jsonable_encoder(errors)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception in {request.method} {request.url}", exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred"
        }
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing"""
    start_time = time.time()

    # Generate request ID for tracing
    request_id = f"{int(start_time)}_{hash(str(request.url)) % 1000:03d}"

    logger.request_start(f"{request.method} {request.url.path}", request_id)

    response = await call_next(request)

    duration_ms = int((time.time() - start_time) * 1000)
    logger.request_end(f"{request.method} {request.url.path}", duration_ms, response.status_code, request_id)

    return response


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Service health check endpoint"""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(timezone.utc).isoformat(),
        service=SERVICE_NAME,
        version=base_config.service_version,
        uptime_seconds=int(time.time() - service_start_time),
        database=db_manager.health_check()
    )


@app.get("/api/hello", response_model=MessageResponse)
async def hello():
    """Greeting endpoint"""
    return MessageResponse(message="Hello from Story Time API! 📖")


app.include_router(onboarding.router, prefix="/api")
app.include_router(voice.router, prefix="/api")
app.include_router(story.router, prefix="/api")
app.include_router(livekit.router, prefix="/api")


def main():
    """Run the API with uvicorn"""
    import uvicorn

    uvicorn.run(
        "storytime.api_service.main:app",
        host=base_config.api_host,
        port=base_config.api_port,
        reload=False,
        log_level="info"
    )


if __name__ == "__main__":
    main()
