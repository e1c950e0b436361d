import time
import traceback
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.deps import SESSION_HEADER
from app.api.routes import study
from app.core.config import settings
from app.core.exceptions import StudyAssistantError
from app.core.logging_config import setup_logging, get_logger, RequestLogger
from app.core.middleware import SecurityHeadersMiddleware
from app.services import ai_service

# Initialize logging first (auto-determines level based on environment)
setup_logging(
    app_name="study_assistant",
    log_level=settings.log_level,  # Empty = auto (DEBUG in dev, WARNING in prod)
    environment=settings.environment,
    enable_console=True,
    enable_file=settings.log_to_file,
)

logger = get_logger(__name__)
request_logger = RequestLogger(get_logger("study_assistant.requests"))

logger.info("Starting AI Study Assistant...")

app = FastAPI(
    title=settings.app_name,
    description="Summaries, grounded chat and quizzes from your study notes",
    version="0.1.0",
)


@app.exception_handler(StudyAssistantError)
async def study_assistant_error_handler(request: Request, exc: StudyAssistantError):
    """Translate pipeline failures into their HTTP status and message."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    session_id = getattr(request.state, "session_id", None)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.kind, "detail": exc.message},
        headers={SESSION_HEADER: session_id} if session_id else None,
    )


# Global exception handler: logs full tracebacks for 500 errors
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions, log full traceback, return 500."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing."""
    start_time = time.time()
    client_ip = request.client.host if request.client else "unknown"

    response = await call_next(request)

    duration_ms = (time.time() - start_time) * 1000
    request_logger.log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
        client_ip=client_ip,
        session_id=response.headers.get(SESSION_HEADER),
    )

    return response


# CORS middleware
if settings.allowed_origins:
    cors_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
else:
    cors_origins = [
        "http://localhost:5173",
        "http://localhost:8000",
        settings.frontend_url,
    ]
    if settings.environment == "production":
        cors_origins = [settings.frontend_url]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", SESSION_HEADER],
    expose_headers=[SESSION_HEADER],
)

app.add_middleware(SecurityHeadersMiddleware)

app.include_router(study.router, prefix="/api")
logger.info("API routes registered at /api")


@app.get("/health")
def health_check():
    logger.debug("Health check requested")
    return {"status": "healthy"}


@app.get("/")
def root():
    return {
        "message": "AI Study Assistant API is running!",
        "app": settings.app_name,
        "docs": "/docs",
        "endpoints": {
            "formats": "GET /api/study/upload/formats",
            "summarize": "POST /api/study/summarize",
            "chat": "POST /api/study/chat",
            "quiz": "POST /api/study/quiz/generate",
            "grade": "POST /api/study/quiz/grade",
        },
    }


@app.on_event("shutdown")
async def shutdown_event():
    await ai_service.close_anthropic_client()
    logger.info("AI Study Assistant shutting down")
