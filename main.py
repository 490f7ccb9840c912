import time
import traceback

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from gymcoach.core.config import settings
from gymcoach.core.logging_config import setup_logging, get_logger, RequestLogger
from gymcoach.core.middleware import SecurityHeadersMiddleware
from gymcoach.core.rate_limit import limiter
from gymcoach.db.database import Base, engine, SessionLocal
from gymcoach.api.routes import auth, clients, broadcasts, messages

# Initialize logging first (auto-determines level based on environment)
setup_logging(
    app_name="gymcoach",
    log_level=settings.log_level,  # Empty = auto (DEBUG in dev, WARNING in prod)
    environment=settings.environment,
    enable_console=True,
    enable_file=settings.log_to_file,
)

logger = get_logger(__name__)
request_logger = RequestLogger(get_logger("gymcoach.requests"))

logger.info("Starting GymCoach API...")

# Create database tables
import gymcoach.models  # noqa: F401,E402  registers every table on Base.metadata
Base.metadata.create_all(bind=engine)
logger.info("Database tables created/verified")


app = FastAPI(
    title=settings.app_name,
    description="Coach/client training platform API",
    version="0.1.0",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# Global exception handler: logs full tracebacks for 500 errors
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions, log full traceback, return 500."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


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
        user_id=getattr(request.state, "user_id", None),
    )
    return response


# CORS middleware: restrict origins (never use wildcard with credentials)
if settings.allowed_origins:
    cors_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
elif settings.environment == "production":
    cors_origins = [settings.frontend_url]
else:
    cors_origins = ["http://localhost:5173", "http://localhost:8000", settings.frontend_url]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

app.add_middleware(SecurityHeadersMiddleware)

app.include_router(auth.router, prefix="/api")
app.include_router(clients.router, prefix="/api")
app.include_router(broadcasts.router, prefix="/api")
app.include_router(messages.router, prefix="/api")

logger.info("API routes registered at /api")


@app.get("/health")
def health_check():
    logger.debug("Health check requested")
    scheduler = getattr(app.state, "broadcast_scheduler", None)
    return {
        "status": "healthy",
        "scheduler": "running" if scheduler and scheduler.running else "disabled",
    }


@app.on_event("startup")
async def startup_event():
    if settings.scheduler_enabled:
        from gymcoach.services.scheduler import BroadcastScheduler

        broadcast_scheduler = BroadcastScheduler(
            SessionLocal,
            interval_seconds=settings.scheduler_interval_seconds,
        )
        broadcast_scheduler.start()
        app.state.broadcast_scheduler = broadcast_scheduler
    else:
        logger.info("Broadcast scheduler disabled (set SCHEDULER_ENABLED=true to run it)")
    logger.info("GymCoach API started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    broadcast_scheduler = getattr(app.state, "broadcast_scheduler", None)
    if broadcast_scheduler is not None:
        broadcast_scheduler.stop()
    logger.info("GymCoach API shutting down")
