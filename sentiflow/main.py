from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from prometheus_client import make_asgi_app

from sentiflow.config import settings
from sentiflow.db.session import get_database
from sentiflow.exceptions import ConfigurationError, ValidationError

# Import API router
from sentiflow.api.v1 import api_v1_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, version=settings.VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

# Include the API router
app.include_router(api_v1_router, prefix=settings.API_V1_STR)

# Prometheus exposition
app.mount("/metrics", make_asgi_app())


ANALYZE_PATH = f"{settings.API_V1_STR}/analyze"


def _analyze_error_message(path: str, error: dict) -> str:
    loc = [part for part in error.get("loc", ()) if part != "body"]
    if path.endswith("/batch"):
        if len(loc) <= 1:
            return "Missing or invalid feedback array"
        return f"Invalid feedback item: {error['msg']}"
    if loc and loc[0] == "content":
        if error.get("type") == "missing":
            return "Missing required field: content"
        return f"Invalid field: content ({error['msg']})"
    return f"Invalid request body: {error['msg']}"


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # Analyze routes answer malformed bodies with 400 and an error message, like ValidationError
    if not request.url.path.startswith(ANALYZE_PATH):
        return await request_validation_exception_handler(request, exc)
    errors = exc.errors()
    message = _analyze_error_message(request.url.path, errors[0]) if errors else "Invalid request body"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=500, content={"error": "Service is not configured", "details": str(exc)})


@app.on_event("startup")
async def startup_event():
    database = get_database()
    if database is None:
        logger.warning("Application startup - no database configured, results will not be stored.")
        return
    logger.info("Application startup - Initializing database...")
    await database.ensure_ready()


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")
    database = get_database()
    if database is not None:
        await database.dispose()


@app.get("/")
async def read_root():
    logger.info("Root endpoint accessed")
    return {"message": "Sentiflow Feedback Analysis API", "status": "ok"}
