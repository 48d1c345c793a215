from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import os
import traceback
import logging
from datetime import datetime

from steering.core import engine as engine_module
from steering.core.errors import ConfigValidationError, SteeringError
from steering.routers import steering
from steering.utils.initial_config import apply_initial_config
from steering.utils.responses import error_response
from steering.utils.settings import get_settings

import sys
import tempfile

# Logging configuration with fallback when file writing is not permitted
LOG_FILE_PATH = os.getenv('LOG_FILE', os.path.join(tempfile.gettempdir(), 'steering_server.log'))
LOG_TO_FILE = os.getenv('LOG_TO_FILE', 'false').lower() in ('1', 'true', 'yes', 'on')
FILE_LOG_ENABLED = False

handlers = []

# Always log to console
console_handler = logging.StreamHandler(sys.stdout)
formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
console_handler.setFormatter(formatter)
handlers.append(console_handler)

if LOG_TO_FILE:
    try:
        os.makedirs(os.path.dirname(LOG_FILE_PATH), exist_ok=True)
        file_handler = logging.FileHandler(LOG_FILE_PATH, encoding='utf-8')
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)
        FILE_LOG_ENABLED = True
    except OSError:
        # Console-only if the file cannot be opened (e.g., permission denied)
        FILE_LOG_ENABLED = False

logging.basicConfig(
    level=logging.INFO,
    handlers=handlers
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="MPEG-DASH Content Steering Server",
    description="Serves DASH Content Steering Manifests and steering-enabled MPDs",
    version="1.0.0"
)

# DASH players fetch MPDs and DCSMs cross-origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using wildcard origins
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.middleware("http")
async def log_requests_and_responses(request: Request, call_next):
    """Log all requests and responses"""
    start_time = datetime.now()

    logger.info("----------------------------------------")
    logger.info(f"🔍 REQUEST: {request.method} {request.url}")
    logger.info(f"   Query Params: {dict(request.query_params)}")

    response = await call_next(request)

    # Every steering response is readable cross-origin, with or without an Origin header
    response.headers.setdefault("Access-Control-Allow-Origin", "*")

    process_time = (datetime.now() - start_time).total_seconds()
    logger.info(f"✅ RESPONSE: {response.status_code} in {process_time:.3f}s")
    return response


@app.exception_handler(SteeringError)
async def steering_exception_handler(request: Request, exc: SteeringError):
    """Map steering failures to HTTP responses"""
    logger.error(f"❌ {type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")

    extra = {}
    if isinstance(exc, ConfigValidationError):
        extra["reason"] = exc.reason.name
    elif request.url.path.endswith(".mpd"):
        extra["note"] = "Have you created content steering config first? e.g. POST /content_steering_config"

    return error_response(exc.status_code, exc.message, request,
                          error_type=type(exc).__name__, extra=extra)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler that logs everything"""
    logger.error("🚨 GLOBAL EXCEPTION HANDLER TRIGGERED")
    logger.error(f"   Request: {request.method} {request.url}")
    logger.error(f"   Exception Type: {type(exc).__name__}")
    logger.error(f"   Exception Message: {str(exc)}")
    logger.error("   Full Traceback:")
    logger.error(traceback.format_exc())

    note = "Check logs for full details"
    if FILE_LOG_ENABLED:
        note = f"Check {LOG_FILE_PATH} for full details"

    return JSONResponse(
        status_code=500,
        content={
            "error": "Unhandled Exception",
            "message": str(exc),
            "type": type(exc).__name__,
            "timestamp": datetime.now().isoformat(),
            "path": str(request.url),
            "note": note
        },
        headers={"Access-Control-Allow-Origin": "*"}
    )


@app.on_event("startup")
async def startup_diagnostics():
    settings = get_settings()
    logger.info(f"🔧 Steering server listening on: {settings.server_addr}")
    logger.info(f"🔧 remoteBaseUrl: {settings.remote_base_url}")
    apply_initial_config(engine_module.engine)


@app.get("/")
async def root():
    return {"message": "MPEG-DASH Content Steering Server"}


@app.get("/debug/status")
async def get_debug_status():
    """Endpoint to check server status and live steering configuration"""
    settings = get_settings()
    snapshot = engine_module.engine.snapshot()
    return {
        "status": "running",
        "timestamp": datetime.now().isoformat(),
        "environment": {
            "HOST": settings.host,
            "PORT": settings.port,
            "REMOTE_BASE_URL": settings.remote_base_url,
            "LOG_LEVEL": settings.log_level,
        },
        "steering": {
            "configured": snapshot.configured,
            "revision": snapshot.revision,
            "TTL": snapshot.parameters.ttl_seconds,
            "RELOAD_URI": snapshot.parameters.reload_uri,
            "serviceLocations": snapshot.table.ids(),
        },
        "logging": {
            "file_enabled": FILE_LOG_ENABLED,
            "log_file_path": LOG_FILE_PATH,
        },
    }


# Catch-all steering router goes last so the routes above win
app.include_router(steering.router, prefix="", tags=["steering"])
