from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from pydantic import ValidationError
import logging
import uuid

from steering.core import engine as engine_module
from steering.core.manifest import (
    DASH_PATHWAY_QUERY_PARAM,
    DASH_THROUGHPUT_QUERY_PARAM,
    SESSION_ID_QUERY_PARAM,
)
from steering.schemas.steering import ContentSteeringConfig
from steering.utils.http_utils import get_origin_client
from steering.utils.responses import error_response

router = APIRouter()
logger = logging.getLogger(__name__)

CONTENT_STEERING_CONFIG_ENDPOINT = "content_steering_config"
DASH_MPD_FILE_EXTENSION = ".mpd"
DASH_CONTENT_STEERING_MANIFEST_FILE_EXTENSION = ".dcsm"

MPD_CONTENT_TYPE = "application/dash+xml"
DCSM_CONTENT_TYPE = "application/json"

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def _last_path_segment(path: str) -> str:
    """Last segment of the URL path, ignoring one trailing slash."""
    trimmed = path[:-1] if path.endswith("/") else path
    return trimmed.rsplit("/", 1)[-1]


def _is_supported(segment: str) -> bool:
    return (segment == CONTENT_STEERING_CONFIG_ENDPOINT
            or DASH_CONTENT_STEERING_MANIFEST_FILE_EXTENSION in segment
            or DASH_MPD_FILE_EXTENSION in segment)


def _method_not_allowed(request: Request) -> JSONResponse:
    message = f"Method = {request.method} is not allowed to {request.url.path}"
    logger.warning(f"⚠️ {message}")
    return error_response(405, message, request)


def _options_response() -> Response:
    return Response(status_code=200, headers={"Access-Control-Allow-Methods": "GET"})


async def _handle_config(request: Request):
    if request.method == "GET":
        current = engine_module.engine.current_configuration()
        return JSONResponse(status_code=200, content=current.model_dump())

    if request.method != "POST":
        return _method_not_allowed(request)

    body = await request.body()
    try:
        config = ContentSteeringConfig.model_validate_json(body)
    except ValidationError as e:
        logger.error(f"❌ Failed to decode content steering configuration: {e}")
        return error_response(
            400,
            "Failed to decode the received content steering configuration. Is it valid JSON?",
            request,
            error_type="DecodeError",
        )

    accepted = engine_module.engine.update_configuration(config)
    return JSONResponse(status_code=202, content=accepted.model_dump())


def _handle_dcsm(request: Request):
    if request.method == "OPTIONS":
        return _options_response()
    if request.method != "GET":
        return _method_not_allowed(request)

    query = request.query_params
    pathway = None
    throughput = None
    # The very first DCSM request of a session carries no query params
    if len(query) == 0:
        session_id = str(uuid.uuid4())
        logger.info(f"🆕 Start of a new session. Generating a new session ID: {session_id}")
    else:
        session_id = query.get(SESSION_ID_QUERY_PARAM, "")
        pathway = query.get(DASH_PATHWAY_QUERY_PARAM)
        throughput = query.get(DASH_THROUGHPUT_QUERY_PARAM)

    body = engine_module.engine.generate_manifest(session_id, pathway, throughput)
    return Response(content=body, media_type=DCSM_CONTENT_TYPE)


async def _handle_mpd(segment: str, request: Request):
    if request.method == "OPTIONS":
        return _options_response()
    if request.method != "GET":
        return _method_not_allowed(request)

    origin = get_origin_client()
    remote_mpd_url = origin.resolve(segment)
    logger.info(f"⬇️ Fetching origin MPD: {remote_mpd_url}")
    mpd_bytes = await run_in_threadpool(origin.download, remote_mpd_url)

    body = engine_module.engine.augment_document(mpd_bytes)
    return Response(content=body, media_type=MPD_CONTENT_TYPE)


@router.api_route("/{path:path}", methods=ALL_METHODS)
async def steering_endpoint(path: str, request: Request):
    """Dispatch on the last path segment: config endpoint, *.dcsm or *.mpd."""
    segment = _last_path_segment(request.url.path)
    logger.info(f"🔍 STEERING REQUEST: {request.method} {request.url.path} -> {segment!r}")

    if not _is_supported(segment):
        message = f"Endpoint = {segment} is not supported."
        logger.warning(f"⚠️ {message}")
        return error_response(403, message, request)

    if segment == CONTENT_STEERING_CONFIG_ENDPOINT:
        return await _handle_config(request)

    extension = segment[segment.rfind("."):]
    if DASH_MPD_FILE_EXTENSION in extension:
        return await _handle_mpd(segment, request)
    if DASH_CONTENT_STEERING_MANIFEST_FILE_EXTENSION in extension:
        return _handle_dcsm(request)

    return error_response(400, f"Unsupported file type: {segment}", request)
