"""FastAPI entry point exposing the image proxy REST API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException

from .aiservices.stabilityimagegenerationclient import MISSING_API_KEY_MESSAGE
from .config import get_settings
from .errors import ImageProxyError
from .responses import ENHANCEMENT_FAILED, GENERATION_FAILED, build_error_response
from .schemas import (
    EnhanceImageRequest,
    EnhanceImageResponse,
    ErrorResponse,
    FetchedImage,
    GenerateImageRequest,
    GenerateImageResponse,
    HealthResponse,
)
from .service import ImageProxyService, get_image_service
from .utils import utc_timestamp

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")
_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}
_ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)
    if not settings.has_api_key:
        if settings.require_api_key_at_startup:
            logger.error(MISSING_API_KEY_MESSAGE)
            raise RuntimeError(MISSING_API_KEY_MESSAGE)
        logger.warning("%s; image requests will fail until it is set", MISSING_API_KEY_MESSAGE)
    logger.info("Upstream endpoint: %s", settings.stability_api_url)
    yield
    if get_image_service.cache_info().currsize:
        get_image_service().close()
        get_image_service.cache_clear()


app = FastAPI(title="Image Proxy", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.middleware("http")
async def allow_any_origin(request: Request, call_next):
    # CORSMiddleware only answers requests that carry an Origin header
    response = await call_next(request)
    response.headers.setdefault("Access-Control-Allow-Origin", "*")
    return response


# ----------------------------------------------------------------------
# Request body helpers
# ----------------------------------------------------------------------
def _is_form_request(request: Request) -> bool:
    content_type = request.headers.get("content-type", "").lower()
    return content_type.startswith(_FORM_CONTENT_TYPES)


async def _read_json_object(request: Request) -> Optional[Dict[str, Any]]:
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


def _invalid_body_response(error: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=message, timestamp=utc_timestamp())
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


def _invalid_json_response() -> JSONResponse:
    return _invalid_body_response("Invalid JSON", "Request body must be valid JSON")


def _invalid_form_response() -> JSONResponse:
    return _invalid_body_response(
        "Invalid form data",
        "Request body must be valid multipart or URL-encoded form data",
    )


def _error_response(exc: Exception, label: str) -> JSONResponse:
    if isinstance(exc, ImageProxyError):
        logger.warning("%s (%s): %s", label, exc.category.value, exc.message)
    else:
        logger.exception(label)
    status_code, body = build_error_response(exc, label)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _read_upload(upload: UploadFile, service: ImageProxyService) -> FetchedImage:
    # read one byte past the limit so oversized uploads are still detected
    content = await upload.read(service.settings.max_image_size_bytes + 1)
    service.check_image_size(len(content))
    return FetchedImage(
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


# ----------------------------------------------------------------------
# Endpoints
# ----------------------------------------------------------------------
@app.get("/health", response_model=HealthResponse, summary="Health Check Endpoint")
@app.get("/api/health", response_model=HealthResponse, include_in_schema=False)
async def healthcheck():
    return HealthResponse(status="OK", message="Image proxy is running", timestamp=utc_timestamp())


@app.post(
    "/api/generate-image",
    response_model=GenerateImageResponse,
    responses=_ERROR_RESPONSES,
    openapi_extra={"requestBody": {"content": {"application/json": {"schema": GenerateImageRequest.model_json_schema()}}}},
    summary="Generate an image from a text prompt",
)
@app.post("/generate-image", response_model=GenerateImageResponse, include_in_schema=False)
async def generate_image(
    request: Request,
    service: ImageProxyService = Depends(get_image_service),
):
    if _is_form_request(request):
        try:
            form = await request.form()
        except (MultiPartException, StarletteHTTPException):
            return _invalid_form_response()
        body = {k: v for k, v in form.items() if isinstance(v, str)}
        await form.close()
    else:
        body = await _read_json_object(request)
        if body is None:
            return _invalid_json_response()

    try:
        return await run_in_threadpool(service.generate_image, body)
    except Exception as exc:
        return _error_response(exc, GENERATION_FAILED)


@app.post(
    "/api/enhance-image",
    response_model=EnhanceImageResponse,
    response_model_exclude_unset=True,
    responses=_ERROR_RESPONSES,
    openapi_extra={"requestBody": {"content": {"application/json": {"schema": EnhanceImageRequest.model_json_schema()}}}},
    summary="Enhance an image referenced by URL or uploaded as multipart",
)
@app.post(
    "/enhance-image",
    response_model=EnhanceImageResponse,
    response_model_exclude_unset=True,
    include_in_schema=False,
)
async def enhance_image(
    request: Request,
    service: ImageProxyService = Depends(get_image_service),
):
    if not _is_form_request(request):
        body = await _read_json_object(request)
        if body is None:
            return _invalid_json_response()
        try:
            return await run_in_threadpool(service.enhance_image, body)
        except Exception as exc:
            return _error_response(exc, ENHANCEMENT_FAILED)

    try:
        form = await request.form()
    except (MultiPartException, StarletteHTTPException):
        return _invalid_form_response()

    try:
        fields = {k: v for k, v in form.items() if isinstance(v, str)}
        upload = form.get("image")
        if isinstance(upload, UploadFile):
            image = await _read_upload(upload, service)
            return await run_in_threadpool(service.enhance_uploaded_image, fields, image)
        return await run_in_threadpool(service.enhance_image, fields)
    except Exception as exc:
        return _error_response(exc, ENHANCEMENT_FAILED)
    finally:
        await form.close()


async def preflight_or_reject(request: Request):
    """Answer CORS preflights and reject every other non-POST method."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=_CORS_HEADERS)
    return JSONResponse(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        content={
            "error": "Method not allowed",
            "message": "This endpoint only accepts POST requests",
        },
        headers={"Allow": "POST, OPTIONS", **_CORS_HEADERS},
    )


for _path in ("/api/generate-image", "/generate-image", "/api/enhance-image", "/enhance-image"):
    app.add_api_route(
        _path,
        preflight_or_reject,
        methods=["GET", "PUT", "PATCH", "DELETE", "OPTIONS"],
        include_in_schema=False,
    )

for _path in ("/api/health", "/health"):
    app.add_api_route(_path, preflight_or_reject, methods=["OPTIONS"], include_in_schema=False)


__all__ = ["app"]


if __name__ == "__main__":  # pragma: no cover - convenience entry point
    import uvicorn

    uvicorn.run("imageproxy.main:app", host="0.0.0.0", port=get_settings().port, reload=True)
