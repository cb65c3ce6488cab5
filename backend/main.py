from __future__ import annotations

import logging
import time
import uuid
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# Load .env from backend directory so S3_* and OPENAI_API_KEY are available
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config import Settings
from errors import (
    DocumentTooLargeError,
    ExtractionError,
    ParseError,
    StorageError,
    ValidationError,
)
from memorandum_extract import ExtractionClient, parse_extraction_output
from models import (
    DownloadUrlResponse,
    FileRequest,
    OcrResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from s3_client import DEFAULT_CONTENT_TYPE, S3Service
from services import normalize_property_record

# Same logger as uvicorn so deploy logs show all lines
_LOG = logging.getLogger("uvicorn.error")

router = APIRouter()


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        _LOG.info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def _validation_error(message: str) -> JSONResponse:
    return _error(422, "Validation Error", message=message)


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "no-rid"


def _required_file_name(body: Optional[FileRequest]) -> str:
    file_name = body.file_name if body is not None else None
    if file_name is None or not file_name.strip():
        raise ValidationError("fileName is required")
    return file_name


@router.get("/health")
def health(request: Request):
    settings: Settings = request.app.state.settings
    return {"status": "ok", "ai_enabled": settings.ai_enabled}


@router.post("/generate-upload-url", response_model=UploadUrlResponse)
def generate_upload_url(request: Request, body: Optional[UploadUrlRequest] = None):
    """Issue a presigned PUT URL; the browser uploads the PDF straight to S3."""
    storage: S3Service = request.app.state.storage
    content_type = (body.file_type if body is not None else None) or DEFAULT_CONTENT_TYPE
    try:
        result = storage.generate_upload_url(content_type)
    except StorageError as e:
        _LOG.error("UPLOAD_URL_FAIL rid=%s err=%s", _rid(request), e, exc_info=e)
        return _error(500, "Failed to generate upload URL")
    return result


@router.post("/generate-download-url", response_model=DownloadUrlResponse)
def generate_download_url(request: Request, body: Optional[FileRequest] = None):
    try:
        file_name = _required_file_name(body)
    except ValidationError as e:
        return _validation_error(str(e))
    storage: S3Service = request.app.state.storage
    try:
        url = storage.generate_download_url(file_name)
    except StorageError as e:
        _LOG.error("DOWNLOAD_URL_FAIL rid=%s file=%s err=%s", _rid(request), file_name, e, exc_info=e)
        return _error(500, "Failed to generate download URL")
    return {"downloadUrl": url, "fileName": file_name, "expiresIn": storage.expires_in}


@router.post("/v1/ocr", response_model=OcrResponse)
def ocr(request: Request, body: Optional[FileRequest] = None):
    """
    Fetch an uploaded offering memorandum from S3, run model extraction, and return
    a PropertyRecord with every missing field replaced by its default.
    Body: {"fileName": "<key returned by /generate-upload-url>"}.
    """
    try:
        file_name = _required_file_name(body)
    except ValidationError as e:
        return _validation_error(str(e))

    rid = _rid(request)
    settings: Settings = request.app.state.settings
    storage: S3Service = request.app.state.storage
    extractor: ExtractionClient = request.app.state.extractor

    try:
        stream = storage.get_file(file_name)
        document = storage.stream_to_buffer(stream, max_bytes=settings.max_document_bytes)
    except DocumentTooLargeError as e:
        _LOG.warning("OCR_TOO_LARGE rid=%s file=%s limit=%s", rid, file_name, e.limit_bytes)
        return _error(413, "Document too large", message=str(e))
    except StorageError as e:
        _LOG.error("OCR_FETCH_FAIL rid=%s file=%s err=%s", rid, file_name, e, exc_info=e)
        return _error(500, "Failed to process OCR request")

    _LOG.info("OCR_START rid=%s file=%s size_bytes=%d", rid, file_name, len(document))
    try:
        raw = extractor.extract(document, file_name=file_name)
    except ExtractionError as e:
        _LOG.error("OCR_EXTRACT_FAIL rid=%s file=%s err=%s", rid, file_name, e, exc_info=e)
        return _error(500, "Failed to process OCR request")

    try:
        parsed = parse_extraction_output(raw)
    except ParseError as e:
        _LOG.error("OCR_PARSE_FAIL rid=%s file=%s err=%s raw=%r", rid, file_name, e, raw[:400])
        return _error(500, "Failed to parse extracted data", details=str(e))

    record, defaulted = normalize_property_record(parsed, source_file_name=file_name)
    if defaulted:
        _LOG.info("OCR_DEFAULTS rid=%s file=%s fields=%s", rid, file_name, ",".join(defaulted))
    return OcrResponse(data=record)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request"
    _LOG.info("VALIDATION_ERR rid=%s path=%s err=%s", _rid(request), request.url.path, message)
    return _validation_error(message)


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    _LOG.error("UNHANDLED rid=%s path=%s", _rid(request), request.url.path, exc_info=exc)
    return _error(500, "Something went wrong!")


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[S3Service] = None,
    extractor: Optional[ExtractionClient] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="Deal Overview Backend", version="0.1.0")
    app.state.settings = settings
    app.state.storage = storage if storage is not None else S3Service(settings)
    app.state.extractor = extractor if extractor is not None else ExtractionClient(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLogMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
    app.include_router(router)

    @app.on_event("startup")
    def startup_log() -> None:
        _LOG.info(
            "Backend starting on http://%s:%s (OPENAI_API_KEY configured: %s, S3_BUCKET configured: %s)",
            settings.host,
            settings.port,
            settings.ai_enabled,
            bool(settings.s3_bucket),
        )
        if not settings.ai_enabled:
            _LOG.warning("OPENAI_API_KEY is not set. OCR extraction will fail until it is configured.")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=app.state.settings.host,
        port=app.state.settings.port,
    )
