"""FastAPI application for HTML table to xlsx conversion."""

import uuid
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response

from table_to_xlsx.config import Settings, settings, validate_settings_on_startup
from table_to_xlsx.converter import TableToXlsxConverter
from table_to_xlsx.models import ConvertRequest, ErrorDetail, HealthResponse
from table_to_xlsx.table_document import StreamOptions
from table_to_xlsx.utils.exceptions import ErrorCode, InputTooLargeError, TTXError
from table_to_xlsx.utils.logging import (
    LogContext,
    configure_logging,
    get_logger,
    get_request_id,
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
API_VERSION = "0.1.0"

logger = get_logger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    detail: str,
    error_code: ErrorCode | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ErrorDetail(
        detail=detail,
        error_code=error_code.value if error_code else None,
        details=details or None,
        request_id=getattr(request.state, "request_id", get_request_id()),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Also installs the structured root log handler, which library use of the
    package leaves alone.

    Args:
        app_settings: Settings for this app; the global settings by default.
    """
    config = app_settings or settings
    configure_logging(level=config.log_level_int, use_structured_formatter=True)

    app = FastAPI(
        title="Table to XLSX API",
        description=(
            "Converts HTML tables into styled Excel workbooks, preserving "
            "merged cells, inline styles and column sizing."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = config

    # Validate settings on startup
    validate_settings_on_startup(config)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Any:
        """Tag the request with an ID for logs and the X-Request-ID header."""
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        with LogContext(request_id=request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(TTXError)
    async def ttx_exception_handler(request: Request, exc: TTXError) -> JSONResponse:
        """Answer with the error's own status, code and details."""
        logger.error(
            f"Conversion error: {exc.message}",
            error_code=exc.error_code.value,
            http_status=exc.http_status,
        )
        return _error_response(
            request,
            exc.http_status,
            exc.message,
            error_code=exc.error_code,
            details=exc.details,
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request, exc: HTTPException
    ) -> JSONResponse:
        logger.warning(f"HTTP error: {exc.detail}", status_code=exc.status_code)
        return _error_response(request, exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Catch-all handler; internals are only shown in debug mode."""
        error_type = type(exc).__name__
        logger.exception(f"Unexpected error: {error_type}", error_type=error_type)
        detail = (
            f"Internal server error: {error_type}: {exc}"
            if config.debug
            else "Internal server error. Please try again later."
        )
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail,
            error_code=ErrorCode.INTERNAL_ERROR,
        )

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request) -> dict[str, Any]:
        """Check the health status of the service."""
        request_id = getattr(request.state, "request_id", None)
        logger.debug("Health check requested", request_id=request_id)
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "version": API_VERSION,
        }

    @app.post(
        "/convert",
        response_class=Response,
        tags=["Conversion"],
        responses={
            200: {
                "content": {XLSX_MEDIA_TYPE: {}},
                "description": "The converted workbook",
            },
            413: {"model": ErrorDetail, "description": "HTML payload too large"},
            422: {"model": ErrorDetail, "description": "No table in the HTML"},
        },
    )
    async def convert_table(request: Request, body: ConvertRequest) -> Response:
        """Convert the first table of an HTML document to an xlsx workbook.

        The conversion runs in the thread pool so large tables do not block
        the event loop.

        Raises:
            InputTooLargeError: 413 if the HTML exceeds ``max_html_size_mb``.
            NoTableFoundError: 422 if the HTML has no <table>.
        """
        size = len(body.html.encode("utf-8"))
        if size > config.max_html_size_bytes:
            logger.warning(
                "HTML payload too large",
                size=size,
                max_size=config.max_html_size_bytes,
            )
            raise InputTooLargeError(size=size, max_size=config.max_html_size_bytes)

        converter = TableToXlsxConverter(config)
        if body.stream:
            content = await run_in_threadpool(
                converter.convert_stream, body.html, None, StreamOptions()
            )
        else:
            title_config = (
                body.title_config.to_title_config() if body.title_config else None
            )
            content = await run_in_threadpool(
                converter.convert_to_buffer, body.html, title_config
            )

        logger.info("Conversion served", size=size, bytes_out=len(content))
        return Response(
            content=content,
            media_type=XLSX_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{body.filename}"'},
        )

    return app


app = create_app()
