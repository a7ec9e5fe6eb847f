"""错误响应渲染 -- TaskHubError / HTTPException -> JSON

响应体统一为 {"error": {"code": <UPPER_SNAKE>, "message": ..., <details>}}。
StoreFailure 只返回通用消息，原始异常只进日志。
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.responses import JSONResponse
from taskhub.core.exceptions import (
    ErrorKind,
    InvalidAssigneesError,
    StoreFailureError,
    TaskHubError,
)

log = structlog.get_logger()

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORE_FAILURE: 500,
}


def status_for(error: TaskHubError) -> int:
    """错误类别 -> HTTP 状态码（未列出的都是 400）"""
    return STATUS_BY_KIND.get(error.kind, 400)


def error_body(error: TaskHubError) -> dict:
    body = {
        "code": error.kind.name,
        "message": error.message,
        **error.details,
    }
    if isinstance(error, InvalidAssigneesError):
        body["kinds"] = [k.name for k in error.kinds]
    return {"error": body}


async def taskhub_error_handler(request: Request, exc: TaskHubError) -> JSONResponse:
    if isinstance(exc, StoreFailureError):
        log.error(
            "store_failure",
            operation=exc.operation,
            error_type=type(exc.original_error).__name__,
            error=str(exc.original_error),
        )
    else:
        log.info("request_rejected", kind=exc.kind.value, path=request.url.path)
    return JSONResponse(status_code=status_for(exc), content=error_body(exc))


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        content = {"error": detail}
    else:
        content = {"error": {"code": "HTTP_ERROR", "message": str(detail)}}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return JSONResponse(
        status_code=400,
        content={
            "error": {
                "code": ErrorKind.MALFORMED_REQUEST.name,
                "message": "Malformed request body",
                "fields": fields,
            }
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskHubError, taskhub_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
