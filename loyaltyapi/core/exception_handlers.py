import logging
import traceback
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse

from .exceptions import InternalServerError

logger = logging.getLogger("loyaltyapi")


def _request_context(request: Request) -> Dict[str, Any]:
    client = request.client.host if request.client else "-"
    return {
        "method": request.method,
        "path": request.url.path,
        "client": client,
    }


def _error_body(code: str, message: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "success": False,
        "error": {"code": code, "message": message, "details": details},
    }


async def handle_base_api_exception(request, exc):
    ctx = _request_context(request)
    line = (
        f"[{exc.error_code}] {ctx['method']} {ctx['path']} from {ctx['client']} "
        f"-> {exc.status_code}: {exc.message} {exc.details}"
    )
    if exc.status_code >= 500:
        logger.error(line)
    else:
        logger.warning(line)
    return JSONResponse(status_code=exc.status_code, content=exc.detail)


async def handle_http_exception(request, exc):
    ctx = _request_context(request)
    logger.warning(
        f"[HTTPException] {ctx['method']} {ctx['path']} from {ctx['client']} -> {exc.status_code}: {exc.detail}"
    )
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        content = exc.detail
    else:
        content = _error_body("HTTP_ERROR", str(exc.detail), {})
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def handle_validation_error(request, exc):
    ctx = _request_context(request)
    logger.warning(
        f"[ValidationError] {ctx['method']} {ctx['path']} from {ctx['client']} -> 422: {exc.errors()}"
    )
    # errors() 의 ctx 에 예외 객체가 들어갈 수 있어 문자열로 정규화
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content=_error_body("VALIDATION_001", "Validation failed", {"errors": errors}),
    )


async def handle_storage_error(request, exc):
    """DB 연결/쿼리 실패 - 재시도 가능한 장애로 503 반환"""
    ctx = _request_context(request)
    logger.error(
        f"[StorageError] {ctx['method']} {ctx['path']} from {ctx['client']}: "
        f"{type(exc).__name__}: {exc}"
    )
    return JSONResponse(
        status_code=503,
        content=_error_body("STORAGE_UNAVAILABLE", "Storage is temporarily unavailable", {}),
    )


async def handle_unexpected_error(request, exc):
    ctx = _request_context(request)

    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"[Unhandled Error] {ctx['method']} {ctx['path']} from {ctx['client']}\n"
        f"Exception Type: {type(exc).__name__}\n"
        f"Exception Message: {str(exc)}\n\n"
        f"Full Stack Trace:\n{tb_str}"
    )

    internal = InternalServerError()
    return JSONResponse(status_code=internal.status_code, content=internal.detail)
