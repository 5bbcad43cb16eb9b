"""전역 에러 핸들러 - 모든 에러를 {"detail": {"error", "message"}} 형태로 응답"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):  # type: ignore[override]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": {
                    "error": "VALIDATION_ERROR",
                    "message": "Invalid request",
                    "details": {"errors": jsonable_errors(exc)},
                }
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exc_handler(request: Request, exc: SQLAlchemyError):  # type: ignore[override]
        # 트랜잭션 충돌/잠금 실패 등: 호출자가 재시도할 수 있도록 INTERNAL 로 노출
        logger.error(
            "Database error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": {"error": "INTERNAL", "message": "Internal server error"}},
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """검증 에러 목록에서 JSON 직렬화 가능한 필드만 추출"""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
