import traceback
from typing import Callable
from fastapi import Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import SQLAlchemyError
from pymongo.errors import PyMongoError

from monadssenger.core.errors import (
    BaseCustomException,
    ValidationError,
    create_error_response,
    create_validation_error_response
)
from monadssenger.core.config import settings
from monadssenger.core.logging import get_logger

logger = get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    통합 에러 처리 미들웨어

    라우터에서 처리되지 않은 예외를 캐치하고 표준화된 에러 응답을 반환합니다.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except BaseCustomException as e:
            # 우리가 정의한 커스텀 예외들
            return JSONResponse(
                status_code=e.status_code,
                content=e.to_dict()
            )

        except (SQLAlchemyError, PyMongoError, OSError) as e:
            # 저장소 연결/작업 에러 (저장소 계층에서 변환되지 않은 경우)
            logger.error(
                f"Backend error: {type(e).__name__}: {e}",
                extra={"path": request.url.path, "error_type": type(e).__name__}
            )

            error_response = create_error_response(
                "backend_unavailable",
                "Storage backend unavailable",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                {"detail": str(e)} if settings.debug else None
            )
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )

        except Exception as e:
            # 예상하지 못한 모든 에러들
            error_detail = None
            if settings.debug:
                error_detail = {
                    "exception": str(e),
                    "type": type(e).__name__,
                    "traceback": traceback.format_exc()
                }

            logger.error(
                f"Unhandled exception: {type(e).__name__}: {e}",
                extra={"path": request.url.path},
                exc_info=True
            )

            error_response = create_error_response(
                "internal_server_error",
                "An unexpected error occurred",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_detail
            )
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )


def create_http_exception_handler():
    """FastAPI HTTPException 핸들러 생성"""
    async def http_exception_handler(request: Request, exc):
        """HTTPException을 표준 형식으로 변환"""

        # 우리의 커스텀 예외인 경우 그대로 반환
        if isinstance(exc, BaseCustomException):
            if exc.status_code >= 500:
                logger.error(f"{exc.error}: {exc.message}", extra={"path": request.url.path})
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict()
            )

        # 일반 HTTPException인 경우 표준 형식으로 변환
        error_response = create_error_response(
            "http_error",
            exc.detail if isinstance(exc.detail, str) else "HTTP error occurred",
            exc.status_code,
            {"detail": exc.detail} if not isinstance(exc.detail, str) else None
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=error_response.model_dump()
        )

    return http_exception_handler


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """요청 파싱/검증 실패를 400 응답으로 변환"""
    validation_errors = []

    for error in exc.errors():
        field_name = ".".join(str(loc) for loc in error["loc"])
        validation_errors.append(
            ValidationError(
                field=field_name,
                message=error["msg"],
                value=error.get("input") if isinstance(error.get("input"), (str, int, float, bool)) else None
            )
        )

    error_response = create_validation_error_response(
        "Request validation failed",
        validation_errors
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response.model_dump()
    )
