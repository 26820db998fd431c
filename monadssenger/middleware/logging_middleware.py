"""
API 요청 로깅 미들웨어

모든 API 요청과 응답을 구조화된 형태로 로깅합니다.
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from monadssenger.core.logging import get_logger, set_request_context, clear_request_context, log_api_call

logger = get_logger(__name__)


def get_client_ip(request: Request) -> str:
    """클라이언트 IP 주소 추출"""
    # X-Forwarded-For 헤더 확인 (프록시/로드밸런서 사용 시)
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # 첫 번째 IP가 실제 클라이언트 IP
        return forwarded_for.split(",")[0].strip()

    # X-Real-IP 헤더 확인
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    # 직접 연결인 경우
    if request.client is not None and request.client.host:
        return request.client.host

    return "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """API 요청/응답 로깅 미들웨어"""

    # 폴링 요청은 2초마다 들어오므로 성공 응답은 DEBUG로 남김
    polling_paths = {"/messages", "/typing"}

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # 요청 ID 생성
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start_time = time.time()

        # 요청 컨텍스트 설정
        set_request_context(request_id)

        try:
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000
            response.headers["X-Request-ID"] = request_id

            if request.method == "GET" and request.url.path in self.polling_paths and response.status_code < 400:
                logger.debug(f"{request.method} {request.url.path} - {response.status_code}")
            else:
                log_api_call(
                    logger,
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                    request_id=request_id,
                    query_params=dict(request.query_params) if request.query_params else None,
                    client_ip=get_client_ip(request)
                )

            return response

        except Exception as e:
            # 예외 발생 시 로깅
            duration_ms = (time.time() - start_time) * 1000

            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={
                    "event_type": "api_error",
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": duration_ms,
                    "error": str(e),
                    "error_type": type(e).__name__,
                    "client_ip": get_client_ip(request)
                },
                exc_info=True
            )

            raise

        finally:
            # 요청 컨텍스트 정리
            clear_request_context()
