"""
Rate Limiting 미들웨어

Redis 카운터를 사용해 클라이언트 IP별 메시지 전송(POST /messages) 횟수를 제한합니다.
기본값은 비활성이며, Redis 장애 시 요청을 허용합니다 (fail-open).
"""

import time
from typing import Callable, Optional
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from monadssenger.core.config import settings
from monadssenger.core.errors import RateLimitException
from monadssenger.core.logging import get_logger, log_security_event
from monadssenger.database.redis import check_rate_limit
from monadssenger.middleware.logging_middleware import get_client_ip

logger = get_logger(__name__)


class MessageRateLimitMiddleware(BaseHTTPMiddleware):
    """메시지 전송 Rate Limiting 미들웨어"""

    def __init__(
        self,
        app,
        max_messages: Optional[int] = None,
        window_seconds: Optional[int] = None,
        enabled: Optional[bool] = None
    ):
        super().__init__(app)
        self.max_messages = max_messages
        self.window_seconds = window_seconds
        self.enabled = enabled

        # 제한 대상 (method, path)
        self.limited_routes = {("POST", "/messages")}

    @property
    def is_enabled(self) -> bool:
        return self.enabled if self.enabled is not None else settings.rate_limit_enabled

    @property
    def limit(self) -> int:
        return self.max_messages or settings.rate_limit_max_messages

    @property
    def window(self) -> int:
        return self.window_seconds or settings.rate_limit_window_seconds

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not self.is_enabled or (request.method, request.url.path) not in self.limited_routes:
            return await call_next(request)

        client_ip = get_client_ip(request)
        allowed, current_count, reset_time = await check_rate_limit(
            identifier=f"messages:{client_ip}",
            limit=self.limit,
            window=self.window
        )

        if not allowed:
            log_security_event(
                logger,
                "rate_limit_exceeded",
                severity="low",
                ip_address=client_ip,
                request_count=current_count,
                limit=self.limit,
                path=request.url.path
            )

            error = RateLimitException(
                "You're sending messages too quickly. Please wait a moment.",
                retry_after=reset_time
            )
            response = JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content=error.to_dict()
            )
            self._add_rate_limit_headers(response, current_count, reset_time)
            return response

        response = await call_next(request)
        self._add_rate_limit_headers(response, current_count, reset_time)
        return response

    def _add_rate_limit_headers(self, response: Response, current_count: int, reset_time: int):
        """Rate Limit 헤더 추가"""
        response.headers["X-RateLimit-Limit"] = str(self.limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.limit - current_count))
        response.headers["X-RateLimit-Reset"] = str(int(time.time()) + reset_time)
