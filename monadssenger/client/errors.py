from typing import Optional


class ClientError(Exception):
    """클라이언트 기본 예외"""


class BackendUnavailable(ClientError):
    """백엔드 호출 실패 (네트워크 오류, 비정상 응답)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimited(ClientError):
    """전송 제한 초과"""

    def __init__(self, message: str = "Rate limit exceeded", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after
