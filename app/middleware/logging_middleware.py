"""
HTTP 요청 로깅 미들웨어

상태 조회/헬스체크 같은 HTTP 요청만 대상으로 합니다. WebSocket 연결은
connection id 컨텍스트로 따로 로깅됩니다.
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import get_logger, set_request_context, clear_request_context, log_api_call

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# 쿠버네티스 프로브는 로그를 남기지 않음
QUIET_PATHS = {"/health/live", "/health/ready"}


def client_ip(request: Request) -> str:
    """프록시 헤더를 고려한 클라이언트 IP"""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청 ID 부여 및 요청/응답 로깅"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # 게이트웨이가 넘겨준 요청 ID가 있으면 그대로 사용
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        set_request_context(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={"event_type": "api_error", "client_ip": client_ip(request)},
                exc_info=True,
            )
            raise
        finally:
            clear_request_context()

        if request.url.path not in QUIET_PATHS:
            log_api_call(
                logger,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                request_id=request_id,
                client_ip=client_ip(request),
            )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
