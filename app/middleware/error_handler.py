import traceback
from typing import Callable
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.errors import create_error_response
from app.core.logging import get_logger

logger = get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """HTTP 엔드포인트의 처리되지 않은 예외를 표준 에러 응답(500)으로 변환"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled exception on {request.method} {request.url.path}: {e}", exc_info=True)

            # 디버그 모드에서만 내부 정보 노출
            details = {"path": request.url.path}
            if settings.debug:
                details.update(
                    exception=str(e),
                    type=type(e).__name__,
                    traceback=traceback.format_exc(),
                )

            error_response = create_error_response(
                "internal_server_error",
                "An unexpected error occurred",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                details,
            )
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump(),
            )
