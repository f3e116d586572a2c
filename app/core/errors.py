from typing import Optional, Dict, Any
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    """표준 에러 응답 생성"""
    return ErrorResponse(
        error=error,
        message=message,
        details=details,
        status_code=status_code
    )


# =============================================================================
# 매칭 도메인 예외 클래스들
# =============================================================================

class MatchingError(Exception):
    """매칭/채팅 처리 기본 예외"""
    error_code = "matching_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """클라이언트 전송용 딕셔너리로 변환"""
        data = {"type": "error", "error_code": self.error_code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data


class UnregisteredConnectionError(MatchingError):
    """등록되지 않은 연결에서 이벤트가 들어온 경우"""
    error_code = "unregistered_connection"

    def __init__(self, connection_id: str):
        self.connection_id = connection_id
        super().__init__(f"Connection {connection_id} is not registered")


class DuplicateConnectionError(MatchingError):
    """같은 connection id로 중복 등록을 시도한 경우"""
    error_code = "duplicate_connection"

    def __init__(self, connection_id: str):
        self.connection_id = connection_id
        super().__init__(f"Connection {connection_id} is already registered")


class InvalidEventError(MatchingError):
    """클라이언트가 보낸 프레임을 해석할 수 없는 경우"""
    error_code = "invalid_event"
