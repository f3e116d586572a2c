from typing import Optional
from fastapi import WebSocket, status

from app.core.config import settings
from app.core.logging import get_logger, log_authentication_event
from app.utils.auth import TokenIdentity, identity_from_token

logger = get_logger(__name__)


def extract_token(websocket: WebSocket) -> Optional[str]:
    """
    WebSocket 핸드셰이크에서 JWT를 꺼냅니다.

    우선순위: Authorization 헤더(Bearer) -> 인증 쿠키 -> token 쿼리 파라미터
    """
    header = websocket.headers.get("authorization")
    if header:
        if header.startswith("Bearer ") and header[len("Bearer "):].strip():
            return header[len("Bearer "):].strip()
        # 다른 스킴은 무시하고 쿠키/쿼리 파라미터 확인
        logger.warning("Ignoring non-Bearer Authorization header for WebSocket connection")

    cookie_token = websocket.cookies.get(settings.token_cookie_name)
    if cookie_token:
        return cookie_token

    return websocket.query_params.get("token")


async def authenticate_websocket(websocket: WebSocket, token: Optional[str]) -> Optional[TokenIdentity]:
    """
    WebSocket 연결에서 JWT 토큰을 검증하고 사용자 식별 정보를 반환합니다.

    Args:
        websocket: WebSocket 연결 객체 (accept 전)
        token: extract_token()으로 꺼낸 토큰

    Returns:
        TokenIdentity: 인증된 사용자, 실패 시 연결을 1008로 닫고 None
    """
    if not token:
        logger.warning("No token provided for WebSocket connection")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None

    identity = identity_from_token(token)
    if identity is None:
        log_authentication_event(logger, "websocket_token", success=False)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return None

    log_authentication_event(logger, "websocket_token", user_id=identity.user_id, email=identity.email)
    return identity
