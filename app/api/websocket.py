import json
import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Request, WebSocket, WebSocketDisconnect

from app.core.errors import InvalidEventError
from app.core.logging import log_websocket_event, set_connection_context
from app.domain.events import ConnectionOpened, ConnectionClosed
from app.schemas.matching import MatchingStatusResponse
from app.utils.auth import TokenIdentity, get_current_identity
from app.websockets.auth import authenticate_websocket, extract_token
from app.websockets.connection_manager import WebSocketChannel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ws", tags=["WebSocket"])


@router.websocket("/matching")
async def matching_websocket(websocket: WebSocket):
    """
    1:1 매칭 채팅 WebSocket 엔드포인트

    연결 1개 = 참여자 1명. 프레임을 도메인 이벤트로 바꿔 매칭 서비스 inbox에 넣고,
    서버 이벤트는 연결별 송신 채널을 통해 비동기로 전달됩니다.
    """
    # 1. WebSocket 인증
    identity = await authenticate_websocket(websocket, extract_token(websocket))
    if identity is None:
        return

    state = websocket.app.state
    service = state.matching_service
    handler = state.message_handler

    await websocket.accept()

    connection_id = uuid.uuid4().hex
    set_connection_context(connection_id)
    channel = WebSocketChannel(websocket, connection_id)
    channel.start()
    log_websocket_event(logger, "connected", connection_id, identity.user_id)

    try:
        # 2. 프로필 스냅샷 (연결 시 1회)
        profile = await state.profile_provider.get_profile(identity.user_id, identity.email)

        # 3. 연결 등록
        service.submit(ConnectionOpened(
            connection_id=connection_id,
            user_id=identity.user_id,
            email=identity.email,
            profile=profile,
            channel=channel,
            timestamp=datetime.utcnow(),
        ))

        # 4. 메시지 수신 루프
        while True:
            text = await websocket.receive_text()
            try:
                data = json.loads(text)
                await handler.handle_message(connection_id, channel, data)
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON from connection {connection_id}: {e}")
                channel.push({
                    "type": "error",
                    "error_code": "invalid_json",
                    "message": "잘못된 메시지 형식입니다.",
                })
            except InvalidEventError as e:
                channel.push(e.to_dict())

    except WebSocketDisconnect:
        # 정상적인 연결 해제
        logger.info(f"WebSocket disconnected for connection {connection_id}")

    except Exception as e:
        logger.error(f"Unexpected error in WebSocket connection {connection_id}: {e}", exc_info=True)

    finally:
        # 5. 연결 해제 처리 (대기열/대화방 정리는 디스패처가 수행)
        service.submit(ConnectionClosed(connection_id=connection_id, timestamp=datetime.utcnow()))
        await channel.close()
        log_websocket_event(logger, "closed", connection_id, identity.user_id)
        set_connection_context(None)


@router.get("/matching/status", response_model=MatchingStatusResponse)
async def get_matching_status(
    request: Request,
    identity: TokenIdentity = Depends(get_current_identity),
):
    """
    매칭 서버의 현재 상태(연결/대기/대화방 수)를 조회합니다.
    인증된 사용자만 접근 가능합니다.
    """
    return request.app.state.matching_service.status()
