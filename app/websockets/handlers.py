import logging
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from app.core.errors import InvalidEventError
from app.domain.events import (
    MatchRequested,
    MatchCancelled,
    ChatSubmitted,
    LeaveRequested,
)
from app.schemas.matching import ChatRequest, ClientFrame, PongEvent
from app.services.color_service import ChatColorClassifier
from app.websockets.connection_manager import EventChannel
from app.websockets.matching_service import MatchingService

logger = logging.getLogger(__name__)


def _validation_details(error: ValidationError) -> dict:
    return {
        "fields": [
            {"field": ".".join(str(loc) for loc in item["loc"]), "message": item["msg"]}
            for item in error.errors()
        ]
    }


class WebSocketMessageHandler:
    """WebSocket 메시지 처리 핸들러 (프레임 -> 매칭 도메인 이벤트)"""

    def __init__(self, service: MatchingService, color_classifier: ChatColorClassifier):
        self.service = service
        self.color_classifier = color_classifier

    async def handle_message(self, connection_id: str, channel: EventChannel, data: Any):
        """
        WebSocket으로 받은 메시지를 처리합니다.

        Args:
            connection_id: 메시지를 보낸 연결 ID
            channel: 해당 연결의 송신 채널 (pong 응답용)
            data: 클라이언트에서 전송한 JSON 데이터

        Raises:
            InvalidEventError: 형식이 잘못된 프레임
        """
        if not isinstance(data, dict):
            raise InvalidEventError("메시지는 JSON 객체여야 합니다.")

        try:
            frame = ClientFrame.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Unknown message type: {data.get('type')} from connection {connection_id}")
            raise InvalidEventError("알 수 없는 메시지 형식입니다.", _validation_details(e))

        now = datetime.utcnow()

        if frame.type == "startMatching":
            self.service.submit(MatchRequested(connection_id=connection_id, timestamp=now))
        elif frame.type == "cancelMatch":
            self.service.submit(MatchCancelled(connection_id=connection_id, timestamp=now))
        elif frame.type == "chat":
            await self._handle_chat_message(connection_id, data)
        elif frame.type == "userDisconnect":
            self.service.submit(LeaveRequested(connection_id=connection_id, timestamp=now))
        elif frame.type == "ping":
            channel.push(PongEvent().to_payload())

    async def _handle_chat_message(self, connection_id: str, data: dict):
        """채팅 메시지 색상을 분류한 뒤 디스패처로 넘깁니다."""
        try:
            request = ChatRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid chat payload from connection {connection_id}")
            raise InvalidEventError("채팅 메시지 형식이 올바르지 않습니다.", _validation_details(e))

        color = await self.color_classifier.classify(request.text)

        self.service.submit(ChatSubmitted(
            connection_id=connection_id,
            room_id=request.room_id,
            text=request.text,
            color=color,
            timestamp=datetime.utcnow(),
        ))
