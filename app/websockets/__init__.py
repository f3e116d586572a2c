"""
WebSocket 1:1 매칭 채팅 모듈

이 모듈은 FastAPI WebSocket을 사용하여 익명 1:1 매칭과 대화방 메시지 중계를 제공합니다.

주요 구성 요소:
- connection_manager: 연결 등록부와 연결별 송신 채널
- waiting_pool: 매칭 대기열 (FIFO)
- matchmaker: 대기열에서 두 명을 꺼내 대화방 생성
- room_relay: 대화방 멤버십과 1:1 메시지 중계
- matching_service: 상태를 단독 소유하는 디스패처, 퇴장/연결 종료 처리
- auth: WebSocket 인증 처리
- handlers: 클라이언트 프레임 -> 도메인 이벤트 변환
"""

from .connection_manager import ConnectionRegistry, Participant, WebSocketChannel
from .waiting_pool import WaitingPool, WaitingEntry
from .room_relay import Room, RoomRelay
from .matchmaker import Matchmaker
from .matching_service import MatchingService
from .auth import authenticate_websocket, extract_token
from .handlers import WebSocketMessageHandler

__all__ = [
    "ConnectionRegistry",
    "Participant",
    "WebSocketChannel",
    "WaitingPool",
    "WaitingEntry",
    "Room",
    "RoomRelay",
    "Matchmaker",
    "MatchingService",
    "authenticate_websocket",
    "extract_token",
    "WebSocketMessageHandler",
]
