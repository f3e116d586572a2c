"""
Matching Context Domain Events

WebSocket 리더 코루틴이 매칭 서비스의 inbox로 전달하는 이벤트들입니다.
디스패처는 이 이벤트들을 도착 순서대로 하나씩 처리합니다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from .base import DomainEvent
from app.schemas.matching import ParticipantProfile


@dataclass
class ConnectionOpened(DomainEvent):
    """인증된 연결 등록 이벤트"""
    user_id: str
    email: str
    profile: ParticipantProfile
    # 소켓/송신 큐는 로그에 남기지 않음
    channel: Any = field(repr=False, compare=False)

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data["profile"] = self.profile.model_dump()
        return data


@dataclass
class MatchRequested(DomainEvent):
    """매칭 요청 이벤트 (startMatching)"""


@dataclass
class MatchCancelled(DomainEvent):
    """매칭 취소 이벤트 (cancelMatch)"""


@dataclass
class ChatSubmitted(DomainEvent):
    """채팅 메시지 전송 이벤트 (chat)"""
    room_id: str
    text: str
    color: str


@dataclass
class LeaveRequested(DomainEvent):
    """대화방/대기열 나가기 이벤트 (userDisconnect)"""


@dataclass
class ConnectionClosed(DomainEvent):
    """전송 계층 연결 종료 이벤트"""
