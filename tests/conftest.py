import os
import tempfile

# 테스트 환경 설정 (app 모듈 import 전에 적용)
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="matching-logs-"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.pop("OPENAI_API_KEY", None)

from datetime import datetime
from typing import Callable, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.domain.events import ConnectionOpened
from app.main import app
from app.schemas.matching import EmotionStats, ParticipantProfile
from app.utils.auth import create_access_token
from app.websockets.connection_manager import Participant
from app.websockets.matching_service import MatchingService


class FakeChannel:
    """전송된 이벤트를 기록하는 테스트용 송신 채널"""

    def __init__(self):
        self.events: List[dict] = []
        self.closed = False

    def push(self, payload: dict) -> bool:
        if self.closed:
            return False
        self.events.append(payload)
        return True

    def of_type(self, event_type: str) -> List[dict]:
        return [e for e in self.events if e["type"] == event_type]

    def clear(self):
        self.events.clear()


class StubProfileProvider:
    """DB 없이 이메일로 프로필을 만드는 테스트용 프로필 조회기"""

    async def get_profile(self, user_id: str, email: str) -> ParticipantProfile:
        return make_profile(email.split("@")[0])


def make_profile(nickname: str, emotion: Optional[str] = "기쁨") -> ParticipantProfile:
    return ParticipantProfile(
        nickname=nickname,
        title="햇살 같은 사람",
        emotion=emotion,
        emotion_color="#ffd700",
        emotion_stats=EmotionStats(total_sessions=3, dominant_emotion=emotion, positive_rate=67),
        profile_image=f"https://cdn.example.com/{nickname}.png",
    )


@pytest.fixture
def service() -> MatchingService:
    """테스트용 매칭 서비스 (디스패처 task 없이 process()로 직접 구동)"""
    return MatchingService(partner_left_message="상대방이 대화방을 나갔습니다.")


@pytest.fixture
def connect(service) -> Callable[[str], FakeChannel]:
    """참여자를 등록하고 해당 연결의 FakeChannel을 반환하는 헬퍼"""

    def _connect(connection_id: str, nickname: Optional[str] = None) -> FakeChannel:
        channel = FakeChannel()
        service.process(ConnectionOpened(
            connection_id=connection_id,
            user_id=f"user-{connection_id}",
            email=f"{connection_id}@example.com",
            profile=make_profile(nickname or connection_id),
            channel=channel,
            timestamp=datetime.utcnow(),
        ))
        channel.clear()
        return channel

    return _connect


@pytest.fixture
def client():
    """lifespan이 실행된 TestClient (프로필 조회는 Stub으로 교체)"""
    with TestClient(app) as test_client:
        test_client.app.state.profile_provider = StubProfileProvider()
        yield test_client


def auth_headers(user_id: str, email: str) -> dict:
    token = create_access_token(data={"sub": user_id, "email": email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_user_1() -> dict:
    return auth_headers("650000000000000000000001", "alice@example.com")


@pytest.fixture
def headers_user_2() -> dict:
    return auth_headers("650000000000000000000002", "bob@example.com")


def make_participant(connection_id: str, nickname: Optional[str] = None, emotion: Optional[str] = "기쁨") -> Participant:
    """등록부를 거치지 않는 단독 참여자 (컴포넌트 단위 테스트용)"""
    return Participant(
        connection_id=connection_id,
        user_id=f"user-{connection_id}",
        email=f"{connection_id}@example.com",
        profile=make_profile(nickname or connection_id, emotion=emotion),
        channel=FakeChannel(),
    )
