from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """클라이언트(React)와 주고받는 camelCase 스키마 기본 클래스"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        """WebSocket 전송용 dict로 변환"""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# 프로필 스냅샷
# =============================================================================

class EmotionShare(CamelModel):
    """감정별 분포"""
    count: int = Field(..., description="해당 감정이 기록된 세션 수")
    percentage: int = Field(..., description="전체 세션 대비 비율(%)")
    avg_intensity: int = Field(..., description="평균 강도")


class EmotionStats(CamelModel):
    """최근 감정 통계"""
    total_sessions: int = Field(default=0, description="집계된 세션 수")
    emotion_distribution: Dict[str, EmotionShare] = Field(default_factory=dict, description="감정별 분포")
    average_intensity: int = Field(default=0, description="평균 강도")
    dominant_emotion: Optional[str] = Field(None, description="가장 빈번한 감정")
    positive_rate: int = Field(default=0, description="긍정 감정 비율(%)")


class ParticipantProfile(CamelModel):
    """매칭 상대에게 보여줄 프로필 스냅샷 (연결 시 1회 조회)"""
    nickname: str = Field(..., description="닉네임")
    title: Optional[str] = Field(None, description="감정 칭호")
    emotion: Optional[str] = Field(None, description="대표 감정")
    emotion_color: Optional[str] = Field(None, description="대표 감정 색상")
    emotion_stats: EmotionStats = Field(default_factory=EmotionStats, description="최근 감정 통계")
    profile_image: Optional[str] = Field(None, description="프로필 이미지 URL")


# =============================================================================
# 클라이언트 -> 서버
# =============================================================================

ClientEventType = Literal["startMatching", "cancelMatch", "chat", "userDisconnect", "ping"]


class ClientFrame(BaseModel):
    """클라이언트가 보낸 프레임의 공통 헤더"""
    model_config = ConfigDict(extra="allow")

    type: ClientEventType


class ChatRequest(CamelModel):
    """chat 이벤트 페이로드"""
    room_id: str = Field(..., min_length=1, description="대화방 ID")
    text: str = Field(..., min_length=1, max_length=2000, description="메시지 내용")
    # 클라이언트가 보낸 user 값은 신뢰하지 않음 (서버가 connection id로 채움)
    user: Optional[str] = Field(None, description="클라이언트가 보낸 발신자 표시값")

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value


# =============================================================================
# 서버 -> 클라이언트
# =============================================================================

class ConnectedEvent(CamelModel):
    """연결 등록 완료 안내"""
    type: Literal["connected"] = "connected"
    connection_id: str
    user_id: str
    nickname: str


class MatchedEvent(CamelModel):
    """매칭 성공 안내"""
    type: Literal["matched"] = "matched"
    room_id: str
    partner_id: str
    partner_nickname: str
    partner_title: Optional[str] = None
    partner_emotion: Optional[str] = None
    partner_emotion_color: Optional[str] = None
    partner_emotion_stats: EmotionStats = Field(default_factory=EmotionStats)
    partner_profile_image: Optional[str] = None

    @classmethod
    def for_partner(cls, room_id: str, partner_id: str, profile: ParticipantProfile) -> "MatchedEvent":
        return cls(
            room_id=room_id,
            partner_id=partner_id,
            partner_nickname=profile.nickname,
            partner_title=profile.title,
            partner_emotion=profile.emotion,
            partner_emotion_color=profile.emotion_color,
            partner_emotion_stats=profile.emotion_stats,
            partner_profile_image=profile.profile_image,
        )


class ChatMessageEvent(CamelModel):
    """상대방에게 전달되는 채팅 메시지"""
    type: Literal["chat"] = "chat"
    user: str
    text: str
    color: str


class UserLeftEvent(CamelModel):
    """상대방 퇴장 안내"""
    type: Literal["userLeft"] = "userLeft"
    message: str


class ChatFailedEvent(CamelModel):
    """이미 종료된 대화방으로 보낸 메시지 전달 실패 안내"""
    type: Literal["chatFailed"] = "chatFailed"
    room_id: str
    message: str = "대화방이 종료되어 메시지를 전달하지 못했습니다."


class PongEvent(CamelModel):
    type: Literal["pong"] = "pong"
    timestamp: datetime = Field(default_factory=datetime.utcnow)


# =============================================================================
# HTTP 응답
# =============================================================================

class MatchingStatusResponse(BaseModel):
    """매칭 서버 현재 상태"""
    connected_count: int = Field(..., description="등록된 연결 수")
    waiting_count: int = Field(..., description="매칭 대기 인원")
    active_room_count: int = Field(..., description="진행 중인 대화방 수")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="조회 시각")
