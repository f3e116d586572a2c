"""
매칭 상대 프로필 조회 서비스

users 컬렉션의 닉네임/칭호/프로필 이미지와 diary_sessions 컬렉션의 최근 감정
기록을 읽어 matched 이벤트에 실을 프로필 스냅샷을 만듭니다.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Protocol

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.matching import EmotionShare, EmotionStats, ParticipantProfile

logger = get_logger(__name__)

# 긍정적 감정 목록
POSITIVE_EMOTIONS = ['기쁨', '행복', '평온/안도', '만족', '감사', '설렘', '희망']

DEFAULT_INTENSITY = 50
MAX_SESSIONS = 500

# 감정 통계에 포함하는 세션 종류 (AI 상담, 온라인 채팅)
STATS_SESSION_TYPES = ["ai", "online"]
MAX_STATS_DAYS = 30


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _primary_mood(session: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    enhanced = session.get("enhancedMood") or {}
    return enhanced.get("primary") or session.get("mood")


def _intensity(mood: Dict[str, Any]) -> float:
    intensity = mood.get("intensity")
    if intensity:
        return float(intensity)
    score = mood.get("score")
    if score:
        return float(score) * 100
    return DEFAULT_INTENSITY


def calculate_emotion_stats(sessions: List[Dict[str, Any]]) -> EmotionStats:
    """
    다이어리 세션 목록으로 감정 통계를 계산합니다.

    Args:
        sessions: diary_sessions 문서 목록 (mood 또는 enhancedMood.primary 포함)

    Returns:
        EmotionStats: 세션 수, 감정별 분포, 평균 강도, 대표 감정, 긍정 비율
    """
    if not sessions:
        return EmotionStats()

    counts: Dict[str, int] = {}
    intensities: Dict[str, List[float]] = {}
    total_intensity = 0.0
    positive_count = 0

    for session in sessions:
        mood = _primary_mood(session)
        if not mood or not mood.get("emotion"):
            continue

        emotion = str(mood["emotion"])
        intensity = _intensity(mood)

        counts[emotion] = counts.get(emotion, 0) + 1
        intensities.setdefault(emotion, []).append(intensity)
        total_intensity += intensity

        if any(positive in emotion for positive in POSITIVE_EMOTIONS):
            positive_count += 1

    # 동률이면 먼저 등장한 감정
    dominant_emotion = None
    max_count = 0
    for emotion, count in counts.items():
        if count > max_count:
            max_count = count
            dominant_emotion = emotion

    total = len(sessions)
    distribution = {
        emotion: EmotionShare(
            count=counts[emotion],
            percentage=_round_half_up(counts[emotion] / total * 100),
            avg_intensity=_round_half_up(sum(values) / len(values)),
        )
        for emotion, values in intensities.items()
    }

    return EmotionStats(
        total_sessions=total,
        emotion_distribution=distribution,
        average_intensity=_round_half_up(total_intensity / total),
        dominant_emotion=dominant_emotion,
        positive_rate=_round_half_up(positive_count / total * 100),
    )


def default_nickname(email: str) -> str:
    """닉네임이 없는 사용자는 이메일 아이디를 닉네임으로 사용"""
    local_part = (email or "").split("@")[0]
    return local_part or "익명"


def _latest_emotion_color(sessions: List[Dict[str, Any]]) -> Optional[str]:
    for session in reversed(sessions):
        mood = _primary_mood(session)
        if mood and mood.get("color"):
            return mood["color"]
    return None


def build_profile(
    user: Optional[Dict[str, Any]],
    sessions: List[Dict[str, Any]],
    email: str,
) -> ParticipantProfile:
    """사용자 문서와 감정 기록으로 프로필 스냅샷 생성"""
    user = user or {}
    stats = calculate_emotion_stats(sessions)

    return ParticipantProfile(
        nickname=user.get("nickname") or default_nickname(user.get("email") or email),
        title=user.get("title"),
        emotion=stats.dominant_emotion,
        emotion_color=_latest_emotion_color(sessions),
        emotion_stats=stats,
        profile_image=user.get("profileImage"),
    )


class ProfileProvider(Protocol):
    async def get_profile(self, user_id: str, email: str) -> ParticipantProfile:
        ...


class MongoProfileProvider:
    """MongoDB 기반 프로필 조회"""

    def __init__(self, database: AsyncIOMotorDatabase, stats_days: Optional[int] = None):
        self.database = database
        self.stats_days = min(MAX_STATS_DAYS, max(1, stats_days or settings.profile_stats_days))

    async def get_profile(self, user_id: str, email: str) -> ParticipantProfile:
        """
        프로필 스냅샷을 조회합니다. DB 오류 시 이메일 기반 기본 프로필을 반환합니다.
        """
        try:
            user = None
            if ObjectId.is_valid(user_id):
                user = await self.database["users"].find_one(
                    {"_id": ObjectId(user_id)},
                    {"email": 1, "nickname": 1, "title": 1, "profileImage": 1},
                )

            since = datetime.utcnow() - timedelta(days=self.stats_days)
            cursor = self.database["diary_sessions"].find(
                {
                    "userId": user_id,
                    "type": {"$in": STATS_SESSION_TYPES},
                    "createdAt": {"$gte": since},
                },
                {"mood": 1, "enhancedMood": 1, "createdAt": 1},
            ).sort("createdAt", 1)
            sessions = await cursor.to_list(length=MAX_SESSIONS)

        except PyMongoError as e:
            logger.error(f"Failed to load profile for user {user_id}: {e}")
            return build_profile(None, [], email)

        return build_profile(user, sessions, email)
