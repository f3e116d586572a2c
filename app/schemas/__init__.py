# Matching schemas
from .matching import (
    EmotionShare,
    EmotionStats,
    ParticipantProfile,
    ClientFrame,
    ChatRequest,
    ConnectedEvent,
    MatchedEvent,
    ChatMessageEvent,
    UserLeftEvent,
    ChatFailedEvent,
    PongEvent,
    MatchingStatusResponse,
)

__all__ = [
    "EmotionShare",
    "EmotionStats",
    "ParticipantProfile",
    "ClientFrame",
    "ChatRequest",
    "ConnectedEvent",
    "MatchedEvent",
    "ChatMessageEvent",
    "UserLeftEvent",
    "ChatFailedEvent",
    "PongEvent",
    "MatchingStatusResponse",
]
