"""
Domain Events

모든 Domain Event의 기본 클래스 및 매칭 이벤트 정의
"""

from .base import DomainEvent
from .matching_events import (
    ConnectionOpened,
    MatchRequested,
    MatchCancelled,
    ChatSubmitted,
    LeaveRequested,
    ConnectionClosed,
)

__all__ = [
    'DomainEvent',
    'ConnectionOpened',
    'MatchRequested',
    'MatchCancelled',
    'ChatSubmitted',
    'LeaveRequested',
    'ConnectionClosed',
]
