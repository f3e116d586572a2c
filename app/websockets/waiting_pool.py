from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from app.websockets.connection_manager import Participant


@dataclass
class WaitingEntry:
    """매칭 대기열 항목"""
    participant: Participant
    enqueued_at: datetime = field(default_factory=datetime.utcnow)


class WaitingPool:
    """
    매칭 대기열 (도착 순서 FIFO).

    한 참여자는 최대 한 번만 대기열에 존재합니다. 모든 연산은 동기 함수이며
    매칭 디스패처만 호출합니다.
    """

    def __init__(self):
        # {connection_id: WaitingEntry}, 삽입 순서 = 도착 순서
        self._entries: "OrderedDict[str, WaitingEntry]" = OrderedDict()

    def enqueue(self, participant: Participant, enqueued_at: Optional[datetime] = None) -> bool:
        """대기열 끝에 추가. 이미 대기 중이면 아무것도 하지 않고 False."""
        if participant.connection_id in self._entries:
            return False
        self._entries[participant.connection_id] = WaitingEntry(
            participant=participant,
            enqueued_at=enqueued_at or datetime.utcnow(),
        )
        return True

    def dequeue_next_pair(self) -> Optional[Tuple[WaitingEntry, WaitingEntry]]:
        """가장 오래 기다린 두 명을 꺼냅니다. 두 명 미만이면 None."""
        if len(self._entries) < 2:
            return None
        _, first = self._entries.popitem(last=False)
        _, second = self._entries.popitem(last=False)
        return first, second

    def remove(self, participant: Participant) -> bool:
        """특정 참여자의 대기 항목 제거. 없으면 False."""
        return self._entries.pop(participant.connection_id, None) is not None

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
