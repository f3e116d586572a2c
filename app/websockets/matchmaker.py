import logging
from datetime import datetime
from typing import Optional

from app.core.logging import log_matching_event
from app.schemas.matching import MatchedEvent
from app.websockets.connection_manager import Participant
from app.websockets.room_relay import Room, RoomRelay
from app.websockets.waiting_pool import WaitingPool

logger = logging.getLogger(__name__)


class Matchmaker:
    """
    대기열에서 두 명을 꺼내 대화방을 만드는 매칭기.

    대기열 확인 -> 두 명 제거 -> 대화방 생성 -> matched 전송은 await 없이
    한 번에 수행됩니다.
    """
    # TODO: 감정 유사도 기반 매칭 (UI 문구에는 있으나 미구현). 현재는 도착 순서로만 짝을 짓는다.

    def __init__(self, pool: WaitingPool, relay: RoomRelay):
        self.pool = pool
        self.relay = relay

    def request_match(self, participant: Participant, requested_at: Optional[datetime] = None) -> Optional[Room]:
        """
        매칭을 요청합니다.

        Args:
            participant: 요청한 참여자
            requested_at: 요청 시각 (대기열 정렬 기준)

        Returns:
            Room: 이번 요청으로 대화방이 만들어졌으면 해당 방, 아니면 None
        """
        connection_id = participant.connection_id

        if connection_id in self.pool:
            logger.info(f"Duplicate match request ignored: {connection_id} is already waiting")
            return None
        if self.relay.room_of(connection_id) is not None:
            logger.info(f"Duplicate match request ignored: {connection_id} is already matched")
            return None

        self.pool.enqueue(participant, requested_at)
        log_matching_event(logger, "enqueued", connection_id, waiting_count=len(self.pool))

        pair = self.pool.dequeue_next_pair()
        if pair is None:
            return None

        first, second = pair[0].participant, pair[1].participant
        room_id = self.relay.create_room(first, second)

        first.send(MatchedEvent.for_partner(room_id, second.connection_id, second.profile))
        second.send(MatchedEvent.for_partner(room_id, first.connection_id, first.profile))

        log_matching_event(
            logger, "matched", first.connection_id, room_id,
            partner_id=second.connection_id,
            waited_ms=int((datetime.utcnow() - pair[0].enqueued_at).total_seconds() * 1000),
        )
        return self.relay.get_room(room_id)
