"""
매칭 서비스

연결 등록부, 대기열, 대화방 중계를 단독으로 소유하는 디스패처입니다.
WebSocket 리더 코루틴들은 상태를 직접 건드리지 않고 inbox에 도메인 이벤트를
넣기만 하며, 디스패처 task가 이벤트를 도착 순서대로 하나씩 process() 합니다.
process()와 그 하위 처리 함수는 모두 동기 함수이므로 한 이벤트를 처리하는
동안 다른 이벤트가 끼어들 수 없습니다.
"""

import asyncio
import logging
from typing import Callable, Dict, Optional, Type

from app.core.config import settings
from app.core.errors import MatchingError, UnregisteredConnectionError
from app.core.logging import log_matching_event, log_websocket_event
from app.domain.events import (
    DomainEvent,
    ConnectionOpened,
    MatchRequested,
    MatchCancelled,
    ChatSubmitted,
    LeaveRequested,
    ConnectionClosed,
)
from app.schemas.matching import (
    ChatFailedEvent,
    ChatMessageEvent,
    ConnectedEvent,
    MatchingStatusResponse,
    UserLeftEvent,
)
from app.websockets.connection_manager import ConnectionRegistry, Participant
from app.websockets.matchmaker import Matchmaker
from app.websockets.room_relay import Room, RoomRelay
from app.websockets.waiting_pool import WaitingPool

logger = logging.getLogger(__name__)


class MatchingService:
    """1:1 매칭 및 대화방 중계 서비스 (프로세스당 1개, app.state에 보관)"""

    def __init__(self, partner_left_message: Optional[str] = None):
        self.partner_left_message = partner_left_message or settings.partner_left_message
        self.registry = ConnectionRegistry()
        self.pool = WaitingPool()
        self.relay = RoomRelay()
        self.matchmaker = Matchmaker(self.pool, self.relay)

        self.inbox: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

        self._handlers: Dict[Type[DomainEvent], Callable[[DomainEvent], None]] = {
            ConnectionOpened: self._on_connection_opened,
            MatchRequested: lambda e: self.request_match(e.connection_id, e),
            MatchCancelled: lambda e: self.on_cancel_match(e.connection_id),
            ChatSubmitted: self._on_chat_submitted,
            LeaveRequested: lambda e: self.on_leave(e.connection_id),
            ConnectionClosed: lambda e: self.on_disconnect(e.connection_id),
        }

    # =========================================================================
    # 디스패처
    # =========================================================================

    async def start(self):
        """디스패처 task 시작"""
        if self._task is not None:
            logger.warning("Matching dispatcher is already running")
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Matching dispatcher started")

    async def stop(self):
        """디스패처 task 중지"""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Matching dispatcher stopped")

    def submit(self, event: DomainEvent):
        """이벤트를 inbox에 넣습니다 (대기하지 않음)."""
        self.inbox.put_nowait(event)

    async def drain(self):
        """지금까지 들어온 이벤트가 모두 처리될 때까지 대기"""
        await self.inbox.join()

    async def _run(self):
        while True:
            event = await self.inbox.get()
            try:
                self.process(event)
            except Exception:
                logger.exception(f"Unexpected error while processing {event.event_type}")
            finally:
                self.inbox.task_done()

    def process(self, event: DomainEvent):
        """이벤트 하나를 처리합니다. 프로토콜 위반은 로그만 남기고 무시합니다."""
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning(f"No handler for event {event.event_type}")
            return

        logger.debug("Processing matching event", extra={"event": event.to_dict()})
        try:
            handler(event)
        except UnregisteredConnectionError as e:
            logger.warning(f"Rejected {event.event_type}: {e.message}")
        except MatchingError as e:
            logger.warning(f"Matching error on {event.event_type}: {e.message}")

    # =========================================================================
    # 연결 등록
    # =========================================================================

    def _on_connection_opened(self, event: ConnectionOpened):
        participant = self.registry.register(
            event.connection_id,
            event.user_id,
            event.email,
            event.profile,
            event.channel,
        )
        participant.send(ConnectedEvent(
            connection_id=participant.connection_id,
            user_id=participant.user_id,
            nickname=participant.profile.nickname,
        ))
        log_websocket_event(logger, "registered", participant.connection_id, participant.user_id)

    # =========================================================================
    # 매칭
    # =========================================================================

    def request_match(self, connection_id: str, event: Optional[MatchRequested] = None) -> Optional[Room]:
        """startMatching 처리"""
        participant = self.registry.get(connection_id)
        return self.matchmaker.request_match(participant, event.timestamp if event else None)

    def on_cancel_match(self, connection_id: str) -> bool:
        """
        cancelMatch 처리.

        대기 중일 때만 대기열에서 제거합니다. 대기 중이 아니거나 이미 매칭된
        경우에는 아무것도 하지 않습니다.
        """
        participant = self.registry.get(connection_id)
        removed = self.pool.remove(participant)
        if removed:
            log_matching_event(logger, "cancelled", connection_id)
        else:
            logger.debug(f"cancelMatch ignored: {connection_id} is not waiting")
        return removed

    # =========================================================================
    # 채팅 중계
    # =========================================================================

    def _on_chat_submitted(self, event: ChatSubmitted):
        self.relay_chat(event.connection_id, event.room_id, event.text, event.color)

    def relay_chat(self, connection_id: str, room_id: str, text: str, color: str) -> bool:
        """상대방에게 채팅을 전달. 실패 시 발신자에게만 chatFailed 전송."""
        sender = self.registry.get(connection_id)
        chat_event = ChatMessageEvent(user=sender.connection_id, text=text, color=color)

        delivered = self.relay.relay(room_id, sender.connection_id, chat_event)
        if not delivered:
            sender.send(ChatFailedEvent(room_id=room_id))
        return delivered

    # =========================================================================
    # 퇴장 / 연결 종료
    # =========================================================================

    def on_leave(self, connection_id: str):
        """userDisconnect 처리: 대기열/대화방에서 나가지만 연결은 유지"""
        participant = self.registry.get(connection_id)
        self._release(participant)

    def on_disconnect(self, connection_id: str):
        """전송 계층 연결 종료 처리: 정리 후 등록부에서 제거"""
        participant = self.registry.find(connection_id)
        if participant is None:
            return
        self._release(participant)
        self.registry.unregister(connection_id)
        log_websocket_event(logger, "disconnected", connection_id, participant.user_id)

    def _release(self, participant: Participant):
        connection_id = participant.connection_id

        if self.pool.remove(participant):
            log_matching_event(logger, "left_waiting_pool", connection_id)
            return

        room = self.relay.room_of(connection_id)
        if room is None:
            return

        partner = room.partner_of(connection_id)
        self.relay.teardown(room.room_id)
        if partner is not None:
            partner.send(UserLeftEvent(message=self.partner_left_message))
        log_matching_event(logger, "left_room", connection_id, room.room_id)

    # =========================================================================
    # 상태 조회
    # =========================================================================

    def status(self) -> MatchingStatusResponse:
        return MatchingStatusResponse(
            connected_count=len(self.registry),
            waiting_count=len(self.pool),
            active_room_count=self.relay.active_room_count,
        )
