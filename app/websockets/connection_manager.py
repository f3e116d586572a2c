import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterator, Optional, Protocol

from fastapi import WebSocket, status

from app.core.errors import DuplicateConnectionError, UnregisteredConnectionError
from app.schemas.matching import CamelModel, ParticipantProfile

logger = logging.getLogger(__name__)


class EventChannel(Protocol):
    """참여자에게 이벤트를 전달하는 출력 채널"""

    def push(self, payload: dict) -> bool:
        ...


class WebSocketChannel:
    """
    연결별 송신 큐와 writer task.

    push()는 큐에 넣기만 하고 바로 반환합니다. 실제 전송은 writer task가
    순서대로 수행하므로 매칭 디스패처는 네트워크 I/O를 기다리지 않습니다.
    """

    def __init__(self, websocket: WebSocket, connection_id: str, max_pending: int = 256):
        self.websocket = websocket
        self.connection_id = connection_id
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self._writer: Optional[asyncio.Task] = None
        self._abort_task: Optional[asyncio.Task] = None

    def start(self):
        """writer task 시작"""
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain())

    def push(self, payload: dict) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            logger.warning(f"Outbound queue full for connection {self.connection_id}, closing")
            self.closed = True
            # 소켓을 닫으면 리더 루프가 종료되어 ConnectionClosed가 제출됨
            self._abort_task = asyncio.create_task(self._abort(status.WS_1013_TRY_AGAIN_LATER))
            return False
        return True

    async def _drain(self):
        while True:
            payload = await self._queue.get()
            try:
                await self.websocket.send_json(payload)
            except Exception as e:
                logger.error(f"Failed to send JSON to connection {self.connection_id}: {e}")
                self.closed = True
                await self._close_socket(status.WS_1011_INTERNAL_ERROR)
                return

    async def _abort(self, code: int):
        """writer를 중단하고 소켓을 닫습니다 (송신 큐 초과 시)."""
        await self._cancel_writer()
        await self._close_socket(code)

    async def _close_socket(self, code: int):
        try:
            await self.websocket.close(code=code)
        except RuntimeError:
            # 이미 닫힌 소켓
            pass

    async def _cancel_writer(self):
        if self._writer is None or self._writer is asyncio.current_task():
            return
        self._writer.cancel()
        try:
            await self._writer
        except asyncio.CancelledError:
            pass
        self._writer = None

    async def close(self):
        """채널 종료 (writer task 정리)"""
        self.closed = True
        await self._cancel_writer()


@dataclass
class Participant:
    """연결된(인증된) 매칭 참여자"""
    connection_id: str
    user_id: str
    email: str
    profile: ParticipantProfile
    channel: EventChannel = field(repr=False, compare=False)
    connected_at: datetime = field(default_factory=datetime.utcnow)

    def send(self, event: CamelModel) -> bool:
        """이벤트를 fire-and-forget으로 전송합니다."""
        return self.channel.push(event.to_payload())


class ConnectionRegistry:
    """connection id 기준 참여자 등록부"""

    def __init__(self):
        # {connection_id: Participant}
        self._participants: Dict[str, Participant] = {}

    def register(
        self,
        connection_id: str,
        user_id: str,
        email: str,
        profile: ParticipantProfile,
        channel: EventChannel,
    ) -> Participant:
        """새 참여자를 등록합니다."""
        if connection_id in self._participants:
            raise DuplicateConnectionError(connection_id)

        participant = Participant(
            connection_id=connection_id,
            user_id=user_id,
            email=email,
            profile=profile,
            channel=channel,
        )
        self._participants[connection_id] = participant
        logger.info(f"Connection {connection_id} registered for user {user_id}")
        return participant

    def unregister(self, connection_id: str) -> Optional[Participant]:
        """참여자를 제거하고 반환합니다. 등록되지 않은 경우 None."""
        participant = self._participants.pop(connection_id, None)
        if participant:
            logger.info(f"Connection {connection_id} unregistered")
        return participant

    def get(self, connection_id: str) -> Participant:
        participant = self._participants.get(connection_id)
        if participant is None:
            raise UnregisteredConnectionError(connection_id)
        return participant

    def find(self, connection_id: str) -> Optional[Participant]:
        return self._participants.get(connection_id)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._participants

    def __len__(self) -> int:
        return len(self._participants)

    def __iter__(self) -> Iterator[Participant]:
        return iter(list(self._participants.values()))
