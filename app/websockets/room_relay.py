import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

from app.schemas.matching import ChatMessageEvent
from app.websockets.connection_manager import Participant

logger = logging.getLogger(__name__)


def generate_room_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Room:
    """두 명이 참여한 임시 대화방"""
    room_id: str
    members: Tuple[Participant, Participant]
    created_at: datetime = field(default_factory=datetime.utcnow)

    def partner_of(self, connection_id: str) -> Optional[Participant]:
        first, second = self.members
        if first.connection_id == connection_id:
            return second
        if second.connection_id == connection_id:
            return first
        return None


class RoomRelay:
    """대화방 멤버십 관리와 1:1 메시지 중계"""

    def __init__(self, room_id_factory: Callable[[], str] = generate_room_id):
        self._room_id_factory = room_id_factory
        # {room_id: Room}
        self._rooms: Dict[str, Room] = {}
        # {connection_id: room_id}
        self._membership: Dict[str, str] = {}

    def create_room(self, first: Participant, second: Participant) -> str:
        """두 참여자를 새 대화방에 등록하고 room id를 반환합니다."""
        if first.connection_id == second.connection_id:
            raise ValueError("A room needs two distinct participants")
        for member in (first, second):
            if member.connection_id in self._membership:
                raise ValueError(f"Connection {member.connection_id} is already in a room")

        room_id = self._room_id_factory()
        while room_id in self._rooms:
            room_id = self._room_id_factory()

        self._rooms[room_id] = Room(room_id=room_id, members=(first, second))
        self._membership[first.connection_id] = room_id
        self._membership[second.connection_id] = room_id
        logger.info(f"Room {room_id} created for {first.connection_id} and {second.connection_id}")
        return room_id

    def relay(self, room_id: str, sender_id: str, chat_event: ChatMessageEvent) -> bool:
        """
        발신자가 아닌 다른 멤버에게만 메시지를 전달합니다.

        Returns:
            bool: 전달했으면 True. 방이 없거나 발신자가 멤버가 아니면 False.
        """
        room = self._rooms.get(room_id)
        if room is None:
            logger.info(f"Dropped chat from {sender_id}: room {room_id} is not active")
            return False

        recipient = room.partner_of(sender_id)
        if recipient is None:
            logger.warning(f"Dropped chat from {sender_id}: not a member of room {room_id}")
            return False

        return recipient.send(chat_event)

    def teardown(self, room_id: str) -> Optional[Room]:
        """대화방과 두 멤버의 매핑을 제거합니다. 이미 없으면 None."""
        room = self._rooms.pop(room_id, None)
        if room is None:
            return None
        for member in room.members:
            if self._membership.get(member.connection_id) == room_id:
                del self._membership[member.connection_id]
        logger.info(f"Room {room_id} torn down")
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_of(self, connection_id: str) -> Optional[Room]:
        room_id = self._membership.get(connection_id)
        if room_id is None:
            return None
        return self._rooms.get(room_id)

    def partner_of(self, connection_id: str) -> Optional[Participant]:
        room = self.room_of(connection_id)
        if room is None:
            return None
        return room.partner_of(connection_id)

    @property
    def active_room_count(self) -> int:
        return len(self._rooms)
