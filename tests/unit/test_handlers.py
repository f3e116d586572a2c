import pytest

from app.core.errors import InvalidEventError
from app.domain.events import ChatSubmitted, LeaveRequested, MatchCancelled, MatchRequested
from app.services.color_service import ChatColorClassifier
from app.websockets.handlers import WebSocketMessageHandler

from conftest import FakeChannel


@pytest.fixture
def handler(service) -> WebSocketMessageHandler:
    return WebSocketMessageHandler(service, ChatColorClassifier(api_key=None, default_color="#aaaaaa"))


def submitted(service) -> list:
    events = []
    while not service.inbox.empty():
        events.append(service.inbox.get_nowait())
    return events


class TestWebSocketMessageHandler:
    """프레임 -> 도메인 이벤트 변환 테스트"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("frame_type, event_type", [
        ("startMatching", MatchRequested),
        ("cancelMatch", MatchCancelled),
        ("userDisconnect", LeaveRequested),
    ])
    async def test_control_frames(self, handler, service, frame_type, event_type):
        await handler.handle_message("c1", FakeChannel(), {"type": frame_type})

        events = submitted(service)
        assert len(events) == 1
        assert isinstance(events[0], event_type)
        assert events[0].connection_id == "c1"

    @pytest.mark.asyncio
    async def test_chat_is_colored_and_submitted(self, handler, service):
        """클라이언트가 보낸 user 값은 무시"""
        await handler.handle_message("c1", FakeChannel(), {
            "type": "chat",
            "roomId": "room-1",
            "text": "안녕하세요",
            "user": "someone-else",
        })

        [event] = submitted(service)
        assert isinstance(event, ChatSubmitted)
        assert event.connection_id == "c1"
        assert event.room_id == "room-1"
        assert event.text == "안녕하세요"
        assert event.color == "#aaaaaa"

    @pytest.mark.asyncio
    async def test_ping_answers_directly(self, handler, service):
        """ping은 디스패처를 거치지 않고 pong 응답"""
        channel = FakeChannel()

        await handler.handle_message("c1", channel, {"type": "ping"})

        assert channel.of_type("pong")
        assert submitted(service) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [
        ["startMatching"],
        "startMatching",
        {},
        {"type": "joinRoom"},
    ])
    async def test_invalid_frames(self, handler, service, data):
        with pytest.raises(InvalidEventError) as exc_info:
            await handler.handle_message("c1", FakeChannel(), data)

        assert exc_info.value.to_dict()["error_code"] == "invalid_event"
        assert submitted(service) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("data", [
        {"type": "chat", "text": "roomId 없음"},
        {"type": "chat", "roomId": "room-1", "text": ""},
        {"type": "chat", "roomId": "room-1", "text": "   "},
        {"type": "chat", "roomId": "room-1", "text": "x" * 2001},
    ])
    async def test_invalid_chat_payloads(self, handler, service, data):
        with pytest.raises(InvalidEventError) as exc_info:
            await handler.handle_message("c1", FakeChannel(), data)

        assert "fields" in exc_info.value.details
        assert submitted(service) == []
