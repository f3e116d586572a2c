import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from app.services.color_service import ChatColorClassifier, extract_color


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def mock_client(**create_kwargs) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(**create_kwargs)
    return client


class TestExtractColor:
    """LLM 응답 파싱 테스트"""

    def test_json_inside_text(self):
        assert extract_color('기쁨이 느껴져요 {"color":"#ffcc00"} 입니다', "#aaaaaa") == "#ffcc00"

    def test_plain_json(self):
        assert extract_color('{"color": "#4169E1"}', "#aaaaaa") == "#4169E1"

    @pytest.mark.parametrize("content", [
        None,
        "",
        "색상을 모르겠어요",
        '{"color": "blue"}',
        '{"colour": "#ffcc00"}',
        "{not json}",
        '{"color": "#fff"}',
    ])
    def test_falls_back_to_default(self, content):
        assert extract_color(content, "#aaaaaa") == "#aaaaaa"


class TestChatColorClassifier:
    """말풍선 색상 분류기 테스트"""

    @pytest.mark.asyncio
    async def test_disabled_without_api_key(self):
        """API 키가 없으면 호출 없이 기본 색상"""
        classifier = ChatColorClassifier(api_key=None, default_color="#aaaaaa")

        assert classifier.enabled is False
        assert await classifier.classify("오늘 너무 행복해") == "#aaaaaa"

    @pytest.mark.asyncio
    async def test_returns_llm_color(self):
        """LLM 응답의 색상 사용, 메시지는 user 역할로 전달"""
        client = mock_client(return_value=completion('{"color":"#ff69b4"}'))
        classifier = ChatColorClassifier(client=client, model="test-model", default_color="#aaaaaa")

        assert await classifier.classify("설레는 하루") == "#ff69b4"

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"][-1] == {"role": "user", "content": "설레는 하루"}

    @pytest.mark.asyncio
    async def test_unparseable_response_uses_default(self):
        client = mock_client(return_value=completion("잘 모르겠습니다"))
        classifier = ChatColorClassifier(client=client, default_color="#aaaaaa")

        assert await classifier.classify("음") == "#aaaaaa"

    @pytest.mark.asyncio
    async def test_empty_choices_uses_default(self):
        client = mock_client(return_value=SimpleNamespace(choices=[]))
        classifier = ChatColorClassifier(client=client, default_color="#aaaaaa")

        assert await classifier.classify("음") == "#aaaaaa"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [OpenAIError("boom"), asyncio.TimeoutError()])
    async def test_api_failure_uses_default(self, error):
        """API 오류/타임아웃 시 기본 색상 (채팅은 계속 전달)"""
        client = mock_client(side_effect=error)
        classifier = ChatColorClassifier(client=client, default_color="#aaaaaa")

        assert await classifier.classify("화가 나") == "#aaaaaa"

    @pytest.mark.asyncio
    async def test_slow_response_times_out(self):
        """타임아웃을 넘긴 응답은 기다리지 않음"""

        async def slow(**kwargs):
            await asyncio.sleep(1)
            return completion('{"color":"#000000"}')

        client = MagicMock()
        client.chat.completions.create = slow
        classifier = ChatColorClassifier(client=client, timeout=0.01, default_color="#aaaaaa")

        assert await classifier.classify("느린 응답") == "#aaaaaa"
