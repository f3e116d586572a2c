"""
채팅 말풍선 색상 분류 서비스

메시지에 담긴 감정을 LLM에게 색상(#rrggbb)으로 변환하게 합니다.
API 키가 없거나, 호출이 실패하거나, 응답에서 색상을 찾지 못하면 기본 색상을 사용합니다.
"""

import asyncio
import json
import re
from typing import Any, Optional

from openai import AsyncOpenAI, OpenAIError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "사용자가 입력한 문장의 감정을 파악하고 감정에 어울리는 색상을 "
    '{"color":"#ffffff"} 형태로 만들어'
)

_JSON_OBJECT = re.compile(r"\{[^}]+\}")
_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


def extract_color(content: Optional[str], default: str) -> str:
    """
    LLM 응답에서 {"color": "#rrggbb"} 를 찾아 색상을 반환합니다.

    Examples:
        >>> extract_color('결과: {"color":"#ffcc00"}', "#aaaaaa")
        '#ffcc00'
        >>> extract_color("모르겠어요", "#aaaaaa")
        '#aaaaaa'
    """
    if not content:
        return default

    match = _JSON_OBJECT.search(content)
    if not match:
        return default

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return default

    color = data.get("color") if isinstance(data, dict) else None
    if isinstance(color, str) and _HEX_COLOR.match(color):
        return color
    return default


class ChatColorClassifier:
    """메시지 감정 -> 말풍선 색상"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        default_color: Optional[str] = None,
        client: Any = None,
    ):
        self.model = model or settings.openai_model
        self.timeout = timeout if timeout is not None else settings.color_classifier_timeout
        self.default_color = default_color or settings.default_chat_color

        if client is not None:
            self.client = client
        elif api_key:
            self.client = AsyncOpenAI(api_key=api_key, timeout=self.timeout, max_retries=0)
        else:
            self.client = None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def classify(self, text: str) -> str:
        """메시지 색상 반환 (실패 시 기본 색상)"""
        if not self.enabled:
            return self.default_color

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": SYSTEM_PROMPT},
                        {"role": "user", "content": text},
                    ],
                    temperature=0,
                ),
                timeout=self.timeout,
            )
        except (OpenAIError, asyncio.TimeoutError) as e:
            logger.warning(f"Chat color classification failed: {type(e).__name__}: {e}")
            return self.default_color

        if not response.choices:
            return self.default_color
        return extract_color(response.choices[0].message.content, self.default_color)
