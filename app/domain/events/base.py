"""
Domain Event Base Class
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Dict


@dataclass
class DomainEvent:
    """
    매칭 디스패처가 처리하는 이벤트의 기본 클래스.

    모든 이벤트는 어느 연결에서 왔는지(connection_id)와 수신 시각을 가집니다.
    """
    connection_id: str
    timestamp: datetime

    @property
    def event_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """로그용 dict 변환 (repr=False 필드는 제외)"""
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.repr}
        data['timestamp'] = self.timestamp.isoformat()
        data['__event_type__'] = self.event_type
        return data
