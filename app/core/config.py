from typing import List, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    # MongoDB (사용자 프로필 / 감정 기록 조회)
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "appdb"
    mongo_server_selection_timeout_ms: int = 2000

    # JWT (다이어리 API와 같은 시크릿 사용)
    secret_key: str = "dev-secret-change-me"
    algorithm: str = "HS256"
    token_cookie_name: str = "token"

    debug: bool = False
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]
    log_dir: str = "logs"

    # 채팅 말풍선 색상 분류
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4.1-nano"
    color_classifier_timeout: float = 5.0
    default_chat_color: str = "#aaaaaa"

    # 매칭
    partner_left_message: str = "상대방이 대화방을 나갔습니다."
    profile_stats_days: int = 7

    class Config:
        env_file = ".env"


settings = Settings()
