from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    # 저장소 백엔드: sql | mongodb | memory
    storage_backend: str = "sql"
    database_url: str = "sqlite+aiosqlite:///./monadssenger.db"
    mongo_url: str = "mongodb://localhost:27017"
    mongo_db_name: str = "monadssenger"
    # 백엔드 초기화 실패 시 인메모리 저장소로 대체
    fallback_to_memory: bool = False

    debug: bool = False
    cors_origins: List[str] = ["http://localhost:3000"]
    log_to_file: bool = False
    log_dir: str = "logs"

    default_room: str = "lobby"
    message_max_length: int = 1000
    message_list_default_limit: int = 50
    message_list_max_limit: int = 1000
    typing_ttl_seconds: int = 10

    # 서버 측 메시지 전송 제한 (기본 비활성)
    rate_limit_enabled: bool = False
    rate_limit_max_messages: int = 3
    rate_limit_window_seconds: int = 5
    redis_url: str = "redis://localhost:6379/0"

    class Config:
        env_file = ".env"


settings = Settings()
