"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./survey_lifecycle.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT (발급은 외부 IdP 담당, 여기서는 검증만 수행)
    ALGORITHM: str = "HS256"
    ADMIN_ROLE: str = "admin"

    LOG_LEVEL: str = "INFO"

    # 복제/신규 버전 생성 시 이름 뒤에 붙는 표식
    NEW_VERSION_SUFFIX: str = " (New Version)"
    COPY_SUFFIX: str = " (Copy)"

    class Config:
        # 실행 cwd와 무관하게 프로젝트 루트의 .env를 로드한다.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
