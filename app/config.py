"""
인증 요청 서비스 설정 (.env 또는 환경 변수에서 읽음)
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # 데이터베이스
    DATABASE_URL: str = "sqlite:///./data/certifications.db"

    # 환경
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # 파일 저장
    DATA_DIR: str = "./data"
    UPLOAD_DIR: str = "./data/uploads"

    # 첨부 파일 크기 제한 (bytes)
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024
    MAX_PDF_BYTES: int = 10 * 1024 * 1024
    MAX_VIDEO_BYTES: int = 50 * 1024 * 1024

    # 유효 기간 토큰
    PERIODS: List[str] = ["1_YEAR", "2_YEARS", "3_YEARS"]

    # 심사 권한이 있는 역할
    REVIEWER_ROLES: List[str] = ["admin"]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
