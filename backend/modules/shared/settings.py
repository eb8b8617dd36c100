"""
===========================================
릴레이 서버 설정 모듈
===========================================

토큰 릴레이 서버(app.py)의 설정을 관리합니다.
- config/.env 파일 또는 시스템 환경 변수에서 로딩
- 설정값 유효성 검증

사용 예시:
    from modules.shared import get_settings
    print(get_settings().PORT)
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

_ENV_FILE = Path(__file__).parent.parent.parent / "config" / ".env"


class Settings(BaseSettings):
    """
    릴레이 서버 설정 클래스

    OPENAI_API_KEY는 서버에만 보관되며 /token 응답으로 직접 노출되지 않습니다.
    """

    # ==========================================
    # OpenAI API 설정
    # ==========================================
    OPENAI_API_KEY: Optional[str] = Field(
        default=None,
        description="에페메랄 토큰 발급용 장기 API 키 (미설정 시 /token은 500)"
    )

    # ==========================================
    # 서버 설정
    # ==========================================
    HOST: str = Field(default="0.0.0.0", description="서버 호스트")
    PORT: int = Field(default=3000, description="서버 포트")
    ENV: str = Field(default="development", description="실행 환경")

    STATIC_DIR: str = Field(
        default="static",
        description="정적 파일 디렉토리 (존재할 때만 서빙)"
    )

    # ==========================================
    # 로깅 설정
    # ==========================================
    LOG_LEVEL: str = Field(default="INFO", description="로그 레벨")
    LOG_DIR: str = Field(default="logs", description="로그 파일 디렉토리")

    @field_validator('LOG_LEVEL')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """로그 레벨 유효성 검증"""
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL은 {allowed} 중 하나여야 합니다.")
        return v.upper()

    @field_validator('OPENAI_API_KEY')
    @classmethod
    def blank_key_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """빈 문자열은 미설정으로 취급"""
        if v is not None and not v.strip():
            return None
        return v

    class Config:
        """Pydantic 설정"""
        env_file = str(_ENV_FILE)
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    설정 싱글톤 인스턴스 반환

    설정 재로딩이 필요하면 get_settings.cache_clear()를 호출하세요.
    """
    return Settings()
