"""Pydantic Settings for configuration management.

This module provides centralized configuration management using
pydantic-settings. All settings are loaded from environment variables
and/or .env files with type validation.

Features:
    - SecretStr for optional API keys (auto-masking in logs)
    - Per-call timeout and polling intervals
    - Per-source rate limits for public APIs
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Free-tier limits of the public upstreams (requests per minute)
DEFAULT_SOURCE_RATE_LIMITS: dict[str, int] = {
    "etherscan": 300,
    "polygonscan": 300,
    "bscscan": 300,
    "coingecko": 30,
    "defillama": 60,
    "github": 10,
}


class SirScoreSettings(BaseSettings):
    """Live network data 설정.

    환경 변수 또는 .env 파일에서 설정을 로드합니다.
    API 키는 SecretStr로 보호되어 로그에 노출되지 않습니다.
    키가 비어 있으면 해당 업스트림만 건너뛰고 필드는 estimated로 표시됩니다.

    Environment Variables:
        - ETHERSCAN_API_KEY / POLYGONSCAN_API_KEY / BSCSCAN_API_KEY: 스캐너 API 키
        - GITHUB_TOKEN: GitHub 검색 API 토큰 (선택, rate limit 완화)
        - REQUEST_TIMEOUT: 호출별 타임아웃 (초, 기본 10)
        - PRICE_REFRESH_INTERVAL: 네트워크 데이터 polling 주기 (초, 기본 30)
        - DEVELOPER_REFRESH_INTERVAL: 개발자 활동 polling 주기 (초, 기본 300)
        - BLOCKS_TO_SAMPLE: TPS 계산에 사용하는 최근 블록 수 (기본 10)
        - LOG_DIR: 로그 저장 경로 (기본: logs)

    Example:
        >>> settings = get_settings()
        >>> settings.request_timeout
        10.0
        >>> settings.etherscan_api_key
        SecretStr('**********')
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # 알 수 없는 환경 변수 무시
    )

    # ==========================================================================
    # API Credentials (SecretStr for security)
    # ==========================================================================
    etherscan_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Etherscan API Key",
    )
    polygonscan_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Polygonscan API Key",
    )
    bscscan_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="BscScan API Key",
    )
    github_token: SecretStr = Field(
        default=SecretStr(""),
        description="GitHub token for the repository search API",
    )

    # ==========================================================================
    # Timeouts & Polling
    # ==========================================================================
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        le=120.0,
        description="업스트림 호출별 타임아웃 (초)",
    )
    price_refresh_interval: float = Field(
        default=30.0,
        gt=0,
        description="가격/체인 데이터 polling 주기 (초)",
    )
    developer_refresh_interval: float = Field(
        default=300.0,
        gt=0,
        description="개발자 활동 데이터 polling 주기 (초)",
    )
    blocks_to_sample: int = Field(
        default=10,
        ge=2,
        le=100,
        description="TPS 계산용 최근 블록 수",
    )

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    source_rate_limits: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_SOURCE_RATE_LIMITS),
        description="소스별 분당 최대 요청 수",
    )
    default_rate_limit: int = Field(
        default=120,
        ge=1,
        description="목록에 없는 소스의 분당 최대 요청 수",
    )

    # ==========================================================================
    # Paths
    # ==========================================================================
    log_dir: Path = Field(
        default=Path("logs"),
        description="로그 파일 저장 경로",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("log_dir", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """문자열을 Path 객체로 변환."""
        return Path(v) if isinstance(v, str) else v

    # ==========================================================================
    # Helper Methods
    # ==========================================================================
    def rate_limit_for(self, source: str) -> int:
        """소스의 분당 요청 한도 반환 (미등록 소스는 default_rate_limit)."""
        return self.source_rate_limits.get(source, self.default_rate_limit)

    def scanner_api_key(self, scanner: str) -> str:
        """스캐너 이름에 해당하는 API 키 평문 반환 (없으면 빈 문자열).

        Args:
            scanner: "etherscan" | "polygonscan" | "bscscan"
        """
        keys = {
            "etherscan": self.etherscan_api_key,
            "polygonscan": self.polygonscan_api_key,
            "bscscan": self.bscscan_api_key,
        }
        secret = keys.get(scanner)
        return secret.get_secret_value() if secret is not None else ""


@lru_cache
def get_settings() -> SirScoreSettings:
    """설정 싱글톤 인스턴스 반환.

    lru_cache를 사용하여 설정 객체를 캐싱합니다.

    Returns:
        SirScoreSettings 인스턴스
    """
    return SirScoreSettings()


def clear_settings_cache() -> None:
    """설정 캐시 초기화 (테스트용)."""
    get_settings.cache_clear()
