"""Snapshot models and upstream response schemas.

Pydantic V2 frozen models. Every upstream payload goes through
``parse_payload`` before any field is read, so a missing or malformed value
surfaces as a ``SchemaValidationError`` instead of a silent ``None``.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from sirscore.core.exceptions import SchemaValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

_FRACTION_RE = re.compile(r"(\.\d+)")

# =============================================================================
# Snapshot Models
# =============================================================================


class DataQuality(StrEnum):
    """필드별 데이터 출처 표시.

    LIVE: 해당 필드를 만든 업스트림 호출이 성공하고 값이 파싱됨
    ESTIMATED: 하드코딩된 fallback 상수
    """

    LIVE = "live"
    ESTIMATED = "estimated"


NETWORK_METRIC_FIELDS: tuple[str, ...] = (
    "tps",
    "gas_price",
    "finality",
    "uptime",
    "market_cap",
    "volume_24h",
    "tvl",
    "price_change_24h",
)

DEVELOPER_METRIC_FIELDS: tuple[str, ...] = (
    "active_developers",
    "repositories",
    "monthly_commits",
    "ecosystem",
)


def _ensure_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=UTC)
    return v.astimezone(UTC)


def _check_quality_keys(data_quality: dict[str, DataQuality], fields: tuple[str, ...]) -> None:
    missing = [f for f in fields if f not in data_quality]
    extra = [k for k in data_quality if k not in fields]
    if missing or extra:
        msg = f"data_quality must cover exactly {fields} (missing={missing}, extra={extra})"
        raise ValueError(msg)


class NetworkSnapshot(BaseModel):
    """한 네트워크의 특정 시점 메트릭 스냅샷.

    새 polling 결과는 항상 새 스냅샷이며 기존 스냅샷을 변경하지 않습니다.

    Attributes:
        network: 네트워크 ID (예: "ethereum")
        tps: 초당 트랜잭션 수 (관측값 또는 추정값)
        gas_price: 단순 전송 1건의 USD 비용 (예: "$0.002")
        finality: 최종성 시간 (예: "0.4s")
        uptime: 가동률 (%)
        market_cap: 시가총액 (예: "$445.8B")
        volume_24h: 24시간 거래량
        tvl: Total Value Locked
        price_change_24h: 24시간 가격 변화율 (%)
        last_updated: 스냅샷 조립 시각 (UTC)
        data_quality: 필드별 live/estimated 표시
        error: 전체 fallback 경로에서만 설정
    """

    model_config = ConfigDict(frozen=True)

    network: str
    tps: float | None
    gas_price: str | None
    finality: str
    uptime: float = Field(..., ge=0, le=100)
    market_cap: str
    volume_24h: str
    tvl: str
    price_change_24h: float
    last_updated: datetime
    data_quality: dict[str, DataQuality]
    error: str | None = None

    @field_validator("last_updated")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Naive datetime → UTC."""
        return _ensure_utc(v)

    @model_validator(mode="after")
    def check_quality_coverage(self) -> NetworkSnapshot:
        """모든 메트릭 필드가 data_quality 항목을 가져야 함."""
        _check_quality_keys(self.data_quality, NETWORK_METRIC_FIELDS)
        return self

    @property
    def live_fields(self) -> list[str]:
        """live 필드 목록 (NETWORK_METRIC_FIELDS 순서)."""
        return [f for f in NETWORK_METRIC_FIELDS if self.data_quality[f] is DataQuality.LIVE]

    @property
    def is_fully_live(self) -> bool:
        return len(self.live_fields) == len(NETWORK_METRIC_FIELDS)

    @property
    def is_fallback(self) -> bool:
        """전체 fallback 스냅샷 여부."""
        return self.error is not None


class DeveloperActivitySnapshot(BaseModel):
    """네트워크 생태계의 개발자 활동 스냅샷.

    repositories만 GitHub 검색으로 live 갱신되며 나머지는 정적 기준값입니다.
    """

    model_config = ConfigDict(frozen=True)

    network: str
    active_developers: int = Field(..., ge=0)
    repositories: int = Field(..., ge=0)
    monthly_commits: int = Field(..., ge=0)
    ecosystem: str
    last_updated: datetime
    data_quality: dict[str, DataQuality]
    error: str | None = None

    @field_validator("last_updated")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return _ensure_utc(v)

    @model_validator(mode="after")
    def check_quality_coverage(self) -> DeveloperActivitySnapshot:
        _check_quality_keys(self.data_quality, DEVELOPER_METRIC_FIELDS)
        return self

    @property
    def is_live(self) -> bool:
        return any(q is DataQuality.LIVE for q in self.data_quality.values())


# =============================================================================
# Upstream Schemas
# =============================================================================


def hex_to_int(v: Any) -> int:
    """``"0x1b4"`` / ``436`` / ``"436"`` → 436."""
    if isinstance(v, bool):
        msg = "boolean is not a quantity"
        raise ValueError(msg)
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        text = v.strip()
        if text.lower().startswith("0x"):
            return int(text, 16)
        return int(text)
    msg = f"expected hex or integer quantity, got {type(v).__name__}"
    raise ValueError(msg)


class EvmBlock(BaseModel):
    """eth_getBlockByNumber 결과 (hydrated=false).

    number/timestamp는 hex quantity, transactions는 해시 또는 객체 리스트.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    number: int
    timestamp: int
    transactions: list[Any] = Field(default_factory=list)

    @field_validator("number", "timestamp", mode="before")
    @classmethod
    def parse_quantity(cls, v: Any) -> int:
        return hex_to_int(v)

    @property
    def tx_count(self) -> int:
        return len(self.transactions)


class GasOracleResult(BaseModel):
    """Etherscan 계열 gastracker/gasoracle 결과 (gwei 단위 decimal 문자열)."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    propose_gas_price: Decimal = Field(..., alias="ProposeGasPrice", ge=0)
    safe_gas_price: Decimal | None = Field(default=None, alias="SafeGasPrice", ge=0)
    fast_gas_price: Decimal | None = Field(default=None, alias="FastGasPrice", ge=0)


class CoinMarketData(BaseModel):
    """CoinGecko /simple/price 단일 코인 결과."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    usd: float = Field(..., gt=0)
    usd_market_cap: float | None = Field(default=None, ge=0)
    usd_24h_vol: float | None = Field(default=None, ge=0)
    usd_24h_change: float | None = None


class LlamaTvlEntry(BaseModel):
    """DeFiLlama /v2/chains 또는 /protocols 항목."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    tvl: float | None = Field(default=None, ge=0)


class SolanaPerformanceSample(BaseModel):
    """getRecentPerformanceSamples 항목."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    num_transactions: int = Field(..., alias="numTransactions", ge=0)
    sample_period_secs: int = Field(..., alias="samplePeriodSecs", ge=0)
    num_slots: int = Field(default=0, alias="numSlots", ge=0)


class TendermintHeader(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    height: int
    time: datetime

    @field_validator("time", mode="before")
    @classmethod
    def trim_nanoseconds(cls, v: Any) -> Any:
        """RFC 3339 나노초 → 마이크로초 (``.123456789Z`` → ``.123456Z``)."""
        if isinstance(v, str):
            return _FRACTION_RE.sub(lambda m: m.group(1)[:7], v)
        return v

    @field_validator("time")
    @classmethod
    def normalize_time(cls, v: datetime) -> datetime:
        return _ensure_utc(v)


class TendermintBlockData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    txs: list[str] | None = None


class TendermintBlock(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    header: TendermintHeader
    data: TendermintBlockData = Field(default_factory=TendermintBlockData)

    @property
    def tx_count(self) -> int:
        return len(self.data.txs or [])


class TendermintBlockResponse(BaseModel):
    """/cosmos/base/tendermint/v1beta1/blocks/{height} 응답."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    block: TendermintBlock


class TendermintValidator(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    address: str = ""
    voting_power: int = Field(..., ge=0)


class TendermintValidatorSet(BaseModel):
    """/cosmos/base/tendermint/v1beta1/validatorsets/latest 응답."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    validators: list[TendermintValidator] = Field(..., min_length=1)


class SuiCheckpoint(BaseModel):
    """sui_getCheckpoint 결과 (숫자는 문자열로 전달됨)."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    sequence_number: int = Field(..., alias="sequenceNumber", ge=0)
    timestamp_ms: int = Field(..., alias="timestampMs", ge=0)
    network_total_transactions: int = Field(..., alias="networkTotalTransactions", ge=0)


class SuiValidator(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    staking_pool_sui_balance: int = Field(..., alias="stakingPoolSuiBalance", ge=0)


class SuiSystemState(BaseModel):
    """suix_getLatestSuiSystemState 결과 (필요한 필드만)."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    active_validators: list[SuiValidator] = Field(..., alias="activeValidators", min_length=1)


class GithubSearchResult(BaseModel):
    """GitHub /search/repositories 응답."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total_count: int = Field(..., ge=0)


# =============================================================================
# Parsing Helper
# =============================================================================


def parse_payload(model: type[ModelT], payload: Any, *, source: str | None = None) -> ModelT:
    """업스트림 payload를 스키마로 검증.

    Args:
        model: 대상 Pydantic 모델
        payload: JSON 디코딩된 응답
        source: 에러 컨텍스트용 소스 이름

    Returns:
        검증된 모델 인스턴스

    Raises:
        SchemaValidationError: 검증 실패
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise SchemaValidationError(
            f"Unexpected {model.__name__} payload",
            context={"source": source or "unknown", "errors": e.error_count()},
        ) from e
