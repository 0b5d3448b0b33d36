"""NetworkFetcher 기반 클래스와 네트워크 프로필.

한 번의 fetch는 다음 순서를 따릅니다:
    1. 라벨이 붙은 업스트림 쿼리 생성 (tps, gas, market, tvl, uptime)
    2. settle_all로 동시 실행 (쿼리별 타임아웃)
    3. 필드별로 성공한 쿼리 값(live) 또는 fallback 상수(estimated) 선택
    4. last_updated 기록 후 스냅샷 반환

Rules Applied:
    - 쿼리 하나의 실패는 다른 쿼리에 영향을 주지 않음 (settle-all)
    - 업스트림/파싱 에러는 필드 단위로 흡수, fetch_snapshot은 raise하지 않음
    - 그 외 예외는 전체 fallback 스냅샷으로 변환 (error 설정)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar

from sirscore.config.settings import get_settings
from sirscore.data.fanout import settle_all
from sirscore.data.formatting import format_compact_usd, format_usd, gas_cost_usd
from sirscore.data.models import NETWORK_METRIC_FIELDS, DataQuality, NetworkSnapshot
from sirscore.data.sources.market import fetch_chain_tvl, fetch_coin_market
from sirscore.logging.context import LoggingContext, generate_poll_id, get_network_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from decimal import Decimal

    from sirscore.config.settings import SirScoreSettings
    from sirscore.data.client import AsyncUpstreamClient
    from sirscore.data.fanout import Outcome
    from sirscore.data.models import CoinMarketData
    from sirscore.monitoring.metrics import SnapshotOutcome, UpstreamMetricsCallback

# Query labels shared by every network
QUERY_TPS = "tps"
QUERY_GAS = "gas"
QUERY_MARKET = "market"
QUERY_TVL = "tvl"
QUERY_UPTIME = "uptime"
QUERY_GAS_TOKEN = "gas_token"


@dataclass(frozen=True)
class NetworkProfile:
    """네트워크 식별 정보와 fallback 상수.

    Attributes:
        network_id: 네트워크 ID (예: "ethereum")
        display_name: 표시 이름 (예: "Ethereum")
        coingecko_id: CoinGecko coin id (예: "ethereum")
        llama_name: DeFiLlama 체인 이름 (None이면 TVL 조회 안 함)
        finality: 최종성 시간 (항상 상수)
        uptime: fallback 가동률 (%)
        tps: fallback TPS (None 허용)
        gas_price: fallback 전송 1건 비용 문자열
        market_cap: fallback 시가총액
        volume_24h: fallback 24시간 거래량
        tvl: fallback TVL
        price_change_24h: fallback 24시간 변화율 (%)
        gas_precision: 가스 비용 소수 자리수
        gas_units_per_tx: 단순 전송 1건의 가스 단위
        native_decimals: 네이티브 토큰 소수 자리수
        gas_token_id: 가스 토큰이 시장 데이터 코인과 다를 때의 CoinGecko id
        sources: 표시용 업스트림 목록
    """

    network_id: str
    display_name: str
    coingecko_id: str
    llama_name: str | None
    finality: str
    uptime: float
    tps: float | None
    gas_price: str | None
    market_cap: str
    volume_24h: str
    tvl: str
    price_change_24h: float
    gas_precision: int = 4
    gas_units_per_tx: int = 21_000
    native_decimals: int = 18
    gas_token_id: str | None = None
    sources: tuple[str, ...] = ()

    def fallback_values(self) -> dict[str, Any]:
        """메트릭 필드명 → fallback 상수."""
        return {
            "tps": self.tps,
            "gas_price": self.gas_price,
            "finality": self.finality,
            "uptime": self.uptime,
            "market_cap": self.market_cap,
            "volume_24h": self.volume_24h,
            "tvl": self.tvl,
            "price_change_24h": self.price_change_24h,
        }


class NetworkFetcher(ABC):
    """네트워크 스냅샷 fetcher 기반 클래스.

    서브클래스는 ``profile``과 TPS/가스 쿼리를 정의합니다. 시장 데이터와
    TVL 쿼리는 기반 클래스가 제공합니다.

    Example:
        >>> async with AsyncUpstreamClient() as client:
        ...     snapshot = await EthereumFetcher(client).fetch_snapshot()
        >>> snapshot.data_quality["gas_price"]
        <DataQuality.LIVE: 'live'>
    """

    profile: ClassVar[NetworkProfile]

    def __init__(
        self,
        client: AsyncUpstreamClient,
        settings: SirScoreSettings | None = None,
        *,
        metrics: UpstreamMetricsCallback | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize fetcher.

        Args:
            client: 공유 업스트림 HTTP 클라이언트 (열린 상태)
            settings: 타임아웃 / API 키 설정 (None이면 get_settings())
            metrics: 호출/스냅샷 메트릭 콜백 (선택)
            now: 현재 시각 함수 (테스트 주입용)
        """
        self._client = client
        self._settings = settings or get_settings()
        self._metrics = metrics
        self._now = now or (lambda: datetime.now(UTC))
        self._log = get_network_logger(network=self.profile.network_id, source="fetcher")

    @property
    def network_id(self) -> str:
        return self.profile.network_id

    # ------------------------------------------------------------------
    # Network-specific queries
    # ------------------------------------------------------------------

    @abstractmethod
    def tps_query(self) -> Awaitable[float | None] | None:
        """최근 TPS 쿼리 (None이면 건너뜀 → estimated)."""

    @abstractmethod
    def gas_query(self) -> Awaitable[Decimal | int] | None:
        """가스 단위당 가격 쿼리 (네이티브 최소 단위: wei, lamports, MIST)."""

    def uptime_query(self) -> Awaitable[float] | None:
        """가동률 쿼리. 기본값은 상수 (쿼리 없음)."""
        return None

    # ------------------------------------------------------------------
    # Shared queries
    # ------------------------------------------------------------------

    async def market_query(self) -> CoinMarketData:
        return await fetch_coin_market(self._client, self.profile.coingecko_id)

    async def tvl_query(self) -> float | None:
        if self.profile.llama_name is None:
            return None
        return await fetch_chain_tvl(self._client, self.profile.llama_name)

    async def gas_token_query(self) -> CoinMarketData:
        coin_id = self.profile.gas_token_id or self.profile.coingecko_id
        return await fetch_coin_market(self._client, coin_id)

    def build_queries(self) -> dict[str, Awaitable[Any]]:
        """실행할 쿼리 목록 (라벨 → awaitable). 건너뛴 쿼리는 포함되지 않음."""
        candidates: dict[str, Callable[[], Awaitable[Any] | None]] = {
            QUERY_TPS: self.tps_query,
            QUERY_GAS: self.gas_query,
            QUERY_MARKET: self.market_query,
            QUERY_UPTIME: self.uptime_query,
        }
        if self.profile.llama_name is not None:
            candidates[QUERY_TVL] = self.tvl_query
        if self.profile.gas_token_id is not None:
            candidates[QUERY_GAS_TOKEN] = self.gas_token_query

        queries: dict[str, Awaitable[Any]] = {}
        for label, factory in candidates.items():
            query = factory()
            if query is None:
                self._log.debug("Skipping {} query", label)
                continue
            queries[label] = query
        return queries

    # ------------------------------------------------------------------
    # Snapshot assembly
    # ------------------------------------------------------------------

    async def fetch_snapshot(self) -> NetworkSnapshot:
        """현재 스냅샷 조회.

        업스트림 실패로 raise하지 않습니다. 실패한 필드는 estimated로
        표시되고, 쿼리 격리 밖의 예외는 전체 fallback 스냅샷이 됩니다.
        """
        # Every record of this cycle, including upstream calls, carries the poll id
        with LoggingContext(network=self.profile.network_id, poll_id=generate_poll_id()):
            return await self._fetch_snapshot()

    async def _fetch_snapshot(self) -> NetworkSnapshot:
        try:
            queries = self.build_queries()
            outcomes = await settle_all(queries, timeout=self._settings.request_timeout)
            self._report_calls(outcomes)
            snapshot = self.assemble(outcomes)
        except Exception as e:
            self._log.exception("Snapshot assembly failed, serving fallback constants")
            snapshot = self.fallback_snapshot(str(e) or type(e).__name__)
            self._report_snapshot(snapshot, "fallback")
            return snapshot

        # Finality is never queried, so "complete" means every query that ran succeeded
        all_ok = all(o.ok for o in outcomes.values())
        outcome: SnapshotOutcome = "complete" if all_ok else "partial"
        self._report_snapshot(snapshot, outcome)
        self._log.info(
            "Snapshot assembled: {}/{} live fields",
            len(snapshot.live_fields),
            len(NETWORK_METRIC_FIELDS),
        )
        return snapshot

    def assemble(self, outcomes: dict[str, Outcome[Any]]) -> NetworkSnapshot:
        """쿼리 결과 → 스냅샷 (필드별 live/estimated 결정)."""
        values = self.profile.fallback_values()
        quality = dict.fromkeys(NETWORK_METRIC_FIELDS, DataQuality.ESTIMATED)

        def use(field: str, value: Any) -> None:
            values[field] = value
            quality[field] = DataQuality.LIVE

        tps = outcomes.get(QUERY_TPS)
        if tps is not None and tps.ok:
            use("tps", tps.value)

        market_outcome = outcomes.get(QUERY_MARKET)
        market: CoinMarketData | None = None
        if market_outcome is not None and market_outcome.ok:
            market = market_outcome.value
        if market is not None:
            if market.usd_market_cap is not None:
                use("market_cap", format_compact_usd(market.usd_market_cap))
            if market.usd_24h_vol is not None:
                use("volume_24h", format_compact_usd(market.usd_24h_vol))
            if market.usd_24h_change is not None:
                use("price_change_24h", round(market.usd_24h_change, 2))

        gas_token = market
        if self.profile.gas_token_id is not None:
            token_outcome = outcomes.get(QUERY_GAS_TOKEN)
            gas_token = token_outcome.value if token_outcome and token_outcome.ok else None

        gas = outcomes.get(QUERY_GAS)
        if gas is not None and gas.ok and gas_token is not None:
            cost = gas_cost_usd(
                gas.value,
                self.profile.gas_units_per_tx,
                self.profile.native_decimals,
                gas_token.usd,
            )
            use("gas_price", format_usd(cost, self.profile.gas_precision))

        tvl = outcomes.get(QUERY_TVL)
        if tvl is not None and tvl.ok:
            use("tvl", format_compact_usd(tvl.value))

        uptime = outcomes.get(QUERY_UPTIME)
        if uptime is not None and uptime.ok:
            use("uptime", uptime.value)

        return NetworkSnapshot(
            network=self.network_id,
            last_updated=self._now(),
            data_quality=quality,
            **values,
        )

    def fallback_snapshot(self, error: str) -> NetworkSnapshot:
        """모든 필드를 fallback 상수로 채운 스냅샷 (error 설정)."""
        return NetworkSnapshot(
            network=self.network_id,
            last_updated=self._now(),
            data_quality=dict.fromkeys(NETWORK_METRIC_FIELDS, DataQuality.ESTIMATED),
            error=error,
            **self.profile.fallback_values(),
        )

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def _report_calls(self, outcomes: dict[str, Outcome[Any]]) -> None:
        for label, outcome in outcomes.items():
            if outcome.error is not None:
                self._log.bind(source=label).warning(
                    "{} query failed ({}): {}",
                    label,
                    outcome.status,
                    outcome.error,
                )
            elif outcome.value is None:
                self._log.bind(source=label).warning("{} query returned no value", label)
            if self._metrics is not None:
                self._metrics.on_call(self.network_id, label, outcome.elapsed, outcome.status)

    def _report_snapshot(self, snapshot: NetworkSnapshot, outcome: SnapshotOutcome) -> None:
        if self._metrics is not None:
            self._metrics.on_snapshot(self.network_id, outcome, len(snapshot.live_fields))
