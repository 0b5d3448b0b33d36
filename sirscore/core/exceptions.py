"""Custom exception hierarchy for the live network data layer.

Exceptions are categorized by where they are expected to be absorbed.

Exception Categories:
    - Upstream (absorbed per field): transport, status, timeout, JSON-RPC errors
    - Data validation (absorbed per field): unparseable or unexpected payloads
    - Configuration (fail fast): unknown network, missing parameters

Upstream and validation errors never escape a network fetcher; they turn the
affected field into an ``estimated`` value. Anything else reaching the fetcher
boundary triggers the all-fallback snapshot.
"""


class SirScoreError(Exception):
    """모든 도메인 예외의 기본 클래스.

    이 예외를 직접 발생시키지 말고, 하위 클래스를 사용하세요.

    Attributes:
        message: 에러 메시지
        context: 추가 컨텍스트 정보 (디버깅용)
    """

    def __init__(self, message: str, *, context: dict[str, object] | None = None) -> None:
        """SirScoreError 초기화.

        Args:
            message: 에러 메시지
            context: 추가 컨텍스트 정보 (선택)
        """
        super().__init__(message)
        self.message = message
        self.context: dict[str, object] = context or {}

    def __str__(self) -> str:
        """에러 메시지와 컨텍스트를 포함한 문자열 반환."""
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


# =============================================================================
# Upstream Errors (Recovered locally - field falls back to estimate)
# =============================================================================


class UpstreamError(SirScoreError):
    """외부 API 호출 관련 오류의 기본 클래스.

    재시도하지 않습니다. 다음 polling 주기가 재시도 역할을 합니다.
    """


class NetworkError(UpstreamError):
    """네트워크 연결 오류 또는 non-2xx 응답.

    Example:
        >>> raise NetworkError(
        ...     "HTTP 503 from coingecko",
        ...     context={"url": "https://api.coingecko.com/api/v3/simple/price"}
        ... )
    """


class RateLimitError(UpstreamError):
    """API 레이트 리밋 초과 (HTTP 429).

    Attributes:
        retry_after: 서버가 알려준 대기 시간 (초, 없으면 None)
    """

    def __init__(
        self,
        message: str,
        *,
        retry_after: float | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        """RateLimitError 초기화.

        Args:
            message: 에러 메시지
            retry_after: 재시도까지 대기 시간 (초)
            context: 추가 컨텍스트 정보
        """
        super().__init__(message, context=context)
        self.retry_after = retry_after


class UpstreamTimeoutError(UpstreamError):
    """호출별 타임아웃 초과.

    타임아웃은 일반 실패와 동일하게 취급됩니다.
    """


class RpcError(UpstreamError):
    """JSON-RPC 응답에 ``error`` 멤버가 포함된 경우.

    Attributes:
        code: JSON-RPC error code (없으면 None)
    """

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        context: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message, context=context)
        self.code = code


# =============================================================================
# Data Validation Errors (Recovered locally - field falls back to estimate)
# =============================================================================


class DataValidationError(SirScoreError):
    """업스트림 데이터 검증 오류 (잘못된 JSON, 누락 필드, 파싱 불가 값).

    Example:
        >>> raise DataValidationError(
        ...     "Gas oracle returned non-numeric price",
        ...     context={"network": "ethereum", "value": "N/A"}
        ... )
    """


class SchemaValidationError(DataValidationError):
    """Pydantic 스키마 검증 오류."""


# =============================================================================
# Configuration Errors (Fail Fast)
# =============================================================================


class ConfigurationError(SirScoreError):
    """잘못된 설정 또는 지원하지 않는 네트워크 요청."""


# =============================================================================
# Utility Functions
# =============================================================================


def add_context_note(exc: BaseException, note: str) -> None:
    """예외에 컨텍스트 노트 추가 (Python 3.11+ add_note).

    원본 Traceback을 보존하면서 디버깅 정보를 추가합니다.

    Args:
        exc: 예외 객체
        note: 추가할 노트 문자열

    Example:
        >>> try:
        ...     await fetcher.fetch_snapshot()
        ... except Exception as e:
        ...     add_context_note(e, "Failed while polling ethereum")
        ...     raise
    """
    exc.add_note(note)
