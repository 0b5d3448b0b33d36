"""Tests for sirscore/core/exceptions.py."""

from __future__ import annotations

import pytest

from sirscore.core.exceptions import (
    ConfigurationError,
    DataValidationError,
    NetworkError,
    RateLimitError,
    RpcError,
    SchemaValidationError,
    SirScoreError,
    UpstreamError,
    UpstreamTimeoutError,
    add_context_note,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [NetworkError, RateLimitError, UpstreamTimeoutError, RpcError],
    )
    def test_upstream_errors(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, UpstreamError)
        assert issubclass(exc_type, SirScoreError)

    def test_schema_error_is_validation_error(self) -> None:
        assert issubclass(SchemaValidationError, DataValidationError)
        assert not issubclass(DataValidationError, UpstreamError)

    def test_configuration_error_is_separate(self) -> None:
        assert not issubclass(ConfigurationError, UpstreamError)
        assert not issubclass(ConfigurationError, DataValidationError)


class TestSirScoreError:
    def test_message_only(self) -> None:
        err = SirScoreError("boom")
        assert str(err) == "boom"
        assert err.context == {}

    def test_context_rendered(self) -> None:
        err = NetworkError("HTTP 503 from coingecko", context={"url": "https://x", "status": 503})
        assert str(err) == "HTTP 503 from coingecko [url=https://x, status=503]"
        assert err.message == "HTTP 503 from coingecko"

    def test_rate_limit_retry_after(self) -> None:
        err = RateLimitError("Rate limited", retry_after=12.5)
        assert err.retry_after == 12.5
        assert RateLimitError("Rate limited").retry_after is None

    def test_rpc_code(self) -> None:
        assert RpcError("limit", code=-32005).code == -32005


class TestAddContextNote:
    def test_note_attached(self) -> None:
        err = ValueError("bad")
        add_context_note(err, "while parsing ethereum gas oracle")
        assert err.__notes__ == ["while parsing ethereum gas oracle"]
