"""Tests for domain models."""

from datetime import date

import pytest

from stockpulse.catalog import (
    ALL_INSTRUMENTS,
    KOSPI_TOP_10,
    NASDAQ_TOP_10,
    get_instrument,
    get_instruments_by_market,
)
from stockpulse.models import (
    Market,
    PipelineReport,
    SelectedStock,
    StepResult,
    StepStatus,
)


class TestSelectedStock:
    """Scores are clamped rather than rejected."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(85, 85), (150, 100), (-5, 0), (72.6, 73), ("64", 64), (None, 0)],
    )
    def test_score_clamped(self, raw: object, expected: int) -> None:
        assert SelectedStock(code="005930", score=raw).score == expected  # type: ignore[arg-type]

    def test_optional_narratives(self) -> None:
        pick = SelectedStock(code="005930", name_ko="삼성전자", score=80, reason="HBM 수요")
        assert pick.crowd_psychology is None
        assert pick.historical_pattern is None


class TestPipelineReport:
    def test_success_without_errors(self) -> None:
        report = PipelineReport(
            date=date(2025, 1, 15),
            results=[StepResult.ok("fetch_news", {"inserted": 3, "skipped": 1})],
        )
        assert report.success
        assert report.errors == []

    def test_fetch_and_summary_errors_are_not_critical(self) -> None:
        report = PipelineReport(
            date=date(2025, 1, 15),
            results=[
                StepResult.error("fetch:삼성전자:ko", "timeout"),
                StepResult.error("summary:KOSPI:삼성전자", "rate limited"),
                StepResult.ok("potential_analysis:KOSPI"),
            ],
        )
        assert len(report.errors) == 2
        assert report.critical_errors == []
        assert report.success

    def test_selection_error_fails_run(self) -> None:
        report = PipelineReport(
            date=date(2025, 1, 15),
            results=[StepResult.error("potential_analysis:NASDAQ", "bad json")],
        )
        assert not report.success

    def test_serialized_shape(self) -> None:
        report = PipelineReport(
            date=date(2025, 1, 15),
            results=[StepResult.skipped("analysis:NASDAQ", "No stocks found")],
        )
        data = report.model_dump(mode="json")
        assert data["success"] is True
        assert data["date"] == "2025-01-15"
        assert data["results"] == [
            {"step": "analysis:NASDAQ", "status": "skipped", "detail": "No stocks found"}
        ]
        assert report.results[0].status == StepStatus.skipped


class TestCatalog:
    def test_ten_per_market(self) -> None:
        assert len(KOSPI_TOP_10) == 10
        assert len(NASDAQ_TOP_10) == 10
        assert len({i.code for i in ALL_INSTRUMENTS}) == 20

    def test_every_instrument_has_queryable_keywords(self) -> None:
        for instrument in KOSPI_TOP_10:
            assert instrument.keywords("ko")
            assert instrument.keywords("en")
        for instrument in NASDAQ_TOP_10:
            assert instrument.keywords("en")

    def test_lookup(self) -> None:
        samsung = get_instrument("005930")
        assert samsung is not None
        assert samsung.name_ko == "삼성전자"
        assert samsung.keywords("ko")[0] == "삼성전자"
        assert get_instrument("UNKNOWN") is None

    def test_by_market_keeps_catalog_order(self) -> None:
        nasdaq = get_instruments_by_market(Market.NASDAQ)
        assert [i.code for i in nasdaq] == [i.code for i in NASDAQ_TOP_10]
        assert all(i.market == Market.NASDAQ for i in nasdaq)

    def test_unsupported_language(self) -> None:
        with pytest.raises(ValueError, match="Unsupported language"):
            KOSPI_TOP_10[0].keywords("ja")
