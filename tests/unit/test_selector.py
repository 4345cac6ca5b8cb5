"""Tests for high-potential selection."""

from datetime import date

import orjson
import pytest

from stockpulse.catalog import KOSPI_TOP_10, NASDAQ_TOP_10
from stockpulse.core.exceptions import SelectionError
from stockpulse.models import Market, SelectedStock, StepStatus
from stockpulse.processing.selection import (
    HighPotentialSelector,
    filter_selection,
    parse_selection,
)
from stockpulse.processing.selection.prompts import build_selection_prompt

DAY = date(2025, 1, 15)


def _reply(*picks: tuple[str, int], summary: str = "반도체 강세") -> str:
    return orjson.dumps(
        {
            "selected_stocks": [
                {
                    "code": code,
                    "name_ko": "",
                    "score": score,
                    "reason": "수요 증가",
                    "crowd_psychology": "기대감 확산",
                    "historical_pattern": "과거 사이클 반등",
                }
                for code, score in picks
            ],
            "analysis_summary": summary,
        }
    ).decode()


@pytest.fixture
def kospi_stocks(make_stock):
    return [
        make_stock("005930", name_ko="삼성전자", sector="전자/반도체"),
        make_stock("000660", name_ko="SK하이닉스", sector="반도체"),
        make_stock("035420", name_ko="NAVER", sector="IT/플랫폼"),
        make_stock("035720", name_ko="카카오", sector="IT/플랫폼"),
    ]


class TestParseSelection:
    def test_code_fenced_json(self) -> None:
        payload = parse_selection(f"```json\n{_reply(('005930', 85))}\n```")
        assert payload.selected_stocks[0].code == "005930"
        assert payload.selected_stocks[0].crowd_psychology == "기대감 확산"
        assert payload.analysis_summary == "반도체 강세"

    def test_not_json_raises(self) -> None:
        with pytest.raises(SelectionError, match="not valid JSON"):
            parse_selection("I think Samsung looks good.")

    def test_wrong_shape_raises(self) -> None:
        with pytest.raises(SelectionError, match="unexpected shape"):
            parse_selection('{"selected_stocks": [{"score": 80}]}')

    def test_array_raises(self) -> None:
        with pytest.raises(SelectionError):
            parse_selection("[]")


class TestFilterSelection:
    def test_drops_foreign_codes_and_caps(self, kospi_stocks) -> None:
        picks = [
            SelectedStock(code="AAPL", score=99),
            SelectedStock(code="005930", score=90),
            SelectedStock(code="005930", score=80),
            SelectedStock(code="000660", score=85),
            SelectedStock(code="035420", score=70),
            SelectedStock(code="035720", score=60),
        ]
        kept = filter_selection(picks, kospi_stocks, 3)

        assert [p.code for p in kept] == ["005930", "000660", "035420"]
        assert kept[0].name_ko == "삼성전자"


class TestPrompt:
    def test_headlines_and_empty_marker(self, kospi_stocks, make_news) -> None:
        news = [make_news("005930", index=i, title=f"삼성 뉴스 {i}") for i in range(7)]
        prompt = build_selection_prompt(Market.KOSPI, kospi_stocks[:2], news)

        assert prompt.startswith("오늘의 KOSPI 주요 종목 뉴스:\n\n[005930] 삼성전자 (전자/반도체)\n뉴스 7건:\n- 삼성 뉴스 0")
        assert "- 삼성 뉴스 4" in prompt
        assert "- 삼성 뉴스 5" not in prompt
        assert prompt.endswith("[000660] SK하이닉스 (반도체)\n뉴스 0건:\n뉴스 없음")


class TestHighPotentialSelector:
    @pytest.mark.asyncio
    async def test_success_replaces_flags_and_upserts(
        self, mock_db, fake_llm, settings, kospi_stocks
    ) -> None:
        fake_llm.replies = [_reply(("000660", 92), ("005930", 150), ("AAPL", 80))]
        selector = HighPotentialSelector(mock_db, fake_llm, settings)

        result = await selector.run(Market.KOSPI, kospi_stocks, DAY)

        assert result.step == "potential_analysis:KOSPI"
        assert result.status == StepStatus.ok
        mock_db.clear_high_potential.assert_awaited_once_with(Market.KOSPI)
        flagged = [c.args for c in mock_db.set_high_potential.await_args_list]
        assert flagged == [("000660", 92, Market.KOSPI), ("005930", 100, Market.KOSPI)]
        analysis = mock_db.upsert_market_analysis.await_args.args[0]
        assert analysis.analysis_date == DAY
        assert analysis.market == Market.KOSPI
        assert [s.code for s in analysis.selected_stocks] == ["000660", "005930"]
        assert [s["code"] for s in result.detail["selected"]] == ["000660", "005930"]

        call = fake_llm.calls[0]
        assert call["model"] == "gpt-4o"
        assert call["max_tokens"] == 1500
        assert "crowd_psychology" in call["system_prompt"]

    @pytest.mark.asyncio
    async def test_clear_happens_before_flagging(
        self, mock_db, fake_llm, settings, kospi_stocks
    ) -> None:
        order: list[str] = []
        mock_db.clear_high_potential.side_effect = lambda m: order.append("clear") or []
        mock_db.set_high_potential.side_effect = lambda c, s, m: order.append(c) or True
        fake_llm.replies = [_reply(("005930", 80))]
        selector = HighPotentialSelector(mock_db, fake_llm, settings)

        await selector.run(Market.KOSPI, kospi_stocks, DAY)

        assert order == ["clear", "005930"]

    @pytest.mark.asyncio
    async def test_malformed_reply_touches_nothing(
        self, mock_db, fake_llm, settings, kospi_stocks
    ) -> None:
        fake_llm.replies = ["선정 결과: 삼성전자, SK하이닉스"]
        selector = HighPotentialSelector(mock_db, fake_llm, settings)

        result = await selector.run(Market.KOSPI, kospi_stocks, DAY)

        assert result.status == StepStatus.error
        assert result.step == "potential_analysis:KOSPI"
        mock_db.clear_high_potential.assert_not_awaited()
        mock_db.set_high_potential.assert_not_awaited()
        mock_db.upsert_market_analysis.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookback_window(self, mock_db, fake_llm, settings, kospi_stocks) -> None:
        fake_llm.replies = [_reply(), _reply()]
        selector = HighPotentialSelector(mock_db, fake_llm, settings)

        await selector.run(Market.KOSPI, kospi_stocks, DAY)
        assert mock_db.get_news_for_stocks.await_args.kwargs["since"] is not None

        settings.selector_lookback_hours = None
        await selector.run(Market.KOSPI, kospi_stocks, DAY)
        assert mock_db.get_news_for_stocks.await_args.kwargs["since"] is None
        assert mock_db.get_news_for_stocks.await_args.args[0] == [s.code for s in kospi_stocks]

    @pytest.mark.asyncio
    async def test_reply_with_wrong_keys_touches_nothing(
        self, mock_db, fake_llm, settings, kospi_stocks
    ) -> None:
        fake_llm.replies = ['{"stocks": [{"code": "005930", "score": 90}], "summary": "x"}']
        selector = HighPotentialSelector(mock_db, fake_llm, settings)

        result = await selector.run(Market.KOSPI, kospi_stocks, DAY)

        assert result.status == StepStatus.error
        assert "unexpected shape" in result.detail
        mock_db.clear_high_potential.assert_not_awaited()
        mock_db.upsert_market_analysis.assert_not_awaited()


class TestSelectorStoredState:
    """Selection runs against an in-memory store."""

    @pytest.mark.asyncio
    async def test_rerun_replaces_flags_and_analysis(
        self, stateful_db, fake_llm, settings
    ) -> None:
        db = stateful_db([*KOSPI_TOP_10, NASDAQ_TOP_10[0]])
        db._test_stocks["AAPL"] = db._test_stocks["AAPL"].model_copy(
            update={"is_high_potential": True, "potential_score": 77}
        )
        stocks = await db.get_tracked_stocks(Market.KOSPI)
        fake_llm.replies = [
            _reply(("005930", 80), ("000660", 70), summary="첫 번째"),
            _reply(("035420", 95), summary="두 번째"),
        ]
        selector = HighPotentialSelector(db, fake_llm, settings)

        await selector.run(Market.KOSPI, stocks, DAY)
        second = await selector.run(Market.KOSPI, stocks, DAY)

        assert second.status == StepStatus.ok
        flagged = {
            code: s.potential_score
            for code, s in db._test_stocks.items()
            if s.market == Market.KOSPI and s.is_high_potential
        }
        assert flagged == {"035420": 95}
        # the other market is untouched
        assert db._test_stocks["AAPL"].is_high_potential
        assert list(db._test_analyses) == [(DAY, Market.KOSPI)]
        analysis = db._test_analyses[(DAY, Market.KOSPI)]
        assert analysis.analysis_summary == "두 번째"
        assert [s.code for s in analysis.selected_stocks] == ["035420"]

    @pytest.mark.asyncio
    async def test_failed_rerun_keeps_previous_state(
        self, stateful_db, fake_llm, settings
    ) -> None:
        db = stateful_db(KOSPI_TOP_10[:4])
        stocks = await db.get_tracked_stocks(Market.KOSPI)
        fake_llm.replies = [_reply(("005930", 80)), '{"analysis_summary": "선정 없음"}']
        selector = HighPotentialSelector(db, fake_llm, settings)

        await selector.run(Market.KOSPI, stocks, DAY)
        failed = await selector.run(Market.KOSPI, stocks, DAY)

        assert failed.status == StepStatus.error
        assert [c for c, s in db._test_stocks.items() if s.is_high_potential] == ["005930"]
        assert db._test_analyses[(DAY, Market.KOSPI)].selected_stocks[0].code == "005930"
