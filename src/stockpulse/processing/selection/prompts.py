"""Prompts for per-market high-potential selection."""

from stockpulse.core.constants import SELECTOR_HEADLINES_PER_STOCK
from stockpulse.models import Market, NewsRecord, StockRow

_MARKET_LABELS = {
    Market.KOSPI: "한국 주식시장(KOSPI)",
    Market.NASDAQ: "미국 주식시장(NASDAQ)",
}


def selection_system_prompt(market: Market, count: int) -> str:
    return f"""당신은 {_MARKET_LABELS[market]} 분석 전문가입니다.
주어진 종목별 최근 뉴스를 분석하여, 가장 유망한 {count}개 종목을 선정하세요.
각 종목에 0-100 사이의 점수를 매기고, 뉴스에 드러난 투자 심리(군중 심리)와 과거 유사 사례의 패턴도 함께 분석하세요.
다음 JSON 형식으로만 출력하세요:
{{
  "selected_stocks": [
    {{
      "code": "종목코드",
      "name_ko": "종목명",
      "score": 85,
      "reason": "선정 이유 2-3문장",
      "crowd_psychology": "투자자 심리 분석 1-2문장",
      "historical_pattern": "과거 유사 패턴 1-2문장"
    }}
  ],
  "analysis_summary": "오늘의 종합 시장 분석 (한국어 3-5문장)"
}}"""


def build_selection_prompt(
    market: Market,
    stocks: list[StockRow],
    news: list[NewsRecord],
) -> str:
    """Per-stock news count and top headlines. ``news`` must be newest first."""
    by_code: dict[str, list[NewsRecord]] = {s.code: [] for s in stocks}
    for record in news:
        if record.stock_code in by_code:
            by_code[record.stock_code].append(record)

    sections = []
    for stock in stocks:
        stock_news = by_code[stock.code]
        headlines = "\n".join(
            f"- {n.title}" for n in stock_news[:SELECTOR_HEADLINES_PER_STOCK]
        )
        sections.append(
            f"[{stock.code}] {stock.name_ko} ({stock.sector})\n"
            f"뉴스 {len(stock_news)}건:\n{headlines or '뉴스 없음'}"
        )
    return f"오늘의 {market.value} 주요 종목 뉴스:\n\n" + "\n\n".join(sections)
