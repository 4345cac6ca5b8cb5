"""Prompts for per-stock news summaries."""

from stockpulse.core.constants import SUMMARY_SNIPPET_LENGTH
from stockpulse.models import Market, NewsRecord

_EXPERTS = {
    Market.KOSPI: "한국 주식 뉴스 분석 전문가",
    Market.NASDAQ: "미국 주식 뉴스 분석 전문가",
}


def summary_system_prompt(market: Market) -> str:
    return f"""당신은 {_EXPERTS[market]}입니다.
주어진 뉴스 기사들을 분석하여 다음 JSON 형식으로 요약하세요:
{{
  "summary": "한국어로 된 3-5문장 요약",
  "key_points": ["핵심 포인트 1", "핵심 포인트 2", "핵심 포인트 3"],
  "sentiment": "positive" | "negative" | "neutral"
}}
반드시 유효한 JSON만 출력하세요."""


def build_summary_prompt(name_ko: str, code: str, news: list[NewsRecord]) -> str:
    """Numbered headlines with description snippets, newest first."""
    news_text = "\n\n".join(
        f"[{i}] {n.title}\n{(n.description or '')[:SUMMARY_SNIPPET_LENGTH]}"
        for i, n in enumerate(news, start=1)
    )
    return f"종목: {name_ko} ({code})\n\n최근 뉴스 {len(news)}건:\n{news_text}"


def empty_summary_text(name_ko: str) -> str:
    return f"{name_ko}에 대한 최근 뉴스가 없습니다."
