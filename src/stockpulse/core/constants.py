"""Application-wide constants.

These are fixed values that don't change between environments.
For configurable values, see config.py Settings.
"""

# ─────────────────────────────────────────────────────────────
# Google News RSS
# ─────────────────────────────────────────────────────────────
GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"

# language -> (hl, gl, ceid)
GOOGLE_NEWS_LOCALES: dict[str, tuple[str, str, str]] = {
    "ko": ("ko", "KR", "KR:ko"),
    "en": ("en", "US", "US:en"),
}

SOURCE_GOOGLE_NEWS_KR = "Google News KR"
SOURCE_GOOGLE_NEWS_EN = "Google News EN"

# ─────────────────────────────────────────────────────────────
# Fetch limits
# ─────────────────────────────────────────────────────────────
KOSPI_KO_ITEMS_PER_FEED = 5
KOSPI_EN_ITEMS_PER_FEED = 3
NASDAQ_EN_ITEMS_PER_FEED = 5
KEYWORDS_PER_LANGUAGE = 1  # later keywords are configured but not queried
MAX_DESCRIPTION_LENGTH = 500

# ─────────────────────────────────────────────────────────────
# Prompt limits
# ─────────────────────────────────────────────────────────────
SUMMARY_SNIPPET_LENGTH = 300
SELECTOR_HEADLINES_PER_STOCK = 5

SUMMARY_TEMPERATURE = 0.3
ANALYSIS_TEMPERATURE = 0.3
TRANSLATION_TEMPERATURE = 0.2

# ─────────────────────────────────────────────────────────────
# Model pricing (USD per 1M tokens: input, output)
# ─────────────────────────────────────────────────────────────
MODEL_PRICING_PER_MILLION: dict[str, tuple[float, float]] = {
    "gpt-4o-mini": (0.15, 0.60),
    "gpt-4o": (2.50, 10.00),
    "claude-3-5-haiku-20241022": (0.80, 4.00),
    "claude-sonnet-4-20250514": (3.00, 15.00),
}
DEFAULT_PRICING_MODEL = "gpt-4o-mini"

# Model label stored on summaries written without an LLM call
NO_MODEL = "none"

# ─────────────────────────────────────────────────────────────
# Usage log
# ─────────────────────────────────────────────────────────────
USAGE_SERVICE_OPENAI = "openai"
USAGE_SERVICE_ANTHROPIC = "anthropic"

# ─────────────────────────────────────────────────────────────
# API pagination
# ─────────────────────────────────────────────────────────────
DEFAULT_NEWS_PAGE_SIZE = 30
MAX_NEWS_PAGE_SIZE = 100
