"""Processing module - organized by pipeline stage.

Submodules:
- news: Feed fetch, translation and deduplicated storage
- summary: Per-stock daily summaries
- selection: Per-market high-potential selection
- usage: Model spend accounting
- common: Cross-stage utilities (LLM client, JSON reply parsing)
"""
