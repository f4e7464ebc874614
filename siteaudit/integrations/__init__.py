"""
External service integrations for siteaudit.

- pagespeed: Google PageSpeed Insights for performance analysis
- llm: chat-model client for the written recommendations (local/OpenAI/Anthropic)
"""

from siteaudit.integrations.pagespeed import PageSpeedClient, PerformanceMetrics, TimingAudit
from siteaudit.integrations.llm import LLMClient, LLMConfig, LLMProvider

__all__ = [
    "PageSpeedClient",
    "PerformanceMetrics",
    "TimingAudit",
    "LLMClient",
    "LLMConfig",
    "LLMProvider",
]
