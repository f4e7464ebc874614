"""
AI-written recommendations for a finished audit report.
"""
import json
import logging
from typing import Any

import httpx

from siteaudit.integrations.llm import LLMClient

logger = logging.getLogger(__name__)

CONTENT_EXCERPT_CHARS = 1000
SYSTEM_PROMPT = "You are an expert SEO analyst providing actionable recommendations."

FALLBACK_ADVICE: dict[str, Any] = {
    "health_score": 50,
    "summary": "AI Analysis Failed",
    "recommendations": [],
}

ADVICE_SCHEMA = {
    "type": "object",
    "properties": {
        "health_score": {"type": "number"},
        "summary": {"type": "string"},
        "strengths": {"type": "array", "items": {"type": "string"}},
        "weaknesses": {"type": "array", "items": {"type": "string"}},
        "recommendations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "priority": {"type": "string", "enum": ["Critical", "Medium", "Quick Win"]},
                    "category": {"type": "string"},
                    "issue": {"type": "string"},
                    "fix": {"type": "string"},
                },
            },
        },
    },
}


def build_prompt(report: dict[str, Any]) -> str:
    metrics = report.get("metrics", {})
    structure = report.get("structure", {})
    competitive = structure.get("competitive_analysis", {})
    text = structure.get("text_content", "")[:CONTENT_EXCERPT_CHARS]

    facts = {
        "title": structure.get("title"),
        "description": structure.get("description"),
        "h1_count": structure.get("h1_count"),
        "word_count": structure.get("word_count"),
        "readability_score": structure.get("readability_score"),
        "robots_allowed": structure.get("robots_allowed"),
        "sitemap_found": structure.get("sitemap", {}).get("found"),
        "open_graph_completeness": structure.get("open_graph", {}).get("completeness"),
        "structured_data_types": structure.get("structured_data", {}).get("types"),
        "grade": competitive.get("overall_grade"),
    }

    return f"""Analyze this website:
URL: {report.get("url")}
Technical: Speed {metrics.get("performance", 0)}/100, SEO {metrics.get("seo", 0)}/100
Audit facts: {json.dumps(facts)}
Content: "{text}..."

Give a health score, a short summary, strengths, weaknesses and prioritized recommendations.
Respond with ONLY a JSON object following this schema:
{json.dumps(ADVICE_SCHEMA, indent=2)}"""


class AdviceService:
    """Asks the configured LLM for recommendations; never fails the audit."""

    def __init__(self, llm: LLMClient | None = None):
        self.llm = llm or LLMClient()

    async def advise(self, report: dict[str, Any]) -> dict[str, Any]:
        if not self.llm.configured:
            logger.info("LLM not configured, skipping advice")
            return dict(FALLBACK_ADVICE, summary="AI analysis not configured")

        try:
            advice = await self.llm.complete_json(SYSTEM_PROMPT, build_prompt(report))
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"AI advice failed for {report.get('url')}: {e}")
            return dict(FALLBACK_ADVICE)

        if not isinstance(advice, dict):
            logger.error(f"AI advice for {report.get('url')} was not a JSON object")
            return dict(FALLBACK_ADVICE)
        return advice

    async def close(self):
        await self.llm.close()
