"""
Combine every analyzer's output into the final audit report.

Pure: no network access and no parsing happens here.
"""
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any

from siteaudit.integrations.pagespeed import PerformanceMetrics
from siteaudit.services.content_analyzer import ContentAnalysis
from siteaudit.services.domain_profiler import DomainProfile
from siteaudit.services.markup import PageMarkup, markup_to_dict
from siteaudit.services.robots import RobotsPolicy
from siteaudit.services.sitemap import SitemapReport
from siteaudit.services.subpages import SubpageAudit

# (grade, minimum score, both scores must reach it)
GRADE_THRESHOLDS = (
    ("A", 80, True),
    ("B", 70, True),
    ("C", 60, False),
)
LOWEST_GRADE = "D"


@dataclass
class CompetitiveAnalysis:
    overall_grade: str
    strengths: list[str] = field(default_factory=list)
    weaknesses: list[str] = field(default_factory=list)


@dataclass
class PageStructure:
    """On-page and technical findings for the audited URL."""
    markup: PageMarkup
    content: ContentAnalysis
    robots: RobotsPolicy
    sitemap: SitemapReport
    subpages: SubpageAudit
    domain: DomainProfile
    robots_allowed: bool
    competitive_analysis: CompetitiveAnalysis

    def to_dict(self) -> dict[str, Any]:
        data = markup_to_dict(self.markup)
        data.update(
            word_count=self.content.uniqueness.word_count,
            readability_score=self.content.readability_score,
            content=self.content.to_dict(),
            robots=self.robots.to_dict(),
            robots_allowed=self.robots_allowed,
            sitemap=self.sitemap.to_dict(),
            subpages=self.subpages.to_dict(),
            domain=self.domain.to_dict(),
            competitive_analysis=asdict(self.competitive_analysis),
        )
        return data


@dataclass(frozen=True)
class Report:
    url: str
    timestamp: str
    metrics: PerformanceMetrics
    structure: PageStructure
    advice: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "timestamp": self.timestamp,
            "metrics": self.metrics.to_dict(),
            "structure": self.structure.to_dict(),
            "report": self.advice,
        }


def overall_grade(performance: int, seo: int) -> str:
    for grade, minimum, both in GRADE_THRESHOLDS:
        passed = (performance >= minimum, seo >= minimum)
        if all(passed) if both else any(passed):
            return grade
    return LOWEST_GRADE


def compute_competitive_analysis(
    metrics: PerformanceMetrics,
    h1_count: int,
    readability: int,
) -> CompetitiveAnalysis:
    analysis = CompetitiveAnalysis(overall_grade=overall_grade(metrics.performance, metrics.seo))

    if metrics.performance >= 70:
        analysis.strengths.append("Strong performance metrics")
    else:
        analysis.weaknesses.append("Performance needs improvement")

    if metrics.seo >= 80:
        analysis.strengths.append("Excellent SEO score")
    elif metrics.seo < 60:
        analysis.weaknesses.append("SEO score below average")

    if h1_count == 1:
        analysis.strengths.append("Proper H1 structure")
    else:
        analysis.weaknesses.append("H1 tag issues")

    if readability >= 70:
        analysis.strengths.append("Good content readability")
    else:
        analysis.weaknesses.append("Readability could be improved")

    return analysis


def aggregate_report(
    url: str,
    metrics: PerformanceMetrics,
    markup: PageMarkup,
    content: ContentAnalysis,
    robots: RobotsPolicy,
    sitemap: SitemapReport,
    subpages: SubpageAudit,
    domain: DomainProfile,
    timestamp: str | None = None,
) -> Report:
    """Build the report. The advice slot stays empty until the advisor runs."""
    structure = PageStructure(
        markup=markup,
        content=content,
        robots=robots,
        sitemap=sitemap,
        subpages=subpages,
        domain=domain,
        robots_allowed=markup.meta_robots.allows_indexing and robots.allows_indexing,
        competitive_analysis=compute_competitive_analysis(
            metrics, markup.h1_count, content.readability_score
        ),
    )
    return Report(
        url=url,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        metrics=metrics,
        structure=structure,
    )
