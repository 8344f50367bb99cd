"""
ClinRx Interaction Copilot – Result Presenter
==============================================
Derives display-ready aggregates from a parsed AnalysisResult:
combined findings, severity display categories, summary counts and a
plain-text export. Total over partial reports: missing nested objects and
lists are treated as empty, never dereferenced.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from core.markdown_lite import TextBlock, parse_markdown_lite
from core.validation import strip_nulls
from models.analysis.schema_definition import (
    FINDING_CATEGORIES,
    AnalysisResult,
    Alternative,
    Interaction,
    MonitoringPlan,
    Severity,
)


# ── Severity display categories ─────────────────────────────────────────────


@dataclass(frozen=True)
class SeverityCategory:
    key: str
    label: str
    color: str
    background: str
    icon: str


SEVERITY_CATEGORIES: Dict[str, SeverityCategory] = {
    Severity.CONTRAINDICATED.value: SeverityCategory("contraindicated", "Contraindicated", "#B91C1C", "#FEF2F2", "⛔"),
    Severity.MAJOR.value:           SeverityCategory("major", "Major", "#C2410C", "#FFF7ED", "🟠"),
    Severity.MODERATE.value:        SeverityCategory("moderate", "Moderate", "#A16207", "#FEFCE8", "🟡"),
    Severity.MINOR.value:           SeverityCategory("minor", "Minor", "#1D4ED8", "#EFF6FF", "🔵"),
    Severity.NONE.value:            SeverityCategory("none", "None", "#15803D", "#F0FDF4", "🟢"),
}

UNKNOWN_CATEGORY = SeverityCategory("unknown", "Unknown", "#4B5563", "#F9FAFB", "⚪")


def severity_category(value: Optional[Union[str, Severity]]) -> SeverityCategory:
    """
    Map a severity value to its display category.

    Absent → the "none" category; an unrecognised string → UNKNOWN_CATEGORY.
    """
    if isinstance(value, Severity):
        value = value.value
    key = (value or "").strip().lower()
    if not key:
        return SEVERITY_CATEGORIES[Severity.NONE.value]
    return SEVERITY_CATEGORIES.get(key, UNKNOWN_CATEGORY)


# ── Aggregates ──────────────────────────────────────────────────────────────


def _as_result(result: Union[AnalysisResult, dict]) -> AnalysisResult:
    if isinstance(result, AnalysisResult):
        return result
    return AnalysisResult.model_validate(strip_nulls(result))


def combined_findings(result: Union[AnalysisResult, dict]) -> List[Interaction]:
    """All detailed findings, category by category in FINDING_CATEGORIES order."""
    findings = _as_result(result).detailed_findings
    if findings is None:
        return []
    combined: List[Interaction] = []
    for category in FINDING_CATEGORIES:
        combined.extend(getattr(findings, category) or [])
    return combined


@dataclass(frozen=True)
class ResultOverview:
    highest_severity: str
    category: SeverityCategory
    interaction_count: int
    red_flag_count: int
    top_risk_count: int
    finding_count: int

    @property
    def headline(self) -> str:
        return f"Highest Risk: {self.highest_severity.capitalize()}"


def build_overview(result: Union[AnalysisResult, dict]) -> ResultOverview:
    """Status-banner numbers for a report."""
    result = _as_result(result)
    summary = result.summary
    findings = combined_findings(result)

    highest = summary.highest_severity_found if summary else None
    reported_count = summary.interaction_count if summary else None

    return ResultOverview(
        highest_severity=highest or "unknown",
        category=severity_category(highest),
        interaction_count=reported_count if reported_count is not None else len(findings),
        red_flag_count=len(summary.red_flags) if summary else 0,
        top_risk_count=len(summary.top_risks) if summary else 0,
        finding_count=len(findings),
    )


@dataclass(frozen=True)
class PresentedReport:
    """Everything the UI renders, with every absent section made empty."""
    overview: ResultOverview
    summary_blocks: List[TextBlock]
    red_flags: List[str]
    top_risks: List[Interaction]
    findings: List[Interaction]
    alternatives: List[Alternative]
    monitoring_plan: MonitoringPlan
    counseling_points: List[str]
    sources: List[str]
    assumptions: List[str]
    disclaimer: str


def build_report(result: Union[AnalysisResult, dict]) -> PresentedReport:
    result = _as_result(result)
    summary = result.summary
    return PresentedReport(
        overview=build_overview(result),
        summary_blocks=parse_markdown_lite(result.markdown_summary),
        red_flags=list(summary.red_flags) if summary else [],
        top_risks=list(summary.top_risks) if summary else [],
        findings=combined_findings(result),
        alternatives=list(result.alternatives),
        monitoring_plan=result.monitoring_plan or MonitoringPlan(),
        counseling_points=list(result.patient_counseling_points),
        sources=list(result.sources_to_verify),
        assumptions=list(result.assumptions),
        disclaimer=result.disclaimer,
    )


# ── Plain-text export ───────────────────────────────────────────────────────


def _interaction_lines(interaction: Interaction) -> List[str]:
    category = severity_category(interaction.severity)
    lines = [f"  • [{category.label.upper()}] {interaction.pair_or_cluster or 'Unnamed interaction'}"]
    if interaction.mechanism:
        lines.append(f"      Mechanism  : {interaction.mechanism}")
    if interaction.expected_clinical_effect:
        lines.append(f"      Effect     : {interaction.expected_clinical_effect}")
    if interaction.management:
        lines.append(f"      Management : {interaction.management}")
    if interaction.monitoring:
        lines.append(f"      Monitor    : {', '.join(interaction.monitoring)}")
    return lines


def export_report(result: Union[AnalysisResult, dict], run_id: Optional[str] = None) -> str:
    """Return a plain-text interaction report."""
    report = build_report(result)
    ov = report.overview
    plan = report.monitoring_plan
    lines = [
        "═══════════════════════════════════════════════════",
        "        ClinRx Interaction Copilot — Report",
        f"  Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}",
        "═══════════════════════════════════════════════════",
    ]
    if run_id:
        lines.append(f"  Analysis ID    : {run_id}")
    lines += [
        f"  Highest risk   : {ov.category.label} ({ov.highest_severity})",
        f"  Interactions   : {ov.interaction_count}",
        f"  Red flags      : {ov.red_flag_count}",
        "",
        "RED FLAGS:",
    ]
    lines += [f"  • {flag}" for flag in report.red_flags] or ["  (none)"]
    lines += ["", "PRIORITY INTERACTIONS:"]
    for risk in report.top_risks:
        lines += _interaction_lines(risk)
    if not report.top_risks:
        lines.append("  (none identified)")
    lines += ["", "DETAILED FINDINGS:"]
    for finding in report.findings:
        lines += _interaction_lines(finding)
    if not report.findings:
        lines.append("  (none)")
    lines += ["", "SAFER ALTERNATIVES:"]
    for alt in report.alternatives:
        lines.append(f"  • {alt.current_drug} → {alt.proposed_alternative} (for {alt.target_issue})")
        if alt.rationale:
            lines.append(f"      Rationale  : {alt.rationale}")
    if not report.alternatives:
        lines.append("  (none proposed)")
    lines += ["", "MONITORING PLAN:"]
    if plan.is_empty and not plan.follow_up:
        lines.append("  (no specific monitoring plan provided)")
    if plan.labs:
        lines.append(f"  Labs           : {', '.join(plan.labs)}")
    if plan.vitals_ecg:
        lines.append(f"  Vitals & ECG   : {', '.join(plan.vitals_ecg)}")
    if plan.symptoms_to_watch:
        lines.append(f"  Symptoms       : {', '.join(plan.symptoms_to_watch)}")
    if plan.follow_up:
        lines.append(f"  Follow-up      : {plan.follow_up}")
    lines += ["", "COUNSELING POINTS:"]
    lines += [f"  • {point}" for point in report.counseling_points] or ["  (none)"]
    if report.sources:
        lines += ["", "SOURCES TO VERIFY:", f"  {', '.join(report.sources)}"]
    lines += [
        "",
        "DISCLAIMER:",
        f"  {report.disclaimer}",
        "═══════════════════════════════════════════════════",
    ]
    return "\n".join(lines)
