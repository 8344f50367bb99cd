"""Combined findings, severity categories, overview and export."""

import pytest

from core.result_presenter import (
    SEVERITY_CATEGORIES,
    UNKNOWN_CATEGORY,
    build_overview,
    build_report,
    combined_findings,
    export_report,
    severity_category,
)
from models.analysis.schema_definition import FINDING_CATEGORIES, SEVERITY_VALUES, AnalysisResult, Severity


def test_missing_detailed_findings(sample_report):
    del sample_report["detailed_findings"]
    assert combined_findings(sample_report) == []


def test_missing_category_lists():
    assert combined_findings({"detailed_findings": {"drug_food": None}}) == []


def test_combined_order_and_length(sample_report):
    findings = combined_findings(AnalysisResult.model_validate(sample_report))
    detailed = sample_report["detailed_findings"]

    assert len(findings) == sum(len(detailed[c]) for c in FINDING_CATEGORIES)
    expected = [item["pair_or_cluster"] for c in FINDING_CATEGORIES for item in detailed[c]]
    assert [f.pair_or_cluster for f in findings] == expected


def test_top_risks_are_not_deduplicated(sample_report):
    report = build_report(sample_report)
    pairs = [f.pair_or_cluster for f in report.findings]
    assert report.top_risks[0].pair_or_cluster in pairs


# ── Severity categories ─────────────────────────────────────────────────────


@pytest.mark.parametrize("value", SEVERITY_VALUES)
def test_each_severity_has_its_own_category(value):
    category = severity_category(value)
    assert category is SEVERITY_CATEGORIES[value]
    assert category is not UNKNOWN_CATEGORY


def test_categories_are_distinct():
    assert len({c.key for c in SEVERITY_CATEGORIES.values()}) == len(SEVERITY_VALUES)


@pytest.mark.parametrize("value", ["severe", "high", "major-ish", "???"])
def test_unrecognised_severity_falls_back(value):
    assert severity_category(value) is UNKNOWN_CATEGORY


@pytest.mark.parametrize("value", [None, "", "   "])
def test_absent_severity_is_none(value):
    assert severity_category(value).key == "none"


def test_severity_matching_is_lenient():
    assert severity_category(" Major ").key == "major"
    assert severity_category(Severity.CONTRAINDICATED).key == "contraindicated"


# ── Overview ────────────────────────────────────────────────────────────────


def test_overview(sample_report):
    overview = build_overview(sample_report)
    assert overview.highest_severity == "major"
    assert overview.category.key == "major"
    assert overview.interaction_count == 4
    assert overview.red_flag_count == 2
    assert overview.top_risk_count == 1
    assert overview.finding_count == 4
    assert overview.headline == "Highest Risk: Major"


def test_overview_counts_findings_when_count_missing(sample_report):
    del sample_report["summary"]["interaction_count"]
    assert build_overview(sample_report).interaction_count == 4


def test_overview_of_empty_report():
    overview = build_overview({})
    assert overview.highest_severity == "unknown"
    assert overview.category.key == "none"
    assert overview.interaction_count == 0
    assert overview.red_flag_count == 0
    assert overview.headline == "Highest Risk: Unknown"


# ── Report & export ─────────────────────────────────────────────────────────


def test_report_of_empty_result():
    report = build_report(AnalysisResult())
    assert report.findings == []
    assert report.red_flags == []
    assert report.monitoring_plan.is_empty
    assert report.summary_blocks == []
    assert report.disclaimer == ""


def test_report_sections(sample_report):
    report = build_report(sample_report)
    assert report.red_flags == sample_report["summary"]["red_flags"]
    assert report.monitoring_plan.follow_up == "4 weeks"
    assert report.counseling_points == ["Take ibuprofen with food."]
    assert report.sources == ["Lexicomp"]
    assert report.assumptions == ["Ibuprofen taken regularly."]
    assert [b.text for b in report.summary_blocks] == [
        "Summary", "Major: serotonin syndrome risk", "Consider acetaminophen.",
    ]


def test_export_report(sample_report):
    text = export_report(sample_report, run_id="abc12345")
    assert "Analysis ID    : abc12345" in text
    assert "Highest risk   : Major (major)" in text
    assert "[MAJOR] sertraline + sumatriptan" in text
    assert "ibuprofen → acetaminophen (for GI bleeding)" in text
    assert "Decision support only." in text


def test_export_of_empty_report():
    text = export_report({})
    assert "(none identified)" in text
    assert "(no specific monitoring plan provided)" in text
