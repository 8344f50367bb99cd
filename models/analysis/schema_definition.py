"""
ClinRx Interaction Copilot – Analysis Result Schema
====================================================
Pydantic models for the structured interaction report returned by the
AI service:

  AnalysisResult
  ├── patient_context      (demographic echo)
  ├── inputs               (parsed drug / substance / indication lists)
  ├── summary              (highest severity, counts, top risks, red flags)
  ├── detailed_findings    (five category-keyed lists of Interaction)
  ├── alternatives         (list of Alternative)
  └── monitoring_plan      (labs / vitals / symptoms + follow-up)

Every nested object may be missing and every list may be missing; the
models default them instead of failing. Severity is kept as a lower-cased
string so an unexpected value reaches the presenter instead of failing the
parse.
"""

from __future__ import annotations

import math
import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from models.intake.field_schema import RegimenInput


# ── Enums ───────────────────────────────────────────────────────────────────


class Severity(str, Enum):
    CONTRAINDICATED = "contraindicated"
    MAJOR = "major"
    MODERATE = "moderate"
    MINOR = "minor"
    NONE = "none"


SEVERITY_VALUES = tuple(s.value for s in Severity)


class FindingCategory(str, Enum):
    """detailed_findings keys, in display order."""
    DRUG_DRUG = "drug_drug"
    DRUG_DISEASE = "drug_disease"
    DRUG_FOOD = "drug_food"
    DRUG_HERBAL_OTC = "drug_herbal_otc"
    DUPLICATE_THERAPY = "duplicate_therapy"


FINDING_CATEGORIES = tuple(c.value for c in FindingCategory)


# ── Lenient field types ─────────────────────────────────────────────────────

_LEADING_INT = re.compile(r"^\s*(\d+)")


def _normalize_severity(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value
    text = str(value).strip().lower()
    return text or None


def _coerce_int(value: Any) -> Optional[int]:
    """29, 29.0, "29", "29 years" → 29; anything else (including inf/nan) → None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


SeverityText = Annotated[Optional[str], BeforeValidator(_normalize_severity)]
LenientInt = Annotated[Optional[int], BeforeValidator(_coerce_int)]


class _ReportModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)


# ── Interaction records ─────────────────────────────────────────────────────


class Interaction(_ReportModel):
    """One flagged interaction between agents, a disease, food, etc."""
    pair_or_cluster: str = ""
    severity: SeverityText = None
    evidence_level: str = ""
    mechanism: str = ""
    expected_clinical_effect: str = ""
    time_course: str = ""
    management: str = ""
    monitoring: List[str] = Field(default_factory=list)


class Alternative(_ReportModel):
    """One substitution suggestion."""
    target_issue: str = ""
    current_drug: str = ""
    proposed_alternative: str = ""
    rationale: str = ""
    notes: str = ""


class MonitoringPlan(_ReportModel):
    labs: List[str] = Field(default_factory=list)
    vitals_ecg: List[str] = Field(default_factory=list)
    symptoms_to_watch: List[str] = Field(default_factory=list)
    follow_up: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.labs or self.vitals_ecg or self.symptoms_to_watch)


# ── Context & summary ───────────────────────────────────────────────────────


class PatientContext(_ReportModel):
    age: LenientInt = None
    sex: Optional[str] = None
    pregnancy_lactation: Optional[str] = None
    renal_function: Optional[str] = None
    hepatic_function: Optional[str] = None
    comorbidities: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    region: Optional[str] = None


class RegimenEcho(_ReportModel):
    """The regimen as the model understood it."""
    drugs: List[str] = Field(default_factory=list)
    otc_herbal_substances: List[str] = Field(default_factory=list)
    indications: List[str] = Field(default_factory=list)


class AnalysisSummary(_ReportModel):
    highest_severity_found: SeverityText = None
    interaction_count: LenientInt = None
    top_risks: List[Interaction] = Field(default_factory=list)
    red_flags: List[str] = Field(default_factory=list)


class DetailedFindings(_ReportModel):
    drug_drug: List[Interaction] = Field(default_factory=list)
    drug_disease: List[Interaction] = Field(default_factory=list)
    drug_food: List[Interaction] = Field(default_factory=list)
    drug_herbal_otc: List[Interaction] = Field(default_factory=list)
    duplicate_therapy: List[Interaction] = Field(default_factory=list)


# ── Full report ─────────────────────────────────────────────────────────────


class AnalysisResult(_ReportModel):
    """Complete structured report parsed from the AI response."""
    patient_context: Optional[PatientContext] = None
    inputs: Optional[RegimenEcho] = None
    assumptions: List[str] = Field(default_factory=list)
    summary: Optional[AnalysisSummary] = None
    detailed_findings: Optional[DetailedFindings] = None
    alternatives: List[Alternative] = Field(default_factory=list)
    monitoring_plan: Optional[MonitoringPlan] = None
    patient_counseling_points: List[str] = Field(default_factory=list)
    sources_to_verify: List[str] = Field(default_factory=list)
    disclaimer: str = ""
    markdown_summary: str = ""


# ── Full Pipeline Result ────────────────────────────────────────────────────


class AnalysisRun(BaseModel):
    """One submission: the regimen snapshot and the report it produced."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4())[:8])
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    backend: str = ""
    model: str = ""
    regimen: RegimenInput
    result: AnalysisResult
