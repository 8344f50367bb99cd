"""
ClinRx Interaction Copilot – Regimen Field Schema
==================================================
The fixed set of regimen intake fields, their example values, and the
per-field "still showing the example" tracking used by the form.

The example values double as the form defaults: a field that is never
touched is submitted with its example text, not treated as empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict


# ── Enums ───────────────────────────────────────────────────────────────────


class Audience(str, Enum):
    CLINICIAN = "clinician"
    PATIENT = "patient"


class SummaryLevel(str, Enum):
    BRIEF = "brief"
    DETAILED = "detailed"


class FieldKind(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"


# ── Field specs ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldSpec:
    """Display metadata for one intake field."""
    name: str
    label: str
    section: str
    example: str
    kind: FieldKind = FieldKind.TEXT
    placeholder: str = ""
    choices: Tuple[str, ...] = ()
    rows: int = 1


SECTION_MEDICATIONS = "Medications & Substances"
SECTION_CLINICAL = "Clinical Context"
SECTION_DEMOGRAPHICS = "Patient Demographics & Vitals"
SECTION_OUTPUT = "Audience & Output"

SECTIONS: Tuple[str, ...] = (
    SECTION_MEDICATIONS,
    SECTION_CLINICAL,
    SECTION_DEMOGRAPHICS,
    SECTION_OUTPUT,
)

FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec(
        "drug_list", "Prescription Drugs", SECTION_MEDICATIONS,
        "sertraline 100 mg daily; sumatriptan 50 mg PRN; ibuprofen 400 mg TID; omeprazole 20 mg daily",
        kind=FieldKind.TEXTAREA, placeholder="e.g., sertraline 100 mg daily...", rows=4,
    ),
    FieldSpec(
        "otc_herbal", "OTC / Herbal / Substances", SECTION_MEDICATIONS,
        "caffeine ~300 mg/day, melatonin 3 mg HS",
        kind=FieldKind.TEXTAREA, placeholder="e.g., St. John's wort, melatonin...", rows=3,
    ),
    FieldSpec(
        "indications", "Indications / Goals", SECTION_CLINICAL,
        "migraine, generalized anxiety, GERD",
        placeholder="e.g., migraine, GAD, GERD",
    ),
    FieldSpec("age", "Age", SECTION_DEMOGRAPHICS, "29"),
    FieldSpec("sex", "Sex", SECTION_DEMOGRAPHICS, "Female"),
    FieldSpec(
        "pregnancy_lactation", "Pregnancy / Lactation", SECTION_DEMOGRAPHICS, "none",
        placeholder="e.g., 2nd trimester, breastfeeding",
    ),
    FieldSpec(
        "weight_bmi", "Weight / BMI", SECTION_DEMOGRAPHICS, "",
        placeholder="e.g., 68 kg, BMI 24",
    ),
    FieldSpec(
        "renal_function", "Renal Function", SECTION_DEMOGRAPHICS, "eGFR 100",
        placeholder="e.g., eGFR 100",
    ),
    FieldSpec(
        "hepatic_function", "Hepatic Function", SECTION_DEMOGRAPHICS, "normal",
        placeholder="e.g., normal",
    ),
    FieldSpec(
        "comorbidities", "Comorbidities", SECTION_CLINICAL, "none",
        placeholder="e.g., CAD, HF, CKD3",
    ),
    FieldSpec(
        "allergies", "Allergies / Intolerances", SECTION_CLINICAL, "NKDA",
        placeholder="e.g., penicillin (rash)",
    ),
    FieldSpec(
        "baseline_tests", "Vitals / Baseline Tests", SECTION_DEMOGRAPHICS, "QTc 430 ms",
        placeholder="e.g., QTc 430 ms, K 4.1",
    ),
    FieldSpec("region", "Region / Locale", SECTION_OUTPUT, "US", placeholder="e.g., US, UK, IN"),
    FieldSpec(
        "audience", "Audience", SECTION_OUTPUT, Audience.CLINICIAN.value,
        kind=FieldKind.SELECT, choices=tuple(a.value for a in Audience),
    ),
    FieldSpec(
        "summary_level", "Detail Level", SECTION_OUTPUT, SummaryLevel.DETAILED.value,
        kind=FieldKind.SELECT, choices=(SummaryLevel.DETAILED.value, SummaryLevel.BRIEF.value),
    ),
    FieldSpec("language", "Language", SECTION_OUTPUT, "English"),
)

FIELD_NAMES: Tuple[str, ...] = tuple(spec.name for spec in FIELD_SPECS)

_SPECS_BY_NAME: Dict[str, FieldSpec] = {spec.name: spec for spec in FIELD_SPECS}


def get_field_spec(name: str) -> FieldSpec:
    """Look up a field spec by name (KeyError for unknown fields)."""
    return _SPECS_BY_NAME[name]


def fields_in_section(section: str) -> List[FieldSpec]:
    return [spec for spec in FIELD_SPECS if spec.section == section]


def default_form_values() -> Dict[str, str]:
    """Example values keyed by field name, in field order."""
    return {spec.name: spec.example for spec in FIELD_SPECS}


# ── Regimen snapshot ────────────────────────────────────────────────────────


class RegimenInput(BaseModel):
    """Immutable snapshot of the intake form taken at submission time."""

    model_config = ConfigDict(frozen=True, extra="forbid", coerce_numbers_to_str=True)

    drug_list: str = _SPECS_BY_NAME["drug_list"].example
    otc_herbal: str = _SPECS_BY_NAME["otc_herbal"].example
    indications: str = _SPECS_BY_NAME["indications"].example
    age: str = _SPECS_BY_NAME["age"].example
    sex: str = _SPECS_BY_NAME["sex"].example
    pregnancy_lactation: str = _SPECS_BY_NAME["pregnancy_lactation"].example
    weight_bmi: str = _SPECS_BY_NAME["weight_bmi"].example
    renal_function: str = _SPECS_BY_NAME["renal_function"].example
    hepatic_function: str = _SPECS_BY_NAME["hepatic_function"].example
    comorbidities: str = _SPECS_BY_NAME["comorbidities"].example
    allergies: str = _SPECS_BY_NAME["allergies"].example
    baseline_tests: str = _SPECS_BY_NAME["baseline_tests"].example
    region: str = _SPECS_BY_NAME["region"].example
    audience: Audience = Audience.CLINICIAN
    summary_level: SummaryLevel = SummaryLevel.DETAILED
    language: str = _SPECS_BY_NAME["language"].example

    def field_values(self) -> Dict[str, str]:
        """Field name → plain string value, enums flattened to their value."""
        values: Dict[str, str] = {}
        for name in FIELD_NAMES:
            value = getattr(self, name)
            values[name] = value.value if isinstance(value, Enum) else value
        return values


# ── Modified-field tracking ─────────────────────────────────────────────────


@dataclass
class FormTracker:
    """
    Tracks which fields the user has touched.

    A field still showing its example text is rendered greyed out and is
    cleared on first focus. Only the presentation layer reads this; the
    prompt always receives whatever value the field currently holds.
    """
    values: Dict[str, str] = field(default_factory=default_form_values)
    modified: Set[str] = field(default_factory=set)

    def edit(self, name: str, value: str) -> None:
        get_field_spec(name)
        self.values[name] = value
        self.modified.add(name)

    def focus(self, name: str) -> None:
        """Clear an untouched text field that still holds its example."""
        spec = get_field_spec(name)
        if spec.kind is FieldKind.SELECT:
            return
        if name not in self.modified:
            self.values[name] = ""
            self.modified.add(name)

    def is_showing_example(self, name: str) -> bool:
        return name not in self.modified and bool(self.values.get(name))

    def reset(self, names: Optional[Iterable[str]] = None) -> None:
        defaults = default_form_values()
        for name in names if names is not None else FIELD_NAMES:
            self.values[name] = defaults[name]
            self.modified.discard(name)

    def snapshot(self) -> RegimenInput:
        """Freeze the current values into a RegimenInput."""
        return RegimenInput(**self.values)
