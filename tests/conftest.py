"""Shared fixtures: a canned report and an analyzer that never touches the network."""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, List, Optional

import pytest

from models.analysis.errors import MissingCredentials
from models.analysis.interaction_analyzer import InteractionAnalyzer


def _interaction(pair: str, severity: str = "moderate") -> Dict[str, Any]:
    return {
        "pair_or_cluster": pair,
        "severity": severity,
        "evidence_level": "moderate",
        "mechanism": f"mechanism of {pair}",
        "expected_clinical_effect": "effect",
        "time_course": "days",
        "management": "monitor",
        "monitoring": ["ECG"],
    }


SAMPLE_REPORT: Dict[str, Any] = {
    "patient_context": {
        "age": 29,
        "sex": "Female",
        "pregnancy_lactation": "none",
        "renal_function": "eGFR 100",
        "hepatic_function": "normal",
        "comorbidities": [],
        "allergies": ["NKDA"],
        "region": "US",
    },
    "inputs": {
        "drugs": ["sertraline", "sumatriptan", "ibuprofen", "omeprazole"],
        "otc_herbal_substances": ["caffeine", "melatonin"],
        "indications": ["migraine", "generalized anxiety", "GERD"],
    },
    "assumptions": ["Ibuprofen taken regularly."],
    "summary": {
        "highest_severity_found": "major",
        "interaction_count": 4,
        "top_risks": [_interaction("sertraline + sumatriptan", "major")],
        "red_flags": ["Agitation or fever after a triptan dose", "Black stools"],
    },
    "detailed_findings": {
        "drug_drug": [
            _interaction("sertraline + sumatriptan", "major"),
            _interaction("sertraline + ibuprofen", "major"),
        ],
        "drug_disease": [_interaction("ibuprofen + GERD", "moderate")],
        "drug_food": [],
        "drug_herbal_otc": [_interaction("sertraline + melatonin", "minor")],
        "duplicate_therapy": [],
    },
    "alternatives": [
        {
            "target_issue": "GI bleeding",
            "current_drug": "ibuprofen",
            "proposed_alternative": "acetaminophen",
            "rationale": "No antiplatelet effect",
            "notes": "Max 3 g/day",
        }
    ],
    "monitoring_plan": {
        "labs": ["CBC"],
        "vitals_ecg": [],
        "symptoms_to_watch": ["tremor"],
        "follow_up": "4 weeks",
    },
    "patient_counseling_points": ["Take ibuprofen with food."],
    "sources_to_verify": ["Lexicomp"],
    "disclaimer": "Decision support only.",
    "markdown_summary": "## Summary\n* **Major:** serotonin syndrome risk\nConsider acetaminophen.",
}


class FakeAnalyzer(InteractionAnalyzer):
    """Returns canned text (or raises) instead of calling a model."""

    backend = "fake"

    def __init__(
        self,
        reply: Optional[str] = None,
        error: Optional[Exception] = None,
        api_key: Optional[str] = "test-key",
    ):
        super().__init__(model="fake-model")
        self.reply = reply if reply is not None else json.dumps(SAMPLE_REPORT)
        self.error = error
        self.api_key = api_key
        self.calls: List[Dict[str, Any]] = []

    def _check_credentials(self) -> None:
        if not self.api_key:
            raise MissingCredentials()

    def _call_model(self, system_instruction, user_prompt, schema):
        self.calls.append(
            {"system_instruction": system_instruction, "user_prompt": user_prompt, "schema": schema}
        )
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def sample_report() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_REPORT)


@pytest.fixture
def fake_analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture
def make_analyzer():
    """FakeAnalyzer constructor, for tests that need a specific reply or error."""
    return FakeAnalyzer
