"""
ClinRx Interaction Copilot – Response Schema Descriptor
========================================================
Declarative description of the report shape, supplied to the AI service to
constrain its output. Written in the OpenAPI subset the Gemini API accepts
(upper-case type names, ``nullable``, ``enum``).

The descriptor is plain data, independent of any client:
  - ``RESPONSE_SCHEMA``      → sent as ``response_schema`` to Gemini / Vertex
  - ``to_json_schema()``     → JSON Schema rendering (Ollama ``format=``)
  - ``find_shape_deviations()`` → walks a parsed document and lists where it
                                  departs from the descriptor
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List

from models.analysis.schema_definition import FINDING_CATEGORIES, SEVERITY_VALUES

# ── Building blocks ─────────────────────────────────────────────────────────

_STRING: Dict[str, Any] = {"type": "STRING"}
_NULLABLE_STRING: Dict[str, Any] = {"type": "STRING", "nullable": True}
_STRING_LIST: Dict[str, Any] = {"type": "ARRAY", "items": _STRING}
_SEVERITY: Dict[str, Any] = {"type": "STRING", "enum": list(SEVERITY_VALUES)}

INTERACTION_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "pair_or_cluster": _STRING,
        "severity": _SEVERITY,
        "evidence_level": _STRING,
        "mechanism": _STRING,
        "expected_clinical_effect": _STRING,
        "time_course": _STRING,
        "management": _STRING,
        "monitoring": _STRING_LIST,
    },
}

_INTERACTION_LIST: Dict[str, Any] = {"type": "ARRAY", "items": INTERACTION_SCHEMA}

ALTERNATIVE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "target_issue": _STRING,
        "current_drug": _STRING,
        "proposed_alternative": _STRING,
        "rationale": _STRING,
        "notes": _STRING,
    },
}

# ── Full report ─────────────────────────────────────────────────────────────

RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "patient_context": {
            "type": "OBJECT",
            "properties": {
                "age": {"type": "INTEGER", "nullable": True},
                "sex": _NULLABLE_STRING,
                "pregnancy_lactation": _NULLABLE_STRING,
                "renal_function": _NULLABLE_STRING,
                "hepatic_function": _NULLABLE_STRING,
                "comorbidities": _STRING_LIST,
                "allergies": _STRING_LIST,
                "region": _NULLABLE_STRING,
            },
        },
        "inputs": {
            "type": "OBJECT",
            "properties": {
                "drugs": _STRING_LIST,
                "otc_herbal_substances": _STRING_LIST,
                "indications": _STRING_LIST,
            },
        },
        "assumptions": _STRING_LIST,
        "summary": {
            "type": "OBJECT",
            "properties": {
                "highest_severity_found": _SEVERITY,
                "interaction_count": {"type": "INTEGER"},
                "top_risks": _INTERACTION_LIST,
                "red_flags": _STRING_LIST,
            },
        },
        "detailed_findings": {
            "type": "OBJECT",
            "properties": {name: _INTERACTION_LIST for name in FINDING_CATEGORIES},
        },
        "alternatives": {"type": "ARRAY", "items": ALTERNATIVE_SCHEMA},
        "monitoring_plan": {
            "type": "OBJECT",
            "properties": {
                "labs": _STRING_LIST,
                "vitals_ecg": _STRING_LIST,
                "symptoms_to_watch": _STRING_LIST,
                "follow_up": _STRING,
            },
        },
        "patient_counseling_points": _STRING_LIST,
        "sources_to_verify": _STRING_LIST,
        "disclaimer": _STRING,
        "markdown_summary": {
            "type": "STRING",
            "description": "A human-readable summary of the findings in Markdown format.",
        },
    },
}


def response_schema() -> Dict[str, Any]:
    """A deep copy of the descriptor, safe to hand to an SDK that mutates it."""
    return copy.deepcopy(RESPONSE_SCHEMA)


# ── JSON Schema rendering ───────────────────────────────────────────────────


def to_json_schema(schema: Dict[str, Any] = RESPONSE_SCHEMA) -> Dict[str, Any]:
    """Render the descriptor as standard JSON Schema (lower-case types)."""
    out: Dict[str, Any] = {}
    json_type = schema["type"].lower()
    out["type"] = [json_type, "null"] if schema.get("nullable") else json_type
    if "enum" in schema:
        out["enum"] = list(schema["enum"])
    if "description" in schema:
        out["description"] = schema["description"]
    if "items" in schema:
        out["items"] = to_json_schema(schema["items"])
    if "properties" in schema:
        out["properties"] = {
            name: to_json_schema(sub) for name, sub in schema["properties"].items()
        }
    return out


# ── Shape check ─────────────────────────────────────────────────────────────

_PY_TYPES = {
    "STRING": (str,),
    "INTEGER": (int,),
    "NUMBER": (int, float),
    "BOOLEAN": (bool,),
    "ARRAY": (list,),
    "OBJECT": (dict,),
}


def find_shape_deviations(
    data: Any,
    schema: Dict[str, Any] = RESPONSE_SCHEMA,
    path: str = "$",
) -> List[str]:
    """
    List the places where *data* departs from *schema*.

    Missing keys and nulls are not deviations (the report models default
    them). Unknown keys are ignored.
    """
    if data is None:
        return []

    expected = schema["type"]
    allowed = _PY_TYPES.get(expected, (object,))
    if isinstance(data, bool) and expected != "BOOLEAN":
        return [f"{path}: expected {expected.lower()}, got bool"]
    if not isinstance(data, allowed):
        return [f"{path}: expected {expected.lower()}, got {type(data).__name__}"]

    deviations: List[str] = []
    if "enum" in schema and isinstance(data, str) and data.strip().lower() not in schema["enum"]:
        deviations.append(f"{path}: '{data}' is not one of {schema['enum']}")

    if expected == "OBJECT":
        for name, sub in schema.get("properties", {}).items():
            if name in data:
                deviations.extend(find_shape_deviations(data[name], sub, f"{path}.{name}"))
    elif expected == "ARRAY" and "items" in schema:
        for i, item in enumerate(data):
            deviations.extend(find_shape_deviations(item, schema["items"], f"{path}[{i}]"))

    return deviations
