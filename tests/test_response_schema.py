"""Response schema descriptor and its agreement with the report models."""

from pydantic import BaseModel

from models.analysis.response_schema import (
    RESPONSE_SCHEMA,
    find_shape_deviations,
    response_schema,
    to_json_schema,
)
from models.analysis.schema_definition import (
    FINDING_CATEGORIES,
    SEVERITY_VALUES,
    AnalysisResult,
    AnalysisSummary,
    Interaction,
)


def _nested_model(annotation):
    """The BaseModel class inside Optional[...] / List[...], if any."""
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    for arg in getattr(annotation, "__args__", ()) or ():
        found = _nested_model(arg)
        if found is not None:
            return found
    return None


def _assert_matches(model, schema, path="$"):
    assert set(schema["properties"]) == set(model.model_fields), path
    for name, field in model.model_fields.items():
        nested = _nested_model(field.annotation)
        if nested is None:
            continue
        sub = schema["properties"][name]
        if sub["type"] == "ARRAY":
            sub = sub["items"]
        _assert_matches(nested, sub, f"{path}.{name}")


def test_descriptor_matches_models():
    _assert_matches(AnalysisResult, RESPONSE_SCHEMA)


def test_severity_enum():
    summary = RESPONSE_SCHEMA["properties"]["summary"]["properties"]
    assert summary["highest_severity_found"]["enum"] == list(SEVERITY_VALUES)
    interaction = summary["top_risks"]["items"]["properties"]
    assert interaction["severity"]["enum"] == list(SEVERITY_VALUES)
    assert set(AnalysisSummary.model_fields) == {
        "highest_severity_found", "interaction_count", "top_risks", "red_flags",
    }
    assert "severity" in Interaction.model_fields


def test_detailed_findings_categories():
    props = RESPONSE_SCHEMA["properties"]["detailed_findings"]["properties"]
    assert tuple(props) == FINDING_CATEGORIES


def test_response_schema_is_a_copy():
    copy = response_schema()
    copy["properties"].clear()
    assert RESPONSE_SCHEMA["properties"]


def test_json_schema_rendering():
    js = to_json_schema()
    assert js["type"] == "object"
    context = js["properties"]["patient_context"]["properties"]
    assert context["age"]["type"] == ["integer", "null"]
    assert context["allergies"] == {"type": "array", "items": {"type": "string"}}
    assert js["properties"]["summary"]["properties"]["highest_severity_found"]["enum"] == list(SEVERITY_VALUES)
    assert "description" in js["properties"]["markdown_summary"]


def test_conforming_document_has_no_deviations(sample_report):
    assert find_shape_deviations(sample_report) == []


def test_missing_and_null_are_not_deviations():
    assert find_shape_deviations({}) == []
    assert find_shape_deviations({"summary": None, "patient_context": {"age": None}}) == []


def test_deviations_are_located():
    deviations = find_shape_deviations({
        "summary": {"interaction_count": "three", "highest_severity_found": "severe"},
        "alternatives": [{"notes": 5}],
        "detailed_findings": {"drug_drug": [{"monitoring": [True]}]},
    })
    assert "$.summary.interaction_count: expected integer, got str" in deviations
    assert any(d.startswith("$.summary.highest_severity_found:") for d in deviations)
    assert "$.alternatives[0].notes: expected string, got int" in deviations
    assert "$.detailed_findings.drug_drug[0].monitoring[0]: expected string, got bool" in deviations
