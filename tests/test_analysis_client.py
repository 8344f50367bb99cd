"""Response parsing, typed errors and the backend factory."""

import json

import pytest

from models.analysis.errors import (
    AnalysisError,
    EmptyResponse,
    InvalidResponseFormat,
    MissingCredentials,
    TransportFailure,
)
from models.analysis.interaction_analyzer import (
    GeminiAnalyzer,
    HFEndpointAnalyzer,
    OllamaAnalyzer,
    create_analyzer,
    parse_analysis_text,
    strip_code_fence,
)
from models.analysis.prompt_builder import SYSTEM_INSTRUCTION
from models.analysis.response_schema import RESPONSE_SCHEMA
from models.analysis.schema_definition import AnalysisResult
from models.intake.field_schema import RegimenInput


# ── parse_analysis_text ─────────────────────────────────────────────────────


def test_fenced_json_with_whitespace():
    text = '  ```json\n{"summary": {"highest_severity_found": "major"}}\n```  '
    result = parse_analysis_text(text)
    assert result.summary.highest_severity_found == "major"


def test_bare_fence():
    result = parse_analysis_text('```\n{"disclaimer": "x"}\n```')
    assert result.disclaimer == "x"


def test_strip_code_fence_leaves_plain_json():
    assert strip_code_fence('{"a": 1}') == '{"a": 1}'


@pytest.mark.parametrize("text", ["", "   ", "\n\n", None])
def test_empty_response(text):
    with pytest.raises(EmptyResponse):
        parse_analysis_text(text)


def test_not_json():
    with pytest.raises(InvalidResponseFormat) as exc_info:
        parse_analysis_text("not json")
    assert exc_info.value.user_message == (
        "The AI returned an invalid JSON response. Please try again or adjust your inputs."
    )
    assert exc_info.value.detail


@pytest.mark.parametrize("text", ["[1, 2]", '"text"', "42"])
def test_non_object_top_level(text):
    with pytest.raises(InvalidResponseFormat):
        parse_analysis_text(text)


def test_wrong_nested_type_is_invalid():
    with pytest.raises(InvalidResponseFormat):
        parse_analysis_text(json.dumps({"summary": {"top_risks": "none"}}))


def test_full_report(sample_report):
    result = parse_analysis_text(json.dumps(sample_report))
    assert isinstance(result, AnalysisResult)
    assert result.patient_context.age == 29
    assert len(result.detailed_findings.drug_drug) == 2
    assert result.alternatives[0].proposed_alternative == "acetaminophen"


def test_partial_report_defaults():
    result = parse_analysis_text('{"markdown_summary": "ok"}')
    assert result.summary is None
    assert result.detailed_findings is None
    assert result.alternatives == []
    assert result.markdown_summary == "ok"


def test_nulls_are_treated_as_absent():
    text = json.dumps({
        "disclaimer": None,
        "alternatives": None,
        "summary": {"red_flags": ["a", None, "b"], "highest_severity_found": None},
    })
    result = parse_analysis_text(text)
    assert result.disclaimer == ""
    assert result.alternatives == []
    assert result.summary.red_flags == ["a", "b"]
    assert result.summary.highest_severity_found is None


def test_severity_is_normalised_not_rejected():
    text = json.dumps({"summary": {"highest_severity_found": " MAJOR "},
                       "detailed_findings": {"drug_food": [{"severity": "severe"}]}})
    result = parse_analysis_text(text)
    assert result.summary.highest_severity_found == "major"
    assert result.detailed_findings.drug_food[0].severity == "severe"


@pytest.mark.parametrize("age, expected", [(29, 29), ("29", 29), ("29 years", 29), ("adult", None)])
def test_age_coercion(age, expected):
    result = parse_analysis_text(json.dumps({"patient_context": {"age": age}}))
    assert result.patient_context.age == expected


def test_unknown_keys_ignored():
    result = parse_analysis_text('{"extra_section": [1, 2], "disclaimer": "d"}')
    assert result.disclaimer == "d"


@pytest.mark.parametrize("number", ["1e400", "-1e400", "Infinity", "NaN"])
def test_non_finite_numbers_read_as_absent(number):
    text = '{"summary": {"interaction_count": %s}, "patient_context": {"age": %s}}' % (number, number)
    result = parse_analysis_text(text)
    assert result.summary.interaction_count is None
    assert result.patient_context.age is None


def test_unexpected_validation_failure_is_invalid_format(monkeypatch):
    import models.analysis.interaction_analyzer as analyzer_module

    def explode(_data):
        raise OverflowError("cannot convert float infinity to integer")

    monkeypatch.setattr(analyzer_module, "validate_analysis_result", explode)
    with pytest.raises(InvalidResponseFormat) as exc:
        parse_analysis_text('{"summary": {}}')
    assert "infinity" in exc.value.detail


# ── InteractionAnalyzer.analyze ─────────────────────────────────────────────


def test_analyze_sends_prompt_and_schema(fake_analyzer):
    result = fake_analyzer.analyze(RegimenInput(drug_list="warfarin 5 mg"))
    assert result.summary.highest_severity_found == "major"

    call = fake_analyzer.calls[0]
    assert call["system_instruction"] == SYSTEM_INSTRUCTION
    assert "warfarin 5 mg" in call["user_prompt"]
    assert call["schema"] == RESPONSE_SCHEMA
    assert call["schema"] is not RESPONSE_SCHEMA


def test_analyze_fenced_reply(make_analyzer, sample_report):
    analyzer = make_analyzer(reply="```json\n" + json.dumps(sample_report) + "\n```")
    assert analyzer.analyze(RegimenInput()).disclaimer == "Decision support only."


def test_analyze_empty_reply(make_analyzer):
    with pytest.raises(EmptyResponse):
        make_analyzer(reply="  ").analyze(RegimenInput())


def test_analyze_invalid_reply(make_analyzer):
    with pytest.raises(InvalidResponseFormat):
        make_analyzer(reply="Sorry, I cannot help with that.").analyze(RegimenInput())


def test_analyze_overflowing_count(make_analyzer, sample_report):
    reply = json.dumps(sample_report).replace('"interaction_count": 4', '"interaction_count": 1e400')
    assert "1e400" in reply
    result = make_analyzer(reply=reply).analyze(RegimenInput())
    assert result.summary.interaction_count is None


def test_transport_failure_carries_message(make_analyzer):
    analyzer = make_analyzer(error=ConnectionError("connection reset"))
    with pytest.raises(TransportFailure) as exc_info:
        analyzer.analyze(RegimenInput())
    assert exc_info.value.user_message == "connection reset"
    assert exc_info.value.kind == "transport_failure"


def test_transport_failure_without_message(make_analyzer):
    with pytest.raises(TransportFailure) as exc_info:
        make_analyzer(error=TimeoutError()).analyze(RegimenInput())
    assert exc_info.value.user_message == TransportFailure.default_message


def test_analysis_errors_from_backend_pass_through(make_analyzer):
    with pytest.raises(EmptyResponse):
        make_analyzer(error=EmptyResponse()).analyze(RegimenInput())


def test_missing_credentials_fails_before_request(make_analyzer):
    analyzer = make_analyzer(api_key=None)
    with pytest.raises(MissingCredentials) as exc_info:
        analyzer.analyze(RegimenInput())
    assert isinstance(exc_info.value, TransportFailure)
    assert analyzer.calls == []


def test_error_to_dict():
    err = InvalidResponseFormat(detail="Expecting value")
    assert err.to_dict() == {"error": "invalid_response_format", "message": err.user_message}
    assert isinstance(err, AnalysisError)


# ── Backends ────────────────────────────────────────────────────────────────


def test_gemini_without_key_constructs_but_fails_fast():
    analyzer = GeminiAnalyzer(api_key=None)
    assert analyzer.backend == "gemini"
    with pytest.raises(MissingCredentials):
        analyzer.analyze(RegimenInput())


def test_vertex_without_project_fails_fast():
    analyzer = GeminiAnalyzer(vertexai=True, project=None)
    assert analyzer.backend == "vertex_ai"
    with pytest.raises(MissingCredentials):
        analyzer.analyze(RegimenInput())


def test_hf_endpoint_requires_url_and_token():
    with pytest.raises(MissingCredentials):
        HFEndpointAnalyzer(endpoint_url="https://example.invalid", token=None).analyze(RegimenInput())
    with pytest.raises(MissingCredentials):
        HFEndpointAnalyzer(endpoint_url=None, token="t").analyze(RegimenInput())


def test_factory_defaults_to_gemini():
    analyzer = create_analyzer({"api_key": "k"})
    assert isinstance(analyzer, GeminiAnalyzer)
    assert analyzer.model == "gemini-2.5-flash"
    assert analyzer.timeout == 120


def test_factory_backends():
    assert isinstance(create_analyzer({"backend": "vertex_ai", "vertex_project": "p"}), GeminiAnalyzer)
    ollama = create_analyzer({"backend": "ollama", "ollama_model": "llama3.1:8b", "timeout": 30})
    assert isinstance(ollama, OllamaAnalyzer)
    assert ollama.timeout == 30
    assert isinstance(create_analyzer({"backend": "hf_endpoint"}), HFEndpointAnalyzer)


def test_factory_unknown_backend():
    with pytest.raises(ValueError):
        create_analyzer({"backend": "openai"})
