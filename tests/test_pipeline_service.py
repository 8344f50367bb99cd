"""RegimenPipeline and ClinRxService wiring."""

import pytest

from core.service import ClinRxService, load_config, resolve_api_key
from models.analysis.errors import InvalidResponseFormat, MissingCredentials
from models.analysis.interaction_analyzer import GeminiAnalyzer, OllamaAnalyzer
from models.intake.field_schema import RegimenInput
from pipelines.regimen_pipeline import RegimenPipeline

_ENV_VARS = (
    "GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY",
    "GOOGLE_CLOUD_PROJECT", "ANALYSIS_ENDPOINT_URL", "HF_API_TOKEN", "HF_TOKEN",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config_file(tmp_path):
    def write(text: str) -> str:
        path = tmp_path / "model_config.yaml"
        path.write_text(text)
        return str(path)
    return write


# ── Pipeline ────────────────────────────────────────────────────────────────


def test_pipeline_run(fake_analyzer):
    regimen = RegimenInput(age="72")
    run = RegimenPipeline(fake_analyzer).run(regimen)

    assert len(run.id) == 8
    assert run.timestamp
    assert run.backend == "fake"
    assert run.model == "fake-model"
    assert run.regimen is regimen
    assert run.result.summary.highest_severity_found == "major"


def test_pipeline_validates_dict(fake_analyzer):
    run = RegimenPipeline(fake_analyzer).run({"drug_list": "warfarin"})
    assert run.regimen.drug_list == "warfarin"
    assert run.regimen.age == "29"


def test_pipeline_rejects_bad_dict(fake_analyzer):
    with pytest.raises(ValueError, match="audience"):
        RegimenPipeline(fake_analyzer).run({"audience": "nurse"})
    assert fake_analyzer.calls == []


def test_pipeline_propagates_analysis_errors(make_analyzer):
    with pytest.raises(InvalidResponseFormat):
        RegimenPipeline(make_analyzer(reply="oops")).run(RegimenInput())


# ── Configuration ───────────────────────────────────────────────────────────


def test_resolve_api_key_order(clean_env):
    assert resolve_api_key() is None
    clean_env.setenv("API_KEY", "legacy")
    assert resolve_api_key() == "legacy"
    clean_env.setenv("GEMINI_API_KEY", "primary")
    assert resolve_api_key() == "primary"


def test_blank_key_is_missing(clean_env):
    clean_env.setenv("GEMINI_API_KEY", "   ")
    assert resolve_api_key() is None


def test_missing_config_file_uses_defaults(tmp_path):
    assert load_config(tmp_path / "absent.yaml") == {}


def test_service_defaults(clean_env, tmp_path):
    service = ClinRxService(config_path=str(tmp_path / "absent.yaml"))
    assert isinstance(service.analyzer, GeminiAnalyzer)
    assert service.backend == "gemini"
    assert service.model == "gemini-2.5-flash"
    assert service.credentials_configured is False


def test_service_injects_key(clean_env, tmp_path):
    clean_env.setenv("GEMINI_API_KEY", "secret")
    service = ClinRxService(config_path=str(tmp_path / "absent.yaml"))
    assert service.analyzer.api_key == "secret"
    assert service.credentials_configured is True


def test_service_without_key_fails_fast(clean_env, tmp_path):
    service = ClinRxService(config_path=str(tmp_path / "absent.yaml"))
    with pytest.raises(MissingCredentials):
        service.analyze(RegimenInput())


def test_service_reads_yaml(clean_env, config_file):
    path = config_file(
        "analysis:\n"
        "  backend: ollama\n"
        "  ollama_model: qwen2.5:7b\n"
        "  timeout: 45\n"
        "  parameters:\n"
        "    temperature: 0.0\n"
    )
    service = ClinRxService(config_path=path)
    assert isinstance(service.analyzer, OllamaAnalyzer)
    assert service.model == "qwen2.5:7b"
    assert service.analyzer.timeout == 45
    assert service.analyzer.temperature == 0.0
    assert service.credentials_configured is True


def test_service_with_injected_analyzer(fake_analyzer, tmp_path):
    service = ClinRxService(config_path=str(tmp_path / "absent.yaml"), analyzer=fake_analyzer)
    run = service.analyze({"age": "50"})
    assert run.regimen.age == "50"
    assert service.backend == "fake"


def test_cli_service_rebuilt_for_new_config_path(clean_env, tmp_path):
    import main

    clean_env.setattr(main, "_service", None)
    clean_env.setattr(main, "_service_config_path", None)
    first = tmp_path / "first.yaml"
    first.write_text("analysis:\n  backend: gemini\n  model: gemini-2.5-flash\n")
    second = tmp_path / "second.yaml"
    second.write_text("analysis:\n  backend: gemini\n  model: gemini-2.5-pro\n")

    service = main._get_service(str(first))
    assert main._get_service(str(first)) is service
    assert service.model == "gemini-2.5-flash"
    assert main._get_service(str(second)).model == "gemini-2.5-pro"
