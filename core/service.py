"""
ClinRx Interaction Copilot – Service
=====================================
Top-level entrypoint shared by the API, the web UI and the CLI.
Loads configuration once, resolves credentials from the environment once,
and owns the analyzer and the regimen pipeline.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml

from models.analysis.errors import MissingCredentials
from models.analysis.interaction_analyzer import (
    DEFAULT_GEMINI_MODEL,
    DEFAULT_TIMEOUT_S,
    InteractionAnalyzer,
    create_analyzer,
)
from models.analysis.schema_definition import AnalysisRun
from models.intake.field_schema import RegimenInput
from pipelines.regimen_pipeline import RegimenPipeline

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "configs" / "model_config.yaml"

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


def resolve_api_key() -> Optional[str]:
    """First non-empty key among API_KEY_ENV_VARS."""
    for name in API_KEY_ENV_VARS:
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def load_config(config_path: Optional[Union[str, Path]] = None) -> dict:
    cfg_path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        logger.info("No config file at %s – using defaults", cfg_path)
        return {}
    with open(cfg_path) as f:
        return yaml.safe_load(f) or {}


class ClinRxService:
    """One-call entrypoint for ClinRx Interaction Copilot."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        analyzer: Optional[InteractionAnalyzer] = None,
    ):
        self.config: dict = load_config(config_path)
        self.analysis_config = self._build_analysis_config()

        self.analyzer = analyzer or create_analyzer(self.analysis_config)
        logger.info(
            "Analysis backend: %s (model=%s)", self.analyzer.backend, self.analyzer.model,
        )
        self.pipeline = RegimenPipeline(self.analyzer)

    def _build_analysis_config(self) -> dict:
        a = self.config.get("analysis", {})
        params = a.get("parameters", {})
        return {
            "backend": a.get("backend", "gemini"),
            # gemini / vertex_ai
            "model":           a.get("model", DEFAULT_GEMINI_MODEL),
            "api_key":         resolve_api_key(),
            "vertex_project":  a.get("vertex_project") or os.environ.get("GOOGLE_CLOUD_PROJECT"),
            "vertex_location": a.get("vertex_location")
                               or os.environ.get("GOOGLE_CLOUD_LOCATION", "us-central1"),
            # ollama
            "ollama_model":    a.get("ollama_model", "llama3.1:8b"),
            "ollama_base_url": a.get("ollama_base_url"),
            # hf_endpoint
            "endpoint_url":    a.get("endpoint_url") or os.environ.get("ANALYSIS_ENDPOINT_URL"),
            "hf_token":        os.environ.get("HF_API_TOKEN") or os.environ.get("HF_TOKEN"),
            "max_output_tokens": params.get("max_output_tokens"),
            "temperature":       params.get("temperature", 0.2),
            "timeout":           a.get("timeout", DEFAULT_TIMEOUT_S),
        }

    # ── Public API ──────────────────────────────────────────────────────

    @property
    def backend(self) -> str:
        return self.analyzer.backend

    @property
    def model(self) -> str:
        return self.analyzer.model

    @property
    def credentials_configured(self) -> bool:
        """False when the next analysis would fail with MissingCredentials."""
        try:
            self.analyzer._check_credentials()
        except MissingCredentials:
            return False
        return True

    def analyze(self, regimen: Union[RegimenInput, dict]) -> AnalysisRun:
        """
        Run one interaction analysis.

        Parameters
        ----------
        regimen : RegimenInput or dict
            Form values; a dict is validated first.

        Returns
        -------
        AnalysisRun

        Raises
        ------
        ValueError
            The dict does not validate as a RegimenInput.
        AnalysisError
            Any analysis failure (see models.analysis.errors).
        """
        return self.pipeline.run(regimen)
