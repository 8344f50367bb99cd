"""
ClinRx Interaction Copilot – Interaction Analyzer
==================================================
Sends (system instruction, user prompt, response schema) to a text
generation backend and turns the raw reply into an AnalysisResult.

Backends:
  - "gemini"       : Google Gen AI SDK with an API key (default)
  - "vertex_ai"    : Google Gen AI SDK in Vertex AI mode (ADC credentials)
  - "ollama"       : Local Ollama server via LangChain
  - "hf_endpoint"  : Dedicated HuggingFace Inference Endpoint (TGI grammar)

One blocking request per analysis. No retry, no streaming.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, Optional

from core.validation import report_shape_deviations, validate_analysis_result
from models.analysis.errors import (
    AnalysisError,
    EmptyResponse,
    InvalidResponseFormat,
    MissingCredentials,
    TransportFailure,
)
from models.analysis.prompt_builder import SYSTEM_INSTRUCTION, build_user_prompt
from models.analysis.response_schema import response_schema, to_json_schema
from models.analysis.schema_definition import AnalysisResult
from models.intake.field_schema import RegimenInput

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_S = 120

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


# ── Response parsing ────────────────────────────────────────────────────────


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""
    return _FENCE.sub("", text)


def parse_analysis_text(text: Optional[str]) -> AnalysisResult:
    """
    Turn raw response text into an AnalysisResult.

    Raises
    ------
    EmptyResponse
        The text is empty after trimming.
    InvalidResponseFormat
        The text is not a JSON object of the expected shape.
    """
    text = (text or "").strip()
    if not text:
        raise EmptyResponse()

    cleaned = strip_code_fence(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Response is not valid JSON: %s", e)
        raise InvalidResponseFormat(detail=str(e)) from e

    if not isinstance(data, dict):
        logger.error("Response JSON is a %s, not an object", type(data).__name__)
        raise InvalidResponseFormat(detail=f"Expected a JSON object, got {type(data).__name__}")

    report_shape_deviations(data)
    try:
        result, errors = validate_analysis_result(data)
    except (ValueError, TypeError, ArithmeticError) as e:
        logger.error("Response could not be validated: %s", e)
        raise InvalidResponseFormat(detail=str(e)) from e
    if result is None:
        raise InvalidResponseFormat(detail="; ".join(errors))
    return result


# ── Base analyzer ───────────────────────────────────────────────────────────


class InteractionAnalyzer:
    """Shared request/parse flow; subclasses implement ``_call_model``."""

    backend = "base"

    def __init__(self, model: str, timeout: float = DEFAULT_TIMEOUT_S, temperature: float = 0.2):
        self.model = model
        self.timeout = timeout
        self.temperature = temperature

    # ── Backend hooks ───────────────────────────────────────────────────

    def _check_credentials(self) -> None:
        """Raise MissingCredentials before sending a request that would be refused."""

    def _call_model(self, system_instruction: str, user_prompt: str, schema: Dict[str, Any]) -> str:
        raise NotImplementedError

    # ── Public API ──────────────────────────────────────────────────────

    def analyze(self, regimen: RegimenInput) -> AnalysisResult:
        """
        Run one interaction analysis for *regimen*.

        Raises
        ------
        MissingCredentials, TransportFailure, EmptyResponse, InvalidResponseFormat
        """
        user_prompt = build_user_prompt(regimen)
        self._check_credentials()

        logger.info("Requesting interaction analysis – backend=%s model=%s", self.backend, self.model)
        try:
            raw_output = self._call_model(SYSTEM_INSTRUCTION, user_prompt, response_schema())
        except AnalysisError:
            raise
        except Exception as e:
            logger.error("Analysis request failed: %s", e)
            raise TransportFailure(str(e) or None, detail=repr(e)) from e

        logger.debug("Analysis raw output: %s", (raw_output or "")[:500])
        return parse_analysis_text(raw_output)


# ═══════════════════════════════════════════════════════════════════════════════
# Gemini / Vertex AI Backend (Google Gen AI SDK)
# ═══════════════════════════════════════════════════════════════════════════════

class GeminiAnalyzer(InteractionAnalyzer):
    """
    Analyzer backed by the Google Gen AI SDK (``google-genai``).

    Two modes, selected by ``vertexai``:

    1. GEMINI API  (default)
       Authenticates with an API key passed in by the caller.

    2. VERTEX AI   (vertexai=True)
       Authenticates with Application Default Credentials:
            gcloud auth application-default login
         OR set GOOGLE_APPLICATION_CREDENTIALS=/path/to/service-account.json
       and needs a project + location.

    The SDK client is created on the first analysis, so a missing key only
    logs a warning at startup.
    """

    backend = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_GEMINI_MODEL,
        vertexai: bool = False,
        project: Optional[str] = None,
        location: str = "us-central1",
        timeout: float = DEFAULT_TIMEOUT_S,
        temperature: float = 0.2,
        max_output_tokens: Optional[int] = None,
        **_,
    ):
        super().__init__(model=model, timeout=timeout, temperature=temperature)
        self.api_key = api_key
        self.vertexai = vertexai
        self.project = project
        self.location = location
        self.max_output_tokens = max_output_tokens
        self._client = None

        if vertexai:
            self.backend = "vertex_ai"
            if not project:
                logger.warning(
                    "GOOGLE_CLOUD_PROJECT is not set – Vertex AI analyses will fail until it is configured"
                )
        elif not api_key:
            logger.warning(
                "GEMINI_API_KEY is not set – analyses will fail until an API key is configured"
            )

        logger.info(
            "GeminiAnalyzer configured — model=%s mode=%s (client connects on first analysis)",
            self.model, "vertex_ai" if vertexai else "api_key",
        )

    def _check_credentials(self) -> None:
        if self.vertexai and not self.project:
            raise MissingCredentials(
                "GOOGLE_CLOUD_PROJECT is not set. "
                "Add it to your .env file or set analysis.vertex_project in model_config.yaml."
            )
        if not self.vertexai and not self.api_key:
            raise MissingCredentials()

    def _ensure_client(self):
        if self._client is not None:
            return self._client

        from google import genai
        from google.genai import types

        http_options = types.HttpOptions(timeout=int(self.timeout * 1000))
        if self.vertexai:
            self._client = genai.Client(
                vertexai=True,
                project=self.project,
                location=self.location,
                http_options=http_options,
            )
        else:
            self._client = genai.Client(api_key=self.api_key, http_options=http_options)
        return self._client

    def _call_model(self, system_instruction: str, user_prompt: str, schema: Dict[str, Any]) -> str:
        from google.genai import types

        client = self._ensure_client()
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=schema,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
        )
        response = client.models.generate_content(
            model=self.model,
            contents=user_prompt,
            config=config,
        )
        return response.text or ""


# ═══════════════════════════════════════════════════════════════════════════════
# Ollama Backend (local, LangChain-powered)
# ═══════════════════════════════════════════════════════════════════════════════

class OllamaAnalyzer(InteractionAnalyzer):
    """
    Analyzer backed by a local Ollama server via LangChain.

    Requires:
      - Ollama running locally:  https://ollama.com/download
      - Model pulled:            ollama pull llama3.1:8b

    The response descriptor is passed as a JSON Schema ``format`` so the
    server constrains decoding to the report shape.
    """

    backend = "ollama"

    def __init__(
        self,
        model: str = "llama3.1:8b",
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        **_,
    ):
        super().__init__(model=model, timeout=timeout, temperature=temperature)
        self.base_url = base_url or os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
        self.max_tokens = max_tokens
        self._llm = None
        logger.info("OllamaAnalyzer configured — model=%s base_url=%s", model, self.base_url)

    def _ensure_llm(self, schema: Dict[str, Any]):
        if self._llm is None:
            from langchain_ollama import ChatOllama

            self._llm = ChatOllama(
                model=self.model,
                base_url=self.base_url,
                temperature=self.temperature,
                num_predict=self.max_tokens,
                format=to_json_schema(schema),
                client_kwargs={"timeout": self.timeout},
            )
        return self._llm

    def _call_model(self, system_instruction: str, user_prompt: str, schema: Dict[str, Any]) -> str:
        from langchain_core.messages import HumanMessage, SystemMessage

        messages = [
            SystemMessage(content=system_instruction),
            HumanMessage(content=user_prompt),
        ]
        response = self._ensure_llm(schema).invoke(messages)
        return response.content


# ═══════════════════════════════════════════════════════════════════════════════
# HuggingFace Endpoint Backend (TGI)
# ═══════════════════════════════════════════════════════════════════════════════

class HFEndpointAnalyzer(InteractionAnalyzer):
    """Analyzer that calls a dedicated HF Inference Endpoint running TGI."""

    backend = "hf_endpoint"

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        token: Optional[str] = None,
        model: str = "hf-endpoint",
        max_new_tokens: int = 4096,
        timeout: float = DEFAULT_TIMEOUT_S,
        temperature: float = 0.2,
        **_,
    ):
        super().__init__(model=model, timeout=timeout, temperature=temperature)
        self.endpoint_url = endpoint_url
        self.token = token
        self.max_new_tokens = max_new_tokens
        if not endpoint_url:
            logger.warning("ANALYSIS_ENDPOINT_URL is not set – analyses will fail until it is configured")

    def _check_credentials(self) -> None:
        if not self.endpoint_url:
            raise MissingCredentials(
                "ANALYSIS_ENDPOINT_URL is not set. Add it to your .env file."
            )
        if not self.token:
            raise MissingCredentials("Set HF_API_TOKEN or HF_TOKEN in your .env file.")

    def _call_model(self, system_instruction: str, user_prompt: str, schema: Dict[str, Any]) -> str:
        import requests

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }
        payload = {
            "inputs": f"{system_instruction}\n\n{user_prompt}",
            "parameters": {
                "max_new_tokens": self.max_new_tokens,
                "temperature": self.temperature,
                "return_full_text": False,
                "grammar": {"type": "json", "value": to_json_schema(schema)},
            },
        }

        logger.info("Calling analysis endpoint: %s", self.endpoint_url)
        response = requests.post(
            self.endpoint_url, headers=headers, json=payload, timeout=self.timeout
        )
        response.raise_for_status()

        result = response.json()
        if isinstance(result, list) and len(result) > 0:
            return result[0].get("generated_text", "")
        if isinstance(result, dict):
            return result.get("generated_text", "")
        return str(result)


# ═══════════════════════════════════════════════════════════════════════════════
# Factory: selects backend from config
# ═══════════════════════════════════════════════════════════════════════════════

def create_analyzer(config: dict) -> InteractionAnalyzer:
    """
    Factory that returns the correct analyzer based on config["backend"].

    Supported values for config["backend"]:
      "gemini"       →  GeminiAnalyzer   (API key, default)
      "vertex_ai"    →  GeminiAnalyzer   (vertexai=True, project/location)
      "ollama"       →  OllamaAnalyzer   (local Ollama via LangChain)
      "hf_endpoint"  →  HFEndpointAnalyzer

    Example model_config.yaml entries:

      analysis:
        backend: gemini
        model: gemini-2.5-flash
        timeout: 120

      analysis:
        backend: vertex_ai
        model: gemini-2.5-flash
        vertex_location: europe-west4

      analysis:
        backend: ollama
        ollama_model: llama3.1:8b
        ollama_base_url: http://localhost:11434
    """
    backend = config.get("backend", "gemini")
    timeout = config.get("timeout", DEFAULT_TIMEOUT_S)
    temperature = config.get("temperature", 0.2)

    if backend == "ollama":
        return OllamaAnalyzer(
            model=config.get("ollama_model", "llama3.1:8b"),
            base_url=config.get("ollama_base_url"),
            timeout=timeout,
            temperature=temperature,
            max_tokens=config.get("max_output_tokens") or 4096,
        )

    if backend == "hf_endpoint":
        return HFEndpointAnalyzer(
            endpoint_url=config.get("endpoint_url"),
            token=config.get("hf_token"),
            max_new_tokens=config.get("max_output_tokens") or 4096,
            timeout=timeout,
            temperature=temperature,
        )

    if backend not in ("gemini", "vertex_ai"):
        raise ValueError(f"Unknown analysis backend: {backend!r}")

    return GeminiAnalyzer(
        api_key=config.get("api_key"),
        model=config.get("model", DEFAULT_GEMINI_MODEL),
        vertexai=backend == "vertex_ai",
        project=config.get("vertex_project"),
        location=config.get("vertex_location", "us-central1"),
        timeout=timeout,
        temperature=temperature,
        max_output_tokens=config.get("max_output_tokens"),
    )
