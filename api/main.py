"""
ClinRx Interaction Copilot – FastAPI Application
=================================================
REST API for regimen interaction analysis.

Endpoints:
  POST /analyze       – RegimenInput → interaction report
  GET  /form/fields   – Intake field schema with example values
  GET  /health        – Health check
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from api.schemas import (
    AnalysisResponse,
    ErrorDetail,
    FieldSpecResponse,
    FormFieldsResponse,
    HealthResponse,
    MarkdownBlockResponse,
    OverviewResponse,
)
from core.logging_utils import setup_logging
from core.markdown_lite import parse_markdown_lite
from core.result_presenter import build_overview
from core.service import ClinRxService
from models.analysis.errors import AnalysisError, MissingCredentials
from models.analysis.schema_definition import AnalysisRun
from models.intake.field_schema import FIELD_SPECS, SECTIONS, RegimenInput

# ── Setup ───────────────────────────────────────────────────────────────────

setup_logging(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

app = FastAPI(
    title="ClinRx Interaction Copilot",
    description=(
        "AI-assisted drug–drug, drug–disease, drug–food and drug–herbal "
        "interaction analysis for a patient regimen."
    ),
    version=API_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_service: Optional[ClinRxService] = None


def get_service() -> ClinRxService:
    """Shared service, created on first request."""
    global _service
    if _service is None:
        _service = ClinRxService(config_path=os.environ.get("CLINRX_CONFIG"))
    return _service


# ── Endpoints ───────────────────────────────────────────────────────────────


@app.get("/health", response_model=HealthResponse)
def health(service: ClinRxService = Depends(get_service)):
    """Health check."""
    return HealthResponse(
        status="ok",
        version=API_VERSION,
        backend=service.backend,
        model=service.model,
        credentials_configured=service.credentials_configured,
    )


@app.get("/form/fields", response_model=FormFieldsResponse)
def form_fields():
    """Intake fields in form order, with their example values."""
    return FormFieldsResponse(
        sections=list(SECTIONS),
        fields=[
            FieldSpecResponse(
                name=spec.name,
                label=spec.label,
                section=spec.section,
                kind=spec.kind.value,
                example=spec.example,
                placeholder=spec.placeholder,
                choices=list(spec.choices),
            )
            for spec in FIELD_SPECS
        ],
    )


@app.post(
    "/analyze",
    response_model=AnalysisResponse,
    responses={502: {"model": ErrorDetail}, 503: {"model": ErrorDetail}},
)
def analyze(regimen: RegimenInput, service: ClinRxService = Depends(get_service)):
    """Run one interaction analysis on the submitted regimen."""
    try:
        run = service.analyze(regimen)
    except AnalysisError as e:
        status_code = 503 if isinstance(e, MissingCredentials) else 502
        logger.error("Analyze endpoint failed (%s): %s", e.kind, e.detail or e.user_message)
        raise HTTPException(status_code=status_code, detail=e.to_dict())
    return _build_response(run)


# ── Helpers ─────────────────────────────────────────────────────────────────


def _build_response(run: AnalysisRun) -> AnalysisResponse:
    """Convert an AnalysisRun to the API response."""
    overview = build_overview(run.result)
    blocks = parse_markdown_lite(run.result.markdown_summary)
    return AnalysisResponse(
        id=run.id,
        timestamp=run.timestamp,
        backend=run.backend,
        model=run.model,
        result=run.result,
        overview=OverviewResponse(
            highest_severity=overview.highest_severity,
            severity_label=overview.category.label,
            severity_color=overview.category.color,
            interaction_count=overview.interaction_count,
            red_flag_count=overview.red_flag_count,
            top_risk_count=overview.top_risk_count,
            finding_count=overview.finding_count,
        ),
        markdown_blocks=[
            MarkdownBlockResponse(
                is_bullet=block.is_bullet,
                spans=[{"text": span.text, "bold": span.bold} for span in block.spans],
            )
            for block in blocks
        ],
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
