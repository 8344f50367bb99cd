"""
ClinRx Interaction Copilot – API Schemas
=========================================
Pydantic models for the REST API request/response contracts.
"""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from models.analysis.schema_definition import AnalysisResult


# ── Response Models ─────────────────────────────────────────────────────────


class FieldSpecResponse(BaseModel):
    name: str
    label: str
    section: str
    kind: str
    example: str
    placeholder: str = ""
    choices: List[str] = Field(default_factory=list)


class FormFieldsResponse(BaseModel):
    sections: List[str] = Field(default_factory=list)
    fields: List[FieldSpecResponse] = Field(default_factory=list)


class OverviewResponse(BaseModel):
    """Status-banner numbers."""
    highest_severity: str
    severity_label: str
    severity_color: str
    interaction_count: int
    red_flag_count: int
    top_risk_count: int
    finding_count: int


class MarkdownBlockResponse(BaseModel):
    is_bullet: bool = False
    spans: List[Dict[str, Any]] = Field(default_factory=list)


class AnalysisResponse(BaseModel):
    """Interaction report returned by the API."""
    id: str
    timestamp: str
    backend: str = ""
    model: str = ""
    result: AnalysisResult
    overview: OverviewResponse
    markdown_blocks: List[MarkdownBlockResponse] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    error: str
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    backend: str = ""
    model: str = ""
    credentials_configured: bool = False
