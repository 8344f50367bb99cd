"""
ClinRx Interaction Copilot – Validation Utilities
==================================================
Validates regimen inputs and parsed analysis reports against the Pydantic
schemas, and cleans model output before validation.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from models.analysis.response_schema import find_shape_deviations
from models.analysis.schema_definition import AnalysisResult
from models.intake.field_schema import RegimenInput

logger = logging.getLogger(__name__)


def format_validation_errors(exc: ValidationError) -> List[str]:
    """Flatten a ValidationError into one readable line per problem."""
    errors = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "<root>"
        errors.append(f"Validation error at '{field}': {err['msg']}")
    return errors


def _validate(model: type, data: Any, label: str) -> Tuple[Optional[BaseModel], List[str]]:
    try:
        return model.model_validate(data), []
    except ValidationError as e:
        errors = format_validation_errors(e)
        logger.warning("%s validation failed: %d errors", label, len(errors))
        return None, errors


def validate_regimen_input(data: dict) -> Tuple[Optional[RegimenInput], List[str]]:
    """
    Validate a submitted form against RegimenInput.

    Returns (validated_model, errors_list).
    """
    return _validate(RegimenInput, data, "Regimen input")


def validate_analysis_result(data: dict) -> Tuple[Optional[AnalysisResult], List[str]]:
    """
    Validate a parsed report against AnalysisResult.

    Nulls are stripped first so a missing value falls back to its default.
    Returns (validated_model, errors_list).
    """
    return _validate(AnalysisResult, strip_nulls(data), "Analysis result")


def strip_nulls(value: Any) -> Any:
    """
    Drop ``None`` values from dicts and ``None`` items from lists, recursively.

    Models treat an absent key as "use the default", so a JSON ``null`` for a
    list or string field must not reach validation as ``None``.
    """
    if isinstance(value, dict):
        return {k: strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [strip_nulls(item) for item in value if item is not None]
    return value


def report_shape_deviations(data: dict) -> List[str]:
    """Log (but tolerate) places where the report departs from the response schema."""
    deviations = find_shape_deviations(data)
    for deviation in deviations[:20]:
        logger.warning("Response shape deviation – %s", deviation)
    if len(deviations) > 20:
        logger.warning("… %d more response shape deviations", len(deviations) - 20)
    return deviations
