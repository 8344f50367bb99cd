"""
ClinRx Interaction Copilot – Regimen Pipeline
==============================================
Pipeline: RegimenInput snapshot → prompt → AI analysis → AnalysisRun

Each run starts from one immutable snapshot and ends with one immutable
report. Analysis errors propagate unchanged; there is no fallback result.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Union

from core.logging_utils import log_pipeline_event
from core.validation import validate_regimen_input
from models.analysis.errors import AnalysisError
from models.analysis.interaction_analyzer import InteractionAnalyzer
from models.analysis.schema_definition import AnalysisRun
from models.intake.field_schema import RegimenInput

logger = logging.getLogger(__name__)


class RegimenPipeline:
    """Interaction analysis for one submitted regimen."""

    def __init__(self, analyzer: InteractionAnalyzer):
        self.analyzer = analyzer

    def run(self, regimen: Union[RegimenInput, dict]) -> AnalysisRun:
        """
        Analyze *regimen* and wrap the report in an AnalysisRun.

        A dict is validated into a RegimenInput first (ValueError listing the
        field errors if it does not validate).
        """
        if isinstance(regimen, dict):
            validated, errors = validate_regimen_input(regimen)
            if validated is None:
                raise ValueError("; ".join(errors))
            regimen = validated

        run_id = str(uuid.uuid4())[:8]
        log_pipeline_event(
            logger, "analysis", "started",
            {"backend": self.analyzer.backend, "model": self.analyzer.model},
            analysis_id=run_id,
        )

        started = time.perf_counter()
        try:
            result = self.analyzer.analyze(regimen)
        except AnalysisError as e:
            logger.error(
                "Analysis %s failed (%s): %s", run_id, e.kind, e.detail or e.user_message,
                extra={"analysis_id": run_id},
            )
            raise

        elapsed = round(time.perf_counter() - started, 2)
        summary = result.summary
        log_pipeline_event(
            logger, "analysis", "completed",
            {
                "elapsed_s": elapsed,
                "highest_severity": summary.highest_severity_found if summary else None,
                "red_flags": len(summary.red_flags) if summary else 0,
            },
            analysis_id=run_id,
        )

        return AnalysisRun(
            id=run_id,
            backend=self.analyzer.backend,
            model=self.analyzer.model,
            regimen=regimen,
            result=result,
        )
