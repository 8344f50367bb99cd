#!/usr/bin/env python3
"""
ClinRx Interaction Copilot – Main Entrypoint
=============================================
Usage:
    python main.py --example
    python main.py --file regimen.json
    python main.py --example --set drug_list="warfarin 5 mg; aspirin 81 mg"
    python main.py --file regimen.json --json

Importable convenience function:
    from main import run_analysis
    run = run_analysis({"drug_list": "...", "age": "72"})
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional, Union

from dotenv import load_dotenv
load_dotenv(override=True)

from core.logging_utils import setup_logging
from core.result_presenter import export_report
from core.service import ClinRxService
from core.validation import validate_regimen_input
from models.analysis.errors import AnalysisError
from models.analysis.schema_definition import AnalysisRun
from models.intake.field_schema import FIELD_NAMES, RegimenInput

# Module-level singleton service (lazy-initialised; rebuilt when config_path changes)
_service: Optional[ClinRxService] = None
_service_config_path: Optional[str] = None


def _get_service(config_path: Optional[str] = None) -> ClinRxService:
    global _service, _service_config_path
    if _service is None or config_path != _service_config_path:
        _service = ClinRxService(config_path=config_path)
        _service_config_path = config_path
    return _service


def run_analysis(
    regimen: Union[RegimenInput, dict],
    config_path: Optional[str] = None,
) -> AnalysisRun:
    """
    Run one interaction analysis and return the AnalysisRun.

    Parameters
    ----------
    regimen : RegimenInput or dict
        Field values; omitted dict keys take the example values.
    config_path : str, optional
        Path to a custom ``model_config.yaml``.
    """
    return _get_service(config_path).analyze(regimen)


# ── Input helpers ───────────────────────────────────────────────────────────

def parse_overrides(pairs: List[str]) -> dict:
    """``["age=72", "sex=Male"]`` → ``{"age": "72", "sex": "Male"}``."""
    overrides = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        name = name.strip()
        if not sep or name not in FIELD_NAMES:
            raise ValueError(
                f"Invalid --set {pair!r}; expected FIELD=VALUE with FIELD one of: {', '.join(FIELD_NAMES)}"
            )
        overrides[name] = value
    return overrides


def load_regimen(path: Optional[str], overrides: dict) -> RegimenInput:
    data: dict = {}
    if path:
        with open(path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object of regimen fields")
    data.update(overrides)
    regimen, errors = validate_regimen_input(data)
    if regimen is None:
        raise ValueError("\n".join(errors))
    return regimen


# ── Presentation helpers ────────────────────────────────────────────────────

def print_result(run: AnalysisRun, verbose: bool = False):
    """Pretty-print an interaction report to stdout."""
    print()
    print(export_report(run.result, run_id=run.id))
    if verbose:
        print("\n  📊 Full report JSON:")
        print(run.result.model_dump_json(indent=2))
    print()


def main():
    parser = argparse.ArgumentParser(description="ClinRx Interaction Copilot")
    parser.add_argument("--file", "-f", help="Path to a JSON file of regimen fields")
    parser.add_argument("--example", "-e", action="store_true",
                        help="Analyze the built-in example regimen")
    parser.add_argument("--set", "-s", action="append", default=[], metavar="FIELD=VALUE",
                        help="Override one field (repeatable)")
    parser.add_argument("--json", action="store_true", help="Print the AnalysisRun as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--config", "-c", help="Path to model config YAML")

    args = parser.parse_args()

    if not (args.file or args.example or args.set):
        parser.print_help()
        return 0

    setup_logging(level="DEBUG" if args.verbose else os.environ.get("LOG_LEVEL", "INFO"))

    try:
        regimen = load_regimen(args.file, parse_overrides(args.set))
    except (OSError, ValueError) as e:
        print(f"\n❌ {e}\n", file=sys.stderr)
        return 2

    service = ClinRxService(config_path=args.config)
    try:
        run = service.analyze(regimen)
    except AnalysisError as e:
        print(f"\n❌ Analysis failed: {e.user_message}\n", file=sys.stderr)
        return 1

    if args.json:
        print(run.model_dump_json(indent=2))
    else:
        print_result(run, verbose=args.verbose)
    return 0


if __name__ == "__main__":
    sys.exit(main())
