#!/usr/bin/env python3
"""
ClinRx Interaction Copilot – Demo Script
=========================================
Runs interaction analysis on sample regimens and prints a short summary.

Usage:
    python demo/run_demo.py
"""

import sys
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from dotenv import load_dotenv
load_dotenv()

from core.result_presenter import build_overview
from core.service import ClinRxService
from models.analysis.errors import AnalysisError


DEMO_CASES = [
    {
        "label": "SSRI + Triptan + NSAID (form example)",
        "regimen": {},
    },
    {
        "label": "Warfarin + Antibiotic + Herbal",
        "regimen": {
            "drug_list": "warfarin 5 mg daily; ciprofloxacin 500 mg BID x7d; amiodarone 200 mg daily",
            "otc_herbal": "St. John's wort, ginkgo biloba",
            "indications": "atrial fibrillation, UTI",
            "age": "74",
            "sex": "Male",
            "renal_function": "eGFR 48",
            "comorbidities": "AF, CKD3a",
            "baseline_tests": "INR 2.6, QTc 460 ms",
        },
    },
    {
        "label": "Pregnancy – Patient Audience",
        "regimen": {
            "drug_list": "lisinopril 10 mg daily; metformin 500 mg BID",
            "otc_herbal": "none",
            "indications": "hypertension, type 2 diabetes",
            "age": "33",
            "pregnancy_lactation": "8 weeks pregnant",
            "comorbidities": "T2DM",
            "baseline_tests": "none",
            "audience": "patient",
            "summary_level": "brief",
        },
    },
    {
        "label": "Statin + Grapefruit",
        "regimen": {
            "drug_list": "simvastatin 40 mg nightly; clarithromycin 500 mg BID",
            "otc_herbal": "grapefruit juice daily",
            "indications": "hyperlipidemia, community-acquired pneumonia",
            "age": "61",
            "sex": "Female",
            "baseline_tests": "CK normal",
        },
    },
]


def main():
    print("\n" + "=" * 60)
    print("  💊 ClinRx Interaction Copilot – Demo")
    print("=" * 60)

    service = ClinRxService()

    for case in DEMO_CASES:
        print(f"\n{'─' * 60}")
        print(f"  📋 Case: {case['label']}")
        print(f"{'─' * 60}")

        try:
            run = service.analyze(case["regimen"])
        except AnalysisError as e:
            print(f"  ❌ {e.user_message}")
            continue

        overview = build_overview(run.result)
        print(f"  {overview.headline}")
        print(f"  Interactions: {overview.interaction_count}   Red flags: {overview.red_flag_count}")

        summary = run.result.summary
        if summary and summary.top_risks:
            print("  Top risks:")
            for risk in summary.top_risks[:3]:
                print(f"    • [{risk.severity or '?'}] {risk.pair_or_cluster}")

    print(f"\n{'=' * 60}")
    print("  ⚕️  All outputs require review by qualified professionals.")
    print(f"{'=' * 60}\n")


if __name__ == "__main__":
    main()
