"""
ClinRx Interaction Copilot – Gradio Frontend
=============================================
Regimen intake form and interaction report.

Layout
------
  ┌──────────────────────────────────────┐
  │  HEADER  (Branding + disclaimer)     │
  └──────────────────────────────────────┘
  ┌──────────────────┬───────────────────┐
  │  REGIMEN FORM    │  REPORT PANEL     │
  │  (4 sections,    │  (Status banner,  │
  │   example text)  │   red flags, …)   │
  └──────────────────┴───────────────────┘
"""

from __future__ import annotations

import html
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

# ── ensure project root is on sys.path ──────────────────────────────────────
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from dotenv import load_dotenv
load_dotenv(override=True)

import gradio as gr
from pydantic import ValidationError

from core.markdown_lite import blocks_to_html
from core.result_presenter import (
    PresentedReport,
    ResultOverview,
    build_report,
    export_report,
    severity_category,
)
from core.service import ClinRxService
from core.validation import format_validation_errors
from models.analysis.errors import AnalysisError
from models.analysis.schema_definition import (
    AnalysisResult,
    AnalysisRun,
    Alternative,
    Interaction,
    MonitoringPlan,
)
from models.intake.field_schema import (
    FIELD_NAMES,
    SECTIONS,
    FieldKind,
    FieldSpec,
    FormTracker,
    RegimenInput,
    fields_in_section,
)

logger = logging.getLogger(__name__)

# ── Lazy-loaded service (shared across all calls) ────────────────────────────
_service: Optional[ClinRxService] = None

# Set by launch_ui.py / --demo-mode
_DEMO_MODE: bool = False


def get_service() -> ClinRxService:
    global _service
    if _service is None:
        logger.info("Initialising ClinRxService …")
        _service = ClinRxService()
    return _service


def set_demo_mode(enabled: bool = True) -> None:
    global _DEMO_MODE
    _DEMO_MODE = enabled


_EXAMPLE_CLASS = "clinrx-example"
_SECTION_ICONS = {
    SECTIONS[0]: "💊",
    SECTIONS[1]: "🩺",
    SECTIONS[2]: "🧍",
    SECTIONS[3]: "🗣️",
}

_EMPTY_RESULTS_HTML = (
    "<div style='color:#AAA;font-style:italic;text-align:center;padding:30px 0;'>"
    "Results will appear here after analysis.</div>"
)


def _e(text) -> str:
    return html.escape(str(text or ""))


# ── HTML helpers ─────────────────────────────────────────────────────────────

def _status_html(overview: ResultOverview) -> str:
    c = overview.category
    return f"""
<div style="
  background:{c.background};border:2px solid {c.color};
  border-radius:12px;padding:18px 24px;
  font-family:'Segoe UI',sans-serif;margin-bottom:6px;
  display:flex;align-items:center;justify-content:space-between;flex-wrap:wrap;gap:12px;">
  <div style="display:flex;align-items:center;gap:12px;">
    <span style="font-size:2.2rem;line-height:1;">{c.icon}</span>
    <div>
      <div style="font-size:1.4rem;font-weight:700;color:{c.color};">
        {_e(overview.headline)}
      </div>
      <div style="font-size:0.82rem;color:#555;margin-top:2px;">
        Severity scale: contraindicated → major → moderate → minor → none
      </div>
    </div>
  </div>
  <div style="display:flex;gap:18px;">
    <div style="text-align:center;">
      <div style="font-size:1.5rem;font-weight:800;color:#0F3460;">{overview.interaction_count}</div>
      <div style="font-size:0.75rem;color:#64748B;text-transform:uppercase;">Interactions</div>
    </div>
    <div style="text-align:center;">
      <div style="font-size:1.5rem;font-weight:800;color:#C0392B;">{overview.red_flag_count}</div>
      <div style="font-size:0.75rem;color:#64748B;text-transform:uppercase;">Red Flags</div>
    </div>
  </div>
</div>
"""


def _error_html(message: str) -> str:
    return f"""
<div style="border:2px solid #E74C3C55;border-left:4px solid #C0392B;
  background:#FFF5F5;border-radius:10px;padding:16px 20px;
  font-family:'Segoe UI',sans-serif;">
  <div style="font-weight:700;color:#C0392B;font-size:1.05rem;margin-bottom:6px;">
    ⚠️ Analysis Failed
  </div>
  <p style="margin:0;color:#2C3E50;font-size:0.93rem;line-height:1.5;">{_e(message)}</p>
</div>"""


def _summary_html(report: PresentedReport) -> str:
    if not report.summary_blocks:
        return "<p style='color:#888;font-style:italic;'>No clinical summary was provided.</p>"
    return (
        "<div style=\"font-family:'Segoe UI',sans-serif;font-size:0.93rem;color:#2C3E50;\">"
        f"{blocks_to_html(report.summary_blocks)}</div>"
    )


def _red_flags_html(flags: List[str]) -> str:
    if not flags:
        return """
<div style="border:1.5px dashed #27AE6044;border-radius:10px;padding:14px 18px;
  font-family:'Segoe UI',sans-serif;font-size:0.93rem;background:#F0FFF0;">
  <span style="font-size:1.15rem;">✅</span>
  <span style="color:#27AE60;font-weight:600;">No red flags reported.</span>
  <div style="color:#7F8C8D;font-size:0.82rem;margin-top:4px;">
    Review the detailed findings before acting on the regimen.
  </div>
</div>"""
    items = "".join(
        f'<li style="margin-bottom:8px;line-height:1.45;">'
        f'<span style="color:#C0392B;font-weight:600;">⚑</span>&nbsp;{_e(flag)}</li>'
        for flag in flags
    )
    return f"""
<div style="border:2px solid #E74C3C33;border-left:4px solid #C0392B;
  background:#FFF5F5;border-radius:10px;padding:14px 18px;
  font-family:'Segoe UI',sans-serif;">
  <ul style="margin:0;padding-left:20px;color:#2C3E50;font-size:0.93rem;list-style:none;">
    {items}
  </ul>
</div>"""


def _interaction_card(interaction: Interaction) -> str:
    c = severity_category(interaction.severity)
    rows = ""
    for label, value in (
        ("Mechanism", interaction.mechanism),
        ("Clinical effect", interaction.expected_clinical_effect),
        ("Time course", interaction.time_course),
        ("Management", interaction.management),
    ):
        if value:
            rows += (
                f'<div style="margin-top:4px;"><span style="color:#64748B;font-weight:600;">'
                f'{label}:</span> {_e(value)}</div>'
            )
    if interaction.monitoring:
        rows += (
            '<div style="margin-top:4px;"><span style="color:#64748B;font-weight:600;">'
            f'Monitor:</span> {_e(", ".join(interaction.monitoring))}</div>'
        )
    evidence = (
        f'<span style="color:#64748B;font-size:0.75rem;margin-left:8px;">'
        f'Evidence: {_e(interaction.evidence_level)}</span>'
    ) if interaction.evidence_level else ""
    return f"""
<div style="border:1px solid {c.color}44;border-left:4px solid {c.color};
  background:#FFFFFF;border-radius:8px;padding:12px 16px;margin-bottom:10px;
  font-family:'Segoe UI',sans-serif;font-size:0.9rem;color:#2C3E50;">
  <div style="display:flex;align-items:center;flex-wrap:wrap;gap:6px;">
    <span style="background:{c.background};color:{c.color};border-radius:4px;
      padding:1px 8px;font-size:0.72rem;font-weight:700;text-transform:uppercase;">
      {c.icon} {_e(c.label)}</span>
    <strong>{_e(interaction.pair_or_cluster) or "Unnamed interaction"}</strong>
    {evidence}
  </div>
  {rows}
</div>"""


def _interactions_html(interactions: List[Interaction], empty_text: str) -> str:
    if not interactions:
        return f"<p style='color:#888;font-style:italic;'>{_e(empty_text)}</p>"
    return "".join(_interaction_card(i) for i in interactions)


def _alternatives_html(alternatives: List[Alternative]) -> str:
    if not alternatives:
        return "<p style='color:#888;font-style:italic;'>No alternatives proposed.</p>"
    items = ""
    for alt in alternatives:
        notes = (
            f'<div style="color:#64748B;font-size:0.82rem;margin-top:2px;">{_e(alt.notes)}</div>'
        ) if alt.notes else ""
        items += f"""
<div style="border:1.5px solid #2980B933;background:#F0F8FF;border-radius:8px;
  padding:10px 14px;margin-bottom:8px;">
  <div style="font-size:0.78rem;color:#1A6B9A;font-weight:600;text-transform:uppercase;">
    {_e(alt.target_issue)}</div>
  <div style="margin-top:4px;"><s style="color:#94A3B8;">{_e(alt.current_drug)}</s>
    &nbsp;→&nbsp;<strong>{_e(alt.proposed_alternative)}</strong></div>
  <div style="margin-top:4px;color:#2C3E50;">{_e(alt.rationale)}</div>
  {notes}
</div>"""
    return f"<div style=\"font-family:'Segoe UI',sans-serif;font-size:0.9rem;\">{items}</div>"


def _bullets(items: List[str]) -> str:
    return "".join(f'<li style="margin-bottom:4px;">{_e(item)}</li>' for item in items)


def _monitoring_html(plan: MonitoringPlan) -> str:
    if plan.is_empty and not plan.follow_up:
        return "<p style='color:#888;font-style:italic;'>No specific monitoring plan provided.</p>"
    parts = ""
    for title, items in (
        ("🧪 Labs", plan.labs),
        ("💓 Vitals & ECG", plan.vitals_ecg),
        ("👁️ Symptoms to watch", plan.symptoms_to_watch),
    ):
        if items:
            parts += (
                f'<div style="font-weight:600;color:#0F3460;margin-top:6px;">{title}</div>'
                f'<ul style="margin:4px 0 0;padding-left:20px;">{_bullets(items)}</ul>'
            )
    if plan.follow_up:
        parts += (
            '<div style="margin-top:8px;background:#F0F7FF;border-radius:6px;padding:8px 12px;">'
            f'<strong>Follow-up:</strong> {_e(plan.follow_up)}</div>'
        )
    return f"<div style=\"font-family:'Segoe UI',sans-serif;font-size:0.9rem;color:#2C3E50;\">{parts}</div>"


def _counseling_html(points: List[str]) -> str:
    if not points:
        return "<p style='color:#888;font-style:italic;'>No counseling points provided.</p>"
    return (
        "<ul style=\"font-family:'Segoe UI',sans-serif;font-size:0.9rem;color:#2C3E50;"
        f"padding-left:20px;\">{_bullets(points)}</ul>"
    )


def _sources_html(sources: List[str], assumptions: List[str], disclaimer: str) -> str:
    assumption_block = ""
    if assumptions:
        assumption_block = (
            '<div style="font-weight:600;font-size:0.88rem;color:#555;">Assumptions</div>'
            f'<ul style="margin:4px 0 10px;padding-left:20px;font-size:0.85rem;">{_bullets(assumptions)}</ul>'
        )
    source_block = ""
    if sources:
        source_block = (
            '<div style="font-weight:600;font-size:0.88rem;color:#555;">Sources to verify</div>'
            f'<ul style="margin:4px 0 10px;padding-left:20px;font-size:0.85rem;">{_bullets(sources)}</ul>'
        )
    return f"""
<div style="border:1.5px solid #BDC3C7;border-radius:10px;padding:14px 18px;
  font-family:'Segoe UI',sans-serif;margin-top:4px;background:#FAFAFA;color:#444;">
  {assumption_block}
  {source_block}
  <div style="color:#888;font-size:0.78rem;font-style:italic;">{_e(disclaimer)}</div>
</div>"""


# ── Analysis helpers ─────────────────────────────────────────────────────────

def _run_analysis(regimen: RegimenInput) -> AnalysisRun:
    if _DEMO_MODE:
        return _mock_run(regimen)
    return get_service().analyze(regimen)


def _emit_report(run: AnalysisRun) -> tuple:
    """All report HTML, in the order of the report outputs."""
    report = build_report(run.result)
    return (
        _status_html(report.overview),
        _summary_html(report),
        _red_flags_html(report.red_flags),
        _interactions_html(report.top_risks, "No priority interactions identified."),
        _interactions_html(report.findings, "No detailed findings."),
        _alternatives_html(report.alternatives),
        _monitoring_html(report.monitoring_plan),
        _counseling_html(report.counseling_points),
        _sources_html(report.sources, report.assumptions, report.disclaimer),
        export_report(run.result, run_id=run.id),
    )


def _emit_failure(message: str) -> tuple:
    return (_error_html(message),) + ("",) * 8 + ("",)


def run_analysis(tracker: FormTracker, *values):
    """Analyze button → snapshot the form, run one analysis, render the report."""
    tracker.values.update(dict(zip(FIELD_NAMES, values)))
    try:
        regimen = tracker.snapshot()
    except ValidationError as e:
        return (tracker,) + _emit_failure(" ".join(format_validation_errors(e)))

    try:
        run = _run_analysis(regimen)
    except AnalysisError as e:
        logger.error("Analysis failed (%s): %s", e.kind, e.detail or e.user_message)
        return (tracker,) + _emit_failure(e.user_message)

    return (tracker,) + _emit_report(run)


# ── Form event handlers ──────────────────────────────────────────────────────

def _field_classes(tracker: FormTracker, name: str) -> List[str]:
    return [_EXAMPLE_CLASS] if tracker.is_showing_example(name) else []


def _make_focus_handler(name: str):
    def on_focus(tracker: FormTracker):
        tracker.focus(name)
        return tracker, gr.update(value=tracker.values[name], elem_classes=_field_classes(tracker, name))
    return on_focus


def _make_edit_handler(name: str):
    def on_edit(value: str, tracker: FormTracker):
        tracker.edit(name, value)
        return tracker, gr.update(elem_classes=[])
    return on_edit


def lock_analyze():
    """Disable this session's Analyze button while its request is in flight."""
    return gr.update(interactive=False)


def unlock_analyze():
    return gr.update(interactive=True)


def reset_form(tracker: FormTracker):
    """Restore every field to its example value."""
    tracker.reset()
    return (tracker,) + tuple(
        gr.update(value=tracker.values[name], elem_classes=_field_classes(tracker, name))
        for name in FIELD_NAMES
    )


def _field_component(spec: FieldSpec, tracker: FormTracker):
    classes = _field_classes(tracker, spec.name)
    if spec.kind is FieldKind.SELECT:
        return gr.Dropdown(
            label=spec.label,
            choices=list(spec.choices),
            value=spec.example,
        )
    return gr.Textbox(
        label=spec.label,
        value=spec.example,
        placeholder=spec.placeholder,
        lines=spec.rows,
        max_lines=max(spec.rows * 2, 1),
        elem_classes=classes,
    )


# ── Mock result for offline/demo mode ────────────────────────────────────────

def _mock_result() -> dict:
    """Return a plausible report for the example regimen."""
    serotonin = {
        "pair_or_cluster": "sertraline + sumatriptan",
        "severity": "major",
        "evidence_level": "moderate",
        "mechanism": "Additive serotonergic activity (SSRI + 5-HT1B/1D agonist).",
        "expected_clinical_effect": "Risk of serotonin syndrome: agitation, tremor, hyperthermia, clonus.",
        "time_course": "Hours after a triptan dose",
        "management": "Use the lowest effective triptan dose; educate on serotonin syndrome symptoms.",
        "monitoring": ["agitation", "tremor", "hyperthermia"],
    }
    bleeding = {
        "pair_or_cluster": "sertraline + ibuprofen",
        "severity": "major",
        "evidence_level": "high",
        "mechanism": "SSRI platelet serotonin depletion plus NSAID COX-1 inhibition.",
        "expected_clinical_effect": "Increased risk of upper GI bleeding.",
        "time_course": "Weeks of combined use",
        "management": "Prefer acetaminophen; if an NSAID is needed keep PPI cover and shortest duration.",
        "monitoring": ["melena", "hemoglobin"],
    }
    return {
        "patient_context": {
            "age": 29, "sex": "Female", "pregnancy_lactation": "none",
            "renal_function": "eGFR 100", "hepatic_function": "normal",
            "comorbidities": [], "allergies": ["NKDA"], "region": "US",
        },
        "inputs": {
            "drugs": ["sertraline", "sumatriptan", "ibuprofen", "omeprazole"],
            "otc_herbal_substances": ["caffeine", "melatonin"],
            "indications": ["migraine", "generalized anxiety", "GERD"],
        },
        "assumptions": ["Ibuprofen is taken regularly, not only as needed."],
        "summary": {
            "highest_severity_found": "major",
            "interaction_count": 3,
            "top_risks": [serotonin, bleeding],
            "red_flags": [
                "Seek urgent care for agitation, fever, muscle twitching or confusion after a triptan dose.",
                "Black or tarry stools or vomiting blood.",
            ],
        },
        "detailed_findings": {
            "drug_drug": [
                serotonin,
                bleeding,
                {
                    "pair_or_cluster": "sertraline + omeprazole",
                    "severity": "minor",
                    "evidence_level": "low",
                    "mechanism": "Weak CYP2C19 inhibition may raise sertraline exposure.",
                    "expected_clinical_effect": "Possible increase in SSRI adverse effects.",
                    "time_course": "Days",
                    "management": "No change needed; monitor tolerance.",
                    "monitoring": [],
                },
            ],
            "drug_disease": [],
            "drug_food": [],
            "drug_herbal_otc": [],
            "duplicate_therapy": [],
        },
        "alternatives": [
            {
                "target_issue": "GI bleeding risk",
                "current_drug": "ibuprofen 400 mg TID",
                "proposed_alternative": "acetaminophen 500–1000 mg PRN",
                "rationale": "Analgesia without antiplatelet or GI mucosal effects.",
                "notes": "Max 3 g/day.",
            }
        ],
        "monitoring_plan": {
            "labs": ["CBC if GI symptoms"],
            "vitals_ecg": [],
            "symptoms_to_watch": ["serotonin syndrome signs", "GI bleeding signs"],
            "follow_up": "Review in 4 weeks or sooner if symptoms occur.",
        },
        "patient_counseling_points": [
            "Do not exceed two sumatriptan doses in 24 hours.",
            "Take ibuprofen with food, or switch to acetaminophen.",
        ],
        "sources_to_verify": ["Lexicomp", "Micromedex", "FDA labeling"],
        "disclaimer": (
            "This is AI-generated decision support, not medical advice. "
            "Verify with a licensed clinician or pharmacist."
        ),
        "markdown_summary": (
            "## Summary\n"
            "* **Major:** sertraline + sumatriptan (serotonin syndrome risk)\n"
            "* **Major:** sertraline + ibuprofen (GI bleeding risk)\n"
            "Consider **acetaminophen** in place of ibuprofen."
        ),
    }


def _mock_run(regimen: RegimenInput) -> AnalysisRun:
    return AnalysisRun(
        id="demo-0001",
        backend="demo",
        model="mock",
        regimen=regimen,
        result=AnalysisResult.model_validate(_mock_result()),
    )


# ── CSS ───────────────────────────────────────────────────────────────────────

_CSS = """
body, .gradio-container {
  font-family: 'Inter', 'Segoe UI', system-ui, sans-serif !important;
  background: #F0F2F5 !important;
}

#rx-header {
  background: linear-gradient(135deg,#0A0E27 0%,#0D1B3E 55%,#0A2A5E 100%);
  border-radius: 16px;
  padding: 24px 32px;
  margin-bottom: 20px;
  box-shadow: 0 8px 32px rgba(0,0,0,0.35);
}

.rx-card {
  background: #FFFFFF;
  border-radius: 14px;
  box-shadow: 0 2px 12px rgba(0,0,0,0.08);
  padding: 22px;
}

/* fields still showing their example value */
.clinrx-example textarea, .clinrx-example input {
  color: #94A3B8 !important;
  font-style: italic;
}

#btn-analyze {
  background: #0F3460 !important;
  color: #FFFFFF !important;
  border: none !important;
  font-weight: 700 !important;
  font-size: 1rem !important;
  border-radius: 8px !important;
}
#btn-analyze:hover { background: #16213E !important; }

.rx-accordion { margin-top: 6px; }

textarea { border-radius: 8px !important; }

#export-box textarea {
  font-family: 'Courier New', monospace !important;
  font-size: 0.82rem !important;
  background: #1E1E1E !important;
  color: #D4D4D4 !important;
}
"""

_HEADER_HTML = """
<div id="rx-header">
  <div style="display:flex;justify-content:space-between;align-items:center;
    flex-wrap:wrap;gap:16px;">
    <div style="display:flex;align-items:center;gap:16px;">
      <span style="font-size:2.6rem;">💊</span>
      <div>
        <div style="color:#FFFFFF;font-size:1.65rem;font-weight:800;line-height:1.15;">
          ClinRx Interaction Copilot
        </div>
        <div style="color:#7DD3FC;font-size:0.87rem;margin-top:5px;">
          Drug · disease · food · herbal interaction review for a full regimen
        </div>
      </div>
    </div>
    <div style="color:#94A3B8;font-size:0.74rem;max-width:260px;line-height:1.5;text-align:right;">
      ⚠️ For clinical decision support only.<br>
      Not a substitute for professional medical judgement.
    </div>
  </div>
</div>
"""


# ── Build Gradio App ──────────────────────────────────────────────────────────

def build_app() -> gr.Blocks:
    with gr.Blocks(title="ClinRx Interaction Copilot") as demo:

        tracker = gr.State(value=FormTracker())
        initial = FormTracker()

        gr.HTML(_HEADER_HTML)

        with gr.Row(equal_height=False):

            # ── LEFT: Regimen form ────────────────────────────────────────
            with gr.Column(scale=4, elem_classes="rx-card"):
                gr.Markdown("## 📝 Patient Regimen")
                gr.Markdown(
                    "_Grey italic text is an example. Click a field to clear it, "
                    "or leave it to submit the example._"
                )

                fields: Dict[str, gr.components.Component] = {}
                for section in SECTIONS:
                    with gr.Accordion(
                        f"{_SECTION_ICONS.get(section, '')} {section}",
                        open=True,
                        elem_classes="rx-accordion",
                    ):
                        for spec in fields_in_section(section):
                            fields[spec.name] = _field_component(spec, initial)

                with gr.Row():
                    btn_reset = gr.Button("↺ Reset to examples", variant="secondary")
                    btn_analyze = gr.Button(
                        "🔍 Analyze Interactions",
                        variant="primary",
                        elem_id="btn-analyze",
                    )

            # ── RIGHT: Report ─────────────────────────────────────────────
            with gr.Column(scale=5, elem_classes="rx-card"):
                gr.Markdown("## 📊 Interaction Report")

                status_out = gr.HTML(value=_EMPTY_RESULTS_HTML)

                with gr.Accordion("📋 Clinical Summary", open=True, elem_classes="rx-accordion"):
                    summary_out = gr.HTML()
                with gr.Accordion("🚩 Red Flags", open=True, elem_classes="rx-accordion"):
                    red_flags_out = gr.HTML()
                with gr.Accordion("⚡ Priority Interactions", open=True, elem_classes="rx-accordion"):
                    top_risks_out = gr.HTML()
                with gr.Accordion("🔬 Detailed Findings", open=False, elem_classes="rx-accordion"):
                    findings_out = gr.HTML()
                with gr.Accordion("🔁 Proposed Alternatives", open=False, elem_classes="rx-accordion"):
                    alternatives_out = gr.HTML()
                with gr.Accordion("📈 Monitoring Plan", open=False, elem_classes="rx-accordion"):
                    monitoring_out = gr.HTML()
                with gr.Accordion("💬 Patient Counseling Points", open=False, elem_classes="rx-accordion"):
                    counseling_out = gr.HTML()
                with gr.Accordion("📚 Sources & Disclaimer", open=False, elem_classes="rx-accordion"):
                    sources_out = gr.HTML()
                with gr.Accordion("📄 Export Report", open=False, elem_classes="rx-accordion"):
                    export_out = gr.Textbox(
                        label="Interaction Report",
                        lines=20,
                        interactive=False,
                        elem_id="export-box",
                    )

        field_inputs = [fields[name] for name in FIELD_NAMES]
        _report_outputs = [
            tracker,
            status_out,
            summary_out,
            red_flags_out,
            top_risks_out,
            findings_out,
            alternatives_out,
            monitoring_out,
            counseling_out,
            sources_out,
            export_out,
        ]

        # ── Wire: example text clears on first focus; edits mark the field ─
        for name in FIELD_NAMES:
            component = fields[name]
            component.input(
                fn=_make_edit_handler(name),
                inputs=[component, tracker],
                outputs=[tracker, component],
                queue=False,
            )
            if isinstance(component, gr.Textbox):
                component.focus(
                    fn=_make_focus_handler(name),
                    inputs=[tracker],
                    outputs=[tracker, component],
                    queue=False,
                )

        # ── Wire: analyze (one request in flight per session) ─────────────
        btn_analyze.click(
            fn=lock_analyze,
            outputs=btn_analyze,
            queue=False,
        ).then(
            fn=run_analysis,
            inputs=[tracker] + field_inputs,
            outputs=_report_outputs,
            concurrency_limit=None,
        ).then(
            fn=unlock_analyze,
            outputs=btn_analyze,
            queue=False,
        )

        btn_reset.click(
            fn=reset_form,
            inputs=[tracker],
            outputs=[tracker] + field_inputs,
            queue=False,
        )

    return demo


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import argparse

    from core.logging_utils import setup_logging

    parser = argparse.ArgumentParser(description="ClinRx Interaction Copilot – Gradio UI")
    parser.add_argument("--host",        default="0.0.0.0",  help="Bind host")
    parser.add_argument("--port",        type=int, default=7860, help="Port (default 7860)")
    parser.add_argument("--share",       action="store_true", help="Create public Gradio share link")
    parser.add_argument("--demo-mode",   action="store_true", help="Use a canned report (no API key needed)")
    args = parser.parse_args()

    setup_logging()
    if args.demo_mode:
        set_demo_mode(True)
        print("[DEMO MODE] Using a canned report — no analysis service is called.")

    app_instance = build_app()
    app_instance.launch(
        server_name=args.host,
        server_port=args.port,
        share=args.share,
        css=_CSS,
        inbrowser=True,
    )
