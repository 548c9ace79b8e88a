from __future__ import annotations

from collections.abc import Callable

from core.config import Settings
from services.llm.prompts import build_messages, render_summary_prompt
from services.observability.tracing import trace_llm
from services.orchestration.types import SummaryState
from services.summary.parser import parse_ai_response


def _push(state: SummaryState, msg: str) -> list[str]:
    return [*state.get("steps", []), msg]


def make_nodes(workflow, cfg: Settings, generate: Callable[..., str]) -> dict[str, Callable]:
    """Bind the pipeline nodes to their collaborators."""

    def load(state: SummaryState) -> SummaryState:
        app_id = state["application_id"]
        app = workflow.store.get_application(app_id)
        if app is None:
            return {
                "status": "error",
                "reason": "application not found",
                "steps": _push(state, "observe: application not found"),
            }
        recs = workflow.store.list_recommendations(app_id)
        return {
            "application": app,
            "recommendations": recs,
            "status": "ok",
            "steps": _push(state, f"act: loaded application + {len(recs)} recommendations"),
        }

    def skip(state: SummaryState) -> SummaryState:
        return {
            "status": "skipped",
            "reason": "not configured",
            "steps": _push(state, "observe: generation provider not configured"),
        }

    def prompt(state: SummaryState) -> SummaryState:
        text = render_summary_prompt(
            state["application"], state.get("recommendations", []), region=cfg.REGION_CODE
        )
        return {"prompt": text, "steps": _push(state, f"act: built prompt ({len(text)} chars)")}

    def generate_node(state: SummaryState) -> SummaryState:
        text = generate(build_messages(state["prompt"]), cfg)
        trace_llm(
            event="summary.generate",
            input_payload={"model": cfg.GROQ_MODEL, "application_id": state["application_id"]},
            output_text=text,
            tags=["summary"],
        )
        return {"response_text": text, "steps": _push(state, "observe: provider replied")}

    def parse(state: SummaryState) -> SummaryState:
        parsed = parse_ai_response(state.get("response_text", ""))
        return {
            "summary": parsed.summary,
            "highlights": parsed.highlights,
            "steps": _push(state, f"act: parsed {len(parsed.highlights)} highlights"),
        }

    def persist(state: SummaryState) -> SummaryState:
        workflow.record_summary(state["application_id"], state["summary"], state["highlights"])
        return {"status": "ok", "steps": _push(state, "act: stored summary")}

    return {
        "load": load,
        "skip": skip,
        "prompt": prompt,
        "generate": generate_node,
        "parse": parse,
        "persist": persist,
    }
