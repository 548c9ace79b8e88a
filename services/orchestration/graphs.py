from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from langgraph.graph import END, START, StateGraph

from core.config import Settings, settings as default_settings
from services.audit.log import log_action
from services.llm.chat_client import generate as llm_generate
from services.observability.metrics import timing_metric
from services.orchestration.nodes import make_nodes
from services.orchestration.types import SummaryState

logger = logging.getLogger(__name__)


def build_summary_graph(
    workflow, cfg: Settings, generate: Callable[..., str]
) -> Callable[[SummaryState], SummaryState]:
    """
    START -> load -> (skip | prompt -> generate -> parse -> persist) -> END
    """
    nodes = make_nodes(workflow, cfg, generate)
    builder = StateGraph(SummaryState)
    for name, fn in nodes.items():
        builder.add_node(name, fn)

    def after_load(state: SummaryState) -> str:
        if state.get("status") == "error":
            return "end"
        return "prompt" if cfg.llm_configured else "skip"

    builder.add_edge(START, "load")
    builder.add_conditional_edges("load", after_load, {"end": END, "skip": "skip", "prompt": "prompt"})
    builder.add_edge("skip", END)
    builder.add_edge("prompt", "generate")
    builder.add_edge("generate", "parse")
    builder.add_edge("parse", "persist")
    builder.add_edge("persist", END)

    graph = builder.compile()

    def run(initial: SummaryState) -> SummaryState:
        result: SummaryState = graph.invoke(initial)
        return result

    return run


def run_summary_pipeline(
    application_id: str,
    workflow,
    cfg: Settings | None = None,
    generate: Callable[..., str] = llm_generate,
) -> dict[str, Any]:
    """
    Generate and store the reviewer summary for one application.
    Never raises: every outcome is reported as {"success": bool, ...}.
    """
    cfg = cfg or default_settings
    try:
        with timing_metric("summary_pipeline"):
            state = build_summary_graph(workflow, cfg, generate)(
                {"application_id": application_id, "steps": []}
            )
    except Exception as e:  # noqa: BLE001
        logger.exception("summary pipeline failed for application %s", application_id)
        return {"success": False, "reason": str(e) or e.__class__.__name__}

    status = state.get("status")
    if status == "skipped":
        logger.info("generation provider not configured; skipping summary for %s", application_id)
        return {"success": False, "reason": state.get("reason", "not configured")}
    if status != "ok":
        logger.error("summary pipeline for %s ended with %s", application_id, state.get("reason"))
        return {"success": False, "reason": state.get("reason", "unknown error")}

    log_action(workflow.store, "application:summary_generated", application_id=application_id)
    return {"success": True, "summary": state["summary"], "highlights": state["highlights"]}
