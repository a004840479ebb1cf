"""Intake nodes: grace wait, mode resolution, agent lookup."""

from langchain_core.runnables import RunnableConfig

from autoassign.graph.state import AssignmentState
from autoassign.nodes.context import get_run_context
from autoassign.observability import log_node_event, traced_node
from autoassign.policy.cadence import ISSUE_EVENT, cadence_window_size, determine_cadence


@traced_node("grace_wait")
def grace_wait_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Give humans time to react to an issue event before automation acts."""
    ctx = get_run_context(config)
    wait_seconds = ctx.settings.wait_seconds

    if ctx.settings.event_name == ISSUE_EVENT and wait_seconds > 0:
        log_node_event(
            "grace_wait",
            f"Issue event detected. Waiting {wait_seconds} seconds for grace period before proceeding...",
        )
        ctx.sleep(wait_seconds)
        log_node_event("grace_wait", "Grace period complete. Proceeding with assignment.")

    return {}


@traced_node("resolve_mode")
def resolve_mode_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Switch to refactor mode when no refactor issue closed recently."""
    ctx = get_run_context(config)
    settings = ctx.settings
    threshold = settings.refactor_threshold

    recently_closed = []
    if settings.event_name == ISSUE_EVENT and settings.mode == "auto":
        log_node_event(
            "resolve_mode",
            f"Checking last {threshold} closed issues to determine if refactor is needed...",
        )
        recently_closed = ctx.client.list_closed_issues(first=cadence_window_size(threshold))
        log_node_event("resolve_mode", f"Found {len(recently_closed)} recently closed issues")

    cadence = determine_cadence(settings.mode, settings.event_name, recently_closed, threshold)

    if cadence.bypass_cooldown:
        log_node_event(
            "resolve_mode",
            f"None of the last {threshold} closed issues have refactor label - switching to refactor mode",
        )
    elif recently_closed:
        log_node_event(
            "resolve_mode",
            f"At least one of the last {threshold} closed issues has refactor label - staying in auto mode",
        )
    log_node_event("resolve_mode", f"Effective mode: {cadence.effective_mode}")

    return {
        "effective_mode": cadence.effective_mode,
        "bypass_cooldown": cadence.bypass_cooldown,
        "recently_closed": recently_closed,
    }


@traced_node("resolve_agent")
def resolve_agent_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Find the coding agent among the repository's assignable actors."""
    ctx = get_run_context(config)
    agent = ctx.client.get_agent_identity(ctx.settings.agent_login)
    log_node_event(
        "resolve_agent",
        "Found Copilot bot",
        login=agent.agent_login,
        id=agent.agent_id,
    )
    return {"agent": agent}
