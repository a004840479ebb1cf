"""Conditional routing functions for the assignment workflow."""

from autoassign.graph.state import AssignmentState


def route_after_workload(state: AssignmentState) -> str:
    """Stop when the agent is busy, otherwise route by effective mode."""
    if state.get("action") == "skip":
        return "skip"
    match state.get("effective_mode"):
        case "refactor":
            return "refactor"
        case _:
            return "auto"


def route_after_select(state: AssignmentState) -> str:
    """Assign the selected issue, or fall back to refactor handling."""
    if state.get("target"):
        return "assign"
    if state.get("fell_back_to_refactor"):
        return "refactor"
    return "done"


def route_after_find_refactor(state: AssignmentState) -> str:
    """Assign an existing refactor issue, or go on to create one."""
    if state.get("target"):
        return "assign"
    if state.get("action") == "none":
        return "done"
    return "create"


def route_after_cooldown(state: AssignmentState) -> str:
    """Create the refactor issue unless the cooldown blocked it."""
    if state.get("action") == "none":
        return "done"
    return "create"
