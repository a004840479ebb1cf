"""LangGraph workflow definition."""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from langgraph.graph import END, StateGraph

from autoassign.config import AssignSettings
from autoassign.graph.routing import (
    route_after_cooldown,
    route_after_find_refactor,
    route_after_select,
    route_after_workload,
)
from autoassign.graph.state import AssignmentState
from autoassign.integrations.github import GitHubClient
from autoassign.nodes.actions import assign_issue_node
from autoassign.nodes.context import RunContext
from autoassign.nodes.intake import grace_wait_node, resolve_agent_node, resolve_mode_node
from autoassign.nodes.refactor import check_cooldown_node, create_refactor_issue_node
from autoassign.nodes.schemas import AssignedIssue
from autoassign.nodes.select import find_refactor_node, select_issue_node
from autoassign.nodes.workload import check_workload_node


def _build_assign_graph() -> StateGraph:
    """Build the assignment graph.

    grace_wait → resolve_mode → resolve_agent → check_workload, then either
    stop, select an issue by priority (auto), or handle refactor work. The
    graph has no cycles: auto mode may fall back to refactor handling, never
    the other way round.
    """
    workflow = StateGraph(AssignmentState)

    workflow.add_node("grace_wait", grace_wait_node)
    workflow.add_node("resolve_mode", resolve_mode_node)
    workflow.add_node("resolve_agent", resolve_agent_node)
    workflow.add_node("check_workload", check_workload_node)
    workflow.add_node("select_issue", select_issue_node)
    workflow.add_node("find_refactor", find_refactor_node)
    workflow.add_node("check_cooldown", check_cooldown_node)
    workflow.add_node("create_refactor_issue", create_refactor_issue_node)
    workflow.add_node("assign_issue", assign_issue_node)

    workflow.set_entry_point("grace_wait")
    workflow.add_edge("grace_wait", "resolve_mode")
    workflow.add_edge("resolve_mode", "resolve_agent")
    workflow.add_edge("resolve_agent", "check_workload")

    workflow.add_conditional_edges(
        "check_workload",
        route_after_workload,
        {
            "skip": END,
            "refactor": "find_refactor",
            "auto": "select_issue",
        },
    )

    workflow.add_conditional_edges(
        "select_issue",
        route_after_select,
        {
            "assign": "assign_issue",
            "refactor": "find_refactor",
            "done": END,
        },
    )

    workflow.add_conditional_edges(
        "find_refactor",
        route_after_find_refactor,
        {
            "assign": "assign_issue",
            "create": "check_cooldown",
            "done": END,
        },
    )

    workflow.add_conditional_edges(
        "check_cooldown",
        route_after_cooldown,
        {
            "create": "create_refactor_issue",
            "done": END,
        },
    )

    # Terminal edges
    workflow.add_edge("assign_issue", END)
    workflow.add_edge("create_refactor_issue", END)

    return workflow


def create_assign_workflow():
    """Create the compiled assignment workflow (no checkpointing: runs are stateless)."""
    return _build_assign_graph().compile()


assign_graph = create_assign_workflow()


@dataclass
class RunResult:
    """Outcome of one assignment run."""

    effective_mode: str
    action: str
    reason: str
    assigned_issue: Optional[AssignedIssue] = None

    def outputs(self) -> dict[str, str]:
        """Action outputs: assigned issue number/url and the mode used."""
        issue = self.assigned_issue
        return {
            "assigned-issue-number": str(issue.number) if issue else "",
            "assigned-issue-url": issue.url if issue else "",
            "assignment-mode": self.effective_mode,
        }


def run_assignment(
    settings: AssignSettings,
    client: Optional[GitHubClient] = None,
    *,
    now: Optional[datetime] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunResult:
    """Run the assignment workflow once.

    Args:
        settings: Validated settings for this run.
        client: GitHub client; built from GITHUB_TOKEN when omitted.
        now: Reference time for cooldown checks and issue titles.
        sleep: Function used for the grace-period wait.

    Returns:
        RunResult with the action taken and the assigned issue, if any.
    """
    ctx = RunContext(
        client=client or GitHubClient(settings.repo),
        settings=settings,
        sleep=sleep,
    )
    result = assign_graph.invoke(
        {"now": now or datetime.now(timezone.utc)},
        config={"configurable": {"run_context": ctx}},
    )
    return RunResult(
        effective_mode=result.get("effective_mode", settings.mode),
        action=result.get("action", "none"),
        reason=result.get("reason", ""),
        assigned_issue=result.get("assigned_issue"),
    )
