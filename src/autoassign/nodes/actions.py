"""Action nodes for GitHub operations."""

from langchain_core.runnables import RunnableConfig

from autoassign.graph.state import AssignmentState
from autoassign.nodes.context import get_run_context
from autoassign.nodes.schemas import AssignedIssue
from autoassign.observability import log_node_event, traced_node


@traced_node("assign_issue")
def assign_issue_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Assign the selected existing issue to the agent."""
    ctx = get_run_context(config)
    agent = state["agent"]
    target = state["target"]
    label = "refactor issue" if target.is_refactor else "issue"

    if ctx.settings.dry_run:
        log_node_event(
            "assign_issue",
            f"[DRY RUN] Would assign {label} #{target.number} to Copilot (ID: {agent.agent_id})",
        )
        log_node_event("assign_issue", f"[DRY RUN] Issue title: {target.title}")
        log_node_event("assign_issue", f"[DRY RUN] Issue URL: {target.url}")
    else:
        log_node_event("assign_issue", f"Assigning {label} #{target.number} to Copilot...")
        ctx.client.add_assignees(target.id, [agent.agent_id])
        log_node_event(
            "assign_issue", f"✓ Successfully assigned {label} #{target.number} to Copilot", "success"
        )
        log_node_event("assign_issue", f"  Title: {target.title}")
        log_node_event("assign_issue", f"  URL: {target.url}")

    return {
        "action": "assign_existing",
        "reason": f"Assigned {label} #{target.number}",
        "assigned_issue": AssignedIssue(
            id=target.id,
            number=target.number,
            title=target.title,
            url=target.url,
            dry_run=ctx.settings.dry_run,
        ),
    }
