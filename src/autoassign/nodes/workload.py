"""Workload node: may the agent take on more work this run?"""

from langchain_core.runnables import RunnableConfig

from autoassign.graph.state import AssignmentState
from autoassign.nodes.context import get_run_context
from autoassign.observability import log_node_event, traced_node
from autoassign.policy.eligibility import should_assign_new_issue


@traced_node("check_workload")
def check_workload_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Fetch the agent's open assignments and apply the workload policy."""
    ctx = get_run_context(config)
    agent = state["agent"]

    log_node_event("check_workload", "Querying for all open issues to check assignees...")
    open_issues = ctx.client.list_open_issues(first=100)
    log_node_event("check_workload", f"Found {len(open_issues)} total open issues")

    # Match on the stable node id; logins can change
    current = [issue for issue in open_issues if agent.agent_id in issue.assignee_ids]
    if not current:
        return {"current_assignments": []}

    log_node_event("check_workload", f"Found {len(current)} issue(s) assigned to copilot")
    decision = should_assign_new_issue(current, state["effective_mode"], ctx.settings.force)

    if not decision.should_assign:
        log_node_event("check_workload", f"Skipping assignment: {decision.reason}")
        return {
            "current_assignments": current,
            "action": "skip",
            "reason": decision.reason,
            "assigned_issue": None,
        }

    log_node_event("check_workload", f"Proceeding with assignment: {decision.reason}")
    return {"current_assignments": current}
