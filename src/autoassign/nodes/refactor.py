"""Refactor issue creation, guarded by the cooldown."""

from datetime import datetime, timezone

from github import GithubException
from langchain_core.runnables import RunnableConfig

from autoassign.graph.state import AssignmentState
from autoassign.nodes.context import get_now, get_run_context
from autoassign.nodes.schemas import AUTO_MARKER, REFACTOR_LABEL, AssignedIssue
from autoassign.observability import log_node_event, traced_node
from autoassign.policy.cadence import should_wait_for_cooldown
from autoassign.templates import read_refactor_issue_template

# Closed issues scanned for a recent auto-created refactor issue
COOLDOWN_WINDOW = 20

DRY_RUN_ISSUE_URL = "[DRY RUN - would create new refactor issue]"


def build_refactor_title(now: datetime) -> str:
    """Title of an auto-created refactor issue, stamped with the creation time."""
    stamp = now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return f"refactor: codebase improvements {AUTO_MARKER} - {stamp}"


@traced_node("check_cooldown")
def check_cooldown_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Block creation while a recently closed auto-created refactor issue cools down."""
    ctx = get_run_context(config)

    if state.get("bypass_cooldown"):
        log_node_event(
            "check_cooldown",
            "Refactor threshold reached - bypassing cooldown for refactor issue creation",
        )
        return {}

    log_node_event("check_cooldown", "Checking cooldown period for auto-created refactor issues...")
    recently_closed = ctx.client.list_closed_issues(first=COOLDOWN_WINDOW)
    decision = should_wait_for_cooldown(
        recently_closed, ctx.settings.refactor_cooldown_days, now=get_now(state)
    )

    if decision.should_wait:
        log_node_event("check_cooldown", f"Skipping refactor issue creation: {decision.reason}")
        return {"action": "none", "reason": decision.reason, "assigned_issue": None}

    log_node_event("check_cooldown", f"Proceeding with refactor issue creation: {decision.reason}")
    return {}


@traced_node("create_refactor_issue")
def create_refactor_issue_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Create a refactor issue assigned to the agent, then label it."""
    ctx = get_run_context(config)
    agent = state["agent"]
    settings = ctx.settings

    label_id = ctx.client.get_label_id(REFACTOR_LABEL)
    body = read_refactor_issue_template(settings.refactor_issue_template)
    title = build_refactor_title(get_now(state))

    if settings.dry_run:
        log_node_event("create_refactor_issue", f"[DRY RUN] Would create refactor issue with title: {title}")
        log_node_event("create_refactor_issue", f"[DRY RUN] Would assign to Copilot bot (ID: {agent.agent_id})")
        return {
            "action": "create_and_assign",
            "reason": "Dry run: refactor issue not created",
            "assigned_issue": AssignedIssue(
                id="dry-run-id",
                number=0,
                title=title,
                url=DRY_RUN_ISSUE_URL,
                created=True,
                dry_run=True,
            ),
        }

    issue = ctx.client.create_issue(
        repository_id=agent.repository_id,
        title=title,
        body=body,
        assignee_ids=[agent.agent_id],
    )
    log_node_event("create_refactor_issue", f"Created Copilot-assigned issue: {issue.url}", "success")

    try:
        ctx.client.add_labels(issue.id, [label_id])
        log_node_event("create_refactor_issue", f"Added '{REFACTOR_LABEL}' label to issue")
    except GithubException as e:
        # The issue exists and is assigned; it just stays unlabeled
        log_node_event("create_refactor_issue", f"Failed to add refactor label: {e}", "error")
        log_node_event(
            "create_refactor_issue",
            "Issue was created successfully but label could not be added.",
            "error",
        )

    return {
        "action": "create_and_assign",
        "reason": "Created a new refactor issue",
        "assigned_issue": AssignedIssue(
            id=issue.id,
            number=issue.number,
            title=issue.title,
            url=issue.url,
            created=True,
        ),
    }
