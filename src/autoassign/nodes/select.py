"""Issue selection: priority-label routing and refactor issue lookup."""

from typing import Optional

from langchain_core.runnables import RunnableConfig

from autoassign.config import AssignSettings
from autoassign.graph.state import AssignmentState
from autoassign.integrations.github import GitHubClient
from autoassign.nodes.context import get_run_context
from autoassign.nodes.schemas import REFACTOR_LABEL, Candidate, Issue
from autoassign.observability import log_node_event, traced_node
from autoassign.policy.eligibility import find_assignable_issue

# Buckets searched in order; oldest issue first within a bucket
PRIORITY_LABELS = ("bug", "documentation", "refactor", "enhancement")

LABEL_BUCKET_SIZE = 50
OPEN_ISSUES_LIMIT = 100


def label_priority(label_override: Optional[str] = None) -> list[str]:
    """Labels to search, in priority order."""
    if label_override:
        return [label_override]
    return list(PRIORITY_LABELS)


def _pick(
    client: GitHubClient, issues: list[Issue], settings: AssignSettings
) -> Optional[Candidate]:
    enriched = client.enrich_with_sub_issues(issues)
    return find_assignable_issue(
        enriched,
        allow_parent_issues=settings.allow_parent_issues,
        skip_labels=settings.skip_labels,
        required_label=settings.required_label,
    )


def assign_next_issue(client: GitHubClient, settings: AssignSettings) -> Optional[Candidate]:
    """Find the next issue to assign under the priority label order.

    Falls back to any open issue without a priority label when no override
    is configured. Returns None when nothing is assignable.
    """
    priority = label_priority(settings.label_override)

    for label in priority:
        log_node_event("select_issue", f"Searching for issues with label: {label}")
        issues = client.list_open_issues(label=label, first=LABEL_BUCKET_SIZE)
        log_node_event("select_issue", f'  Found {len(issues)} issues with label "{label}"')

        candidate = _pick(client, issues, settings)
        if candidate:
            return candidate

    if settings.label_override:
        return None

    log_node_event("select_issue", "Searching for any open unassigned issue...")
    all_open = client.list_open_issues(first=OPEN_ISSUES_LIMIT)
    # Priority-labeled issues were already considered above
    remaining = [
        issue for issue in all_open if not any(issue.has_label(label) for label in priority)
    ]
    return _pick(client, remaining, settings)


def find_refactor_issue(client: GitHubClient, settings: AssignSettings) -> Optional[Candidate]:
    """Find the oldest assignable open issue carrying the refactor label."""
    issues = client.list_open_issues(label=REFACTOR_LABEL, first=OPEN_ISSUES_LIMIT)
    log_node_event("find_refactor", f"Found {len(issues)} open issues with refactor label")
    return _pick(client, issues, settings)


@traced_node("select_issue")
def select_issue_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Auto mode: pick an issue by priority label."""
    ctx = get_run_context(config)
    candidate = assign_next_issue(ctx.client, ctx.settings)

    if candidate:
        log_node_event("select_issue", f"Found issue to assign: {ctx.settings.repo}#{candidate.number}")
        return {"target": candidate}

    log_node_event("select_issue", "No suitable issue found to assign to Copilot.")
    if not ctx.settings.create_refactor_issue:
        reason = "Skipping refactor issue creation (create-refactor-issue is disabled)."
        log_node_event("select_issue", reason)
        return {"target": None, "action": "none", "reason": reason, "assigned_issue": None}

    log_node_event(
        "select_issue",
        "Creating or assigning a refactor issue instead to ensure Copilot has work.",
    )
    return {"target": None, "fell_back_to_refactor": True}


@traced_node("find_refactor")
def find_refactor_node(state: AssignmentState, config: RunnableConfig) -> dict:
    """Refactor mode: reuse an open refactor issue before creating one."""
    ctx = get_run_context(config)
    log_node_event("find_refactor", "Refactor mode: checking for available refactor issues...")
    candidate = find_refactor_issue(ctx.client, ctx.settings)

    if candidate:
        log_node_event(
            "find_refactor",
            f"Found available refactor issue #{candidate.number}: {candidate.title}",
        )
        return {"target": candidate}

    if not ctx.settings.create_refactor_issue:
        reason = (
            "No available refactor issues found, but create-refactor-issue is disabled. "
            "Skipping refactor issue creation."
        )
        log_node_event("find_refactor", reason)
        return {"target": None, "action": "none", "reason": reason, "assigned_issue": None}

    log_node_event("find_refactor", "No available refactor issues found - creating a new one")
    return {"target": None}
