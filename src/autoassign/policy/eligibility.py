"""Skip/assign eligibility rules for single issues and the agent's workload."""

from typing import Iterable, Optional, Sequence, Union

from autoassign.nodes.schemas import (
    REFACTOR_LABEL,
    AssignDecision,
    AssignmentMode,
    Candidate,
    Issue,
    SkipDecision,
)


def _as_candidate(item: Union[Issue, Candidate]) -> Candidate:
    if isinstance(item, Candidate):
        return item
    return Candidate.from_issue(item)


def has_required_label(
    item: Union[Issue, Candidate], required_label: Optional[str]
) -> bool:
    """Check the issue carries ``required_label`` (case-sensitive).

    An unset or blank required label matches every issue.
    """
    if not required_label or not required_label.strip():
        return True
    return required_label in item.label_names


def should_skip_issue(
    candidate: Candidate,
    allow_parent_issues: bool = False,
    skip_labels: Sequence[str] = (),
    required_label: Optional[str] = None,
) -> SkipDecision:
    """Decide whether a candidate must be skipped.

    Checks run in a fixed order and the first match wins, so the reported
    reason is always the most definitive one:

    1. already assigned
    2. has sub-issues (unless parent issues are allowed)
    3. carries a skip label (first match in ``skip_labels`` order)
    4. lacks the required label
    """
    if candidate.is_assigned:
        return SkipDecision(should_skip=True, reason="already assigned")

    if candidate.has_sub_issues and not allow_parent_issues:
        return SkipDecision(should_skip=True, reason="has sub-issues")

    if skip_labels and candidate.labels:
        names = candidate.label_names
        matched = next((label for label in skip_labels if label in names), None)
        if matched:
            return SkipDecision(should_skip=True, reason=f"has skip label: {matched}")

    if not has_required_label(candidate, required_label):
        return SkipDecision(
            should_skip=True, reason=f"missing required label: {required_label}"
        )

    return SkipDecision(should_skip=False)


def find_assignable_issue(
    issues: Iterable[Union[Issue, Candidate]],
    allow_parent_issues: bool = False,
    skip_labels: Sequence[str] = (),
    required_label: Optional[str] = None,
) -> Optional[Candidate]:
    """Return the first issue that is not skipped, in the order given."""
    for issue in issues:
        candidate = _as_candidate(issue)
        decision = should_skip_issue(
            candidate, allow_parent_issues, skip_labels, required_label
        )
        if not decision.should_skip:
            return candidate
    return None


def should_assign_new_issue(
    current_assignments: Sequence[Union[Issue, Candidate]],
    mode: AssignmentMode,
    force: bool,
) -> AssignDecision:
    """Decide whether the agent may take on more work this run."""
    if not current_assignments:
        return AssignDecision(should_assign=True, reason="Copilot has no assigned issues")

    # Force overrides every other check, in both modes
    if force:
        return AssignDecision(should_assign=True, reason="Force flag is set")

    if mode == "refactor":
        if any(REFACTOR_LABEL in issue.label_names for issue in current_assignments):
            return AssignDecision(
                should_assign=False,
                reason="Copilot already has a refactor issue assigned",
            )
        return AssignDecision(
            should_assign=False,
            reason="Copilot is working on other issues, skipping refactor creation",
        )

    return AssignDecision(
        should_assign=False,
        reason="Copilot already has assigned issues and force=false",
    )
