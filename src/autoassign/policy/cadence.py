"""Refactor cadence: threshold-based mode switching and creation cooldown."""

import math
from datetime import datetime, timezone
from typing import Optional, Sequence

from autoassign.nodes.schemas import (
    AUTO_MARKER,
    REFACTOR_LABEL,
    AssignmentMode,
    CadenceState,
    CooldownDecision,
    Issue,
)

SECONDS_PER_DAY = 60 * 60 * 24

# Event that carries an issue state change (opened, closed, reopened...)
ISSUE_EVENT = "issues"


def is_auto_created(issue: Optional[Issue]) -> bool:
    """True when the issue title carries the [AUTO] marker."""
    if issue is None or not issue.title:
        return False
    return AUTO_MARKER in issue.title


def has_recent_refactor_issue(
    recently_closed: Optional[Sequence[Issue]], count: int = 4
) -> bool:
    """Check the first ``count`` closed issues (newest first) for a refactor label."""
    if not recently_closed:
        return False
    return any(issue.has_label(REFACTOR_LABEL) for issue in recently_closed[:count])


def cadence_window_size(refactor_threshold: int) -> int:
    """Closed issues to fetch: the threshold plus the issue that just closed."""
    return refactor_threshold + 1


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def should_wait_for_cooldown(
    recently_closed: Optional[Sequence[Issue]],
    cooldown_days: int = 7,
    now: Optional[datetime] = None,
) -> CooldownDecision:
    """Check whether an auto-created refactor issue closed within the cooldown.

    The whole window is scanned: unrelated issues may have closed after the
    last auto-created refactor issue. Manually created refactor issues never
    trigger the cooldown, and ``cooldown_days == 0`` disables it.
    """
    if not recently_closed:
        return CooldownDecision(should_wait=False, reason="No closed issues found")

    if cooldown_days <= 0:
        return CooldownDecision(should_wait=False, reason="Refactor cooldown is disabled")

    now = _utc(now or datetime.now(timezone.utc))
    cooldown_seconds = cooldown_days * SECONDS_PER_DAY

    for issue in recently_closed:
        if not issue.has_label(REFACTOR_LABEL) or not is_auto_created(issue):
            continue
        if issue.closed_at is None:
            continue

        elapsed = (now - _utc(issue.closed_at)).total_seconds()
        if elapsed >= cooldown_seconds:
            continue

        days_since_closed = math.floor(elapsed / SECONDS_PER_DAY)
        days_remaining = math.ceil(cooldown_days - days_since_closed)
        return CooldownDecision(
            should_wait=True,
            reason=(
                f"Auto-created refactor issue #{issue.number} was closed "
                f"{days_since_closed} days ago. Wait {days_remaining} more day(s) "
                "before creating a new one."
            ),
        )

    return CooldownDecision(
        should_wait=False,
        reason="No auto-created refactor issue found closed within the cooldown period",
    )


def determine_cadence(
    mode: AssignmentMode,
    event_name: Optional[str],
    recently_closed: Optional[Sequence[Issue]],
    refactor_threshold: int,
) -> CadenceState:
    """Resolve the effective mode for this run.

    On an issue event in auto mode, a missing refactor issue among the last
    ``refactor_threshold`` closed issues switches the run to refactor mode and
    bypasses the cooldown, so the refactor ratio can always recover.
    """
    if mode == "auto" and event_name == ISSUE_EVENT:
        if not has_recent_refactor_issue(recently_closed, refactor_threshold):
            return CadenceState(effective_mode="refactor", bypass_cooldown=True)
        return CadenceState(effective_mode="auto")

    return CadenceState(effective_mode=mode)
