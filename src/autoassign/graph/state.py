"""AssignmentState schema for the LangGraph assignment workflow."""

from datetime import datetime
from typing import Literal, Optional, TypedDict

from autoassign.nodes.schemas import AgentIdentity, AssignedIssue, Candidate, Issue

# Terminal action recorded by the node that ends the run
RunAction = Literal["skip", "none", "assign_existing", "create_and_assign"]


class AssignmentState(TypedDict, total=False):
    """State schema for one assignment run."""

    # === Input ===
    now: datetime  # Reference time for cooldown and issue titles

    # === Mode resolution ===
    effective_mode: Literal["auto", "refactor"]
    bypass_cooldown: bool
    recently_closed: list[Issue]  # Cadence window, newest first

    # === Agent ===
    agent: AgentIdentity
    current_assignments: list[Issue]

    # === Routing ===
    target: Optional[Candidate]  # Existing issue chosen for assignment
    fell_back_to_refactor: bool

    # === Result ===
    action: RunAction
    reason: str
    assigned_issue: Optional[AssignedIssue]
