"""Pydantic schemas shared by the policy functions and graph nodes."""

from datetime import datetime
from typing import Any, Iterable, Literal, Optional

from pydantic import BaseModel, Field

# Marker stamped into the title of issues this action creates
AUTO_MARKER = "[AUTO]"
REFACTOR_LABEL = "refactor"

AssignmentMode = Literal["auto", "refactor"]


class Label(BaseModel):
    """A single issue label."""

    name: str


def normalize_labels(raw: Any) -> list[Label]:
    """Normalize label payloads into an ordered list of Label.

    Accepts the GraphQL connection shape ({"nodes": [...]}), a flat list of
    dicts or strings, an existing list of Label, or None.
    """
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = raw.get("nodes") or []
    labels = []
    for item in raw:
        if isinstance(item, Label):
            labels.append(item)
        elif isinstance(item, str):
            labels.append(Label(name=item))
        elif isinstance(item, dict) and item.get("name"):
            labels.append(Label(name=item["name"]))
        elif getattr(item, "name", None):
            labels.append(Label(name=item.name))
    return labels


def _label_names(labels: Iterable[Label]) -> list[str]:
    return [label.name for label in labels]


class Issue(BaseModel):
    """Issue as read from GitHub, with labels already normalized."""

    id: str = ""
    number: int
    title: str = ""
    url: str = ""
    body: str = ""
    assignee_ids: list[str] = Field(default_factory=list)
    assignee_logins: list[str] = Field(default_factory=list)
    labels: list[Label] = Field(default_factory=list)
    sub_issue_count: int = 0
    tracked_in_count: int = 0
    closed_at: Optional[datetime] = None

    @property
    def label_names(self) -> list[str]:
        return _label_names(self.labels)

    def has_label(self, name: str) -> bool:
        return name in self.label_names

    @classmethod
    def from_graphql(cls, node: dict) -> "Issue":
        """Build an Issue from a GraphQL issue node."""
        assignees = (node.get("assignees") or {}).get("nodes") or []
        summary = node.get("subIssuesSummary") or {}
        return cls(
            id=node.get("id") or "",
            number=node["number"],
            title=node.get("title") or "",
            url=node.get("url") or "",
            body=node.get("body") or "",
            assignee_ids=[a["id"] for a in assignees if a.get("id")],
            assignee_logins=[a["login"] for a in assignees if a.get("login")],
            labels=normalize_labels(node.get("labels")),
            sub_issue_count=summary.get("total") or 0,
            tracked_in_count=1 if node.get("parent") else 0,
            closed_at=node.get("closedAt"),
        )


class Candidate(BaseModel):
    """Normalized projection of an Issue used during one evaluation pass."""

    id: str
    number: int
    title: str
    url: str
    is_assigned: bool
    has_sub_issues: bool
    is_sub_issue: bool
    is_refactor: bool
    labels: list[Label]

    @property
    def label_names(self) -> list[str]:
        return _label_names(self.labels)

    @classmethod
    def from_issue(cls, issue: Issue) -> "Candidate":
        return cls(
            id=issue.id,
            number=issue.number,
            title=issue.title,
            url=issue.url,
            is_assigned=bool(issue.assignee_ids or issue.assignee_logins),
            has_sub_issues=issue.sub_issue_count > 0,
            is_sub_issue=issue.tracked_in_count > 0,
            is_refactor=issue.has_label(REFACTOR_LABEL),
            labels=list(issue.labels),
        )


class SkipDecision(BaseModel):
    """Whether a single issue must be skipped, and why."""

    should_skip: bool
    reason: Optional[str] = None


class AssignDecision(BaseModel):
    """Whether the agent may receive new work, and why."""

    should_assign: bool
    reason: str


class CooldownDecision(BaseModel):
    """Whether refactor-issue creation must wait for the cooldown."""

    should_wait: bool
    reason: str


class CadenceState(BaseModel):
    """Effective mode for one run after threshold-based override."""

    effective_mode: AssignmentMode
    bypass_cooldown: bool = False


class AgentIdentity(BaseModel):
    """Repository node id and the coding agent's bot identity."""

    repository_id: str
    agent_id: str
    agent_login: str


class AssignedIssue(BaseModel):
    """Issue assigned (or created) by a run."""

    id: str
    number: int
    title: str
    url: str
    created: bool = False
    dry_run: bool = False


class Release(BaseModel):
    """GitHub release considered by the retention filter."""

    id: Optional[int] = None
    tag_name: str
    published_at: Optional[datetime] = None
