"""Pytest configuration and fixtures."""

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from autoassign.config import AssignSettings
from autoassign.integrations.github import AgentNotFoundError, LabelNotFoundError
from autoassign.nodes.schemas import AgentIdentity, Issue, Label


def _load_env_file():
    """Load .env file from project root if it exists."""
    env_path = Path(__file__).parent.parent / ".env"
    if not env_path.exists():
        return

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                if key not in os.environ:
                    os.environ[key] = value


_load_env_file()

# Tests never talk to LangSmith
os.environ["LANGCHAIN_TRACING_V2"] = "false"

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)

AGENT = AgentIdentity(
    repository_id="R_repo", agent_id="BOT_copilot", agent_login="copilot-swe-agent"
)


def make_issue(
    number: int,
    labels: tuple = (),
    assignees: tuple = (),
    sub_issues: int = 0,
    title: Optional[str] = None,
    closed_days_ago: Optional[float] = None,
    parent: bool = False,
) -> Issue:
    """Build an Issue; assignees are node ids."""
    return Issue(
        id=f"I_{number}",
        number=number,
        title=title if title is not None else f"Issue {number}",
        url=f"https://github.com/acme/widgets/issues/{number}",
        assignee_ids=list(assignees),
        labels=[Label(name=name) for name in labels],
        sub_issue_count=sub_issues,
        tracked_in_count=1 if parent else 0,
        closed_at=NOW - timedelta(days=closed_days_ago) if closed_days_ago is not None else None,
    )


def make_settings(**overrides) -> AssignSettings:
    values = {"repo": "acme/widgets", "wait_seconds": 0}
    values.update(overrides)
    return AssignSettings(**values)


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient.

    Open issues are listed in the order given (treated as oldest first);
    closed issues in the order given (treated as most recent first).
    """

    def __init__(
        self,
        open_issues=(),
        closed_issues=(),
        agent: Optional[AgentIdentity] = AGENT,
        label_id: Optional[str] = "LA_refactor",
        sub_issue_counts: Optional[dict] = None,
        label_error: Optional[Exception] = None,
    ):
        self.open_issues = list(open_issues)
        self.closed_issues = list(closed_issues)
        self.agent = agent
        self.label_id = label_id
        self.sub_issue_counts = sub_issue_counts or {}
        self.label_error = label_error

        self.open_queries: list[tuple] = []
        self.closed_queries: list[int] = []
        self.assigned: list[tuple] = []
        self.created: list[dict] = []
        self.labeled: list[tuple] = []

    def list_open_issues(self, label=None, first=100, direction="ASC"):
        self.open_queries.append((label, first))
        issues = [i for i in self.open_issues if label is None or i.has_label(label)]
        return issues[:first]

    def list_closed_issues(self, first):
        self.closed_queries.append(first)
        return self.closed_issues[:first]

    def get_agent_identity(self, login="copilot-swe-agent"):
        if self.agent is None:
            raise AgentNotFoundError(f"Copilot bot agent '{login}' not found in suggestedActors")
        return self.agent

    def get_label_id(self, name):
        if self.label_id is None:
            raise LabelNotFoundError(f"Label '{name}' not found in repository acme/widgets.")
        return self.label_id

    def enrich_with_sub_issues(self, issues):
        return [
            issue.model_copy(
                update={"sub_issue_count": self.sub_issue_counts.get(issue.number, issue.sub_issue_count)}
            )
            for issue in issues
        ]

    def add_assignees(self, issue_id, assignee_ids):
        self.assigned.append((issue_id, list(assignee_ids)))

    def create_issue(self, repository_id, title, body, assignee_ids):
        number = 1000 + len(self.created)
        self.created.append(
            {"repository_id": repository_id, "title": title, "body": body, "assignee_ids": assignee_ids}
        )
        return Issue(
            id=f"I_{number}",
            number=number,
            title=title,
            url=f"https://github.com/acme/widgets/issues/{number}",
            assignee_ids=list(assignee_ids),
        )

    def add_labels(self, issue_id, label_ids):
        if self.label_error:
            raise self.label_error
        self.labeled.append((issue_id, list(label_ids)))


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def agent():
    return AGENT


@pytest.fixture
def issue_factory():
    return make_issue


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def client_factory():
    return FakeGitHubClient
