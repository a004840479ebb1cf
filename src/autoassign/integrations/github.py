"""GitHub API integration."""

import asyncio
import os
from typing import Iterable, Optional

import requests
from github import Auth, Github, GithubException

from autoassign.nodes.schemas import AgentIdentity, Issue, Release
from autoassign.observability import _log

GITHUB_API_VERSION = "2022-11-28"

ISSUE_FIELDS = """
    id
    number
    title
    body
    url
    assignees(first: 10) {
      nodes { login id }
    }
    labels(first: 20) {
      nodes { name }
    }
    subIssuesSummary { total }
    parent { number }
"""

OPEN_ISSUES_QUERY = (
    """
query($owner: String!, $repo: String!, $first: Int!, $labels: [String!], $direction: OrderDirection!) {
  repository(owner: $owner, name: $repo) {
    issues(first: $first, states: OPEN, labels: $labels, orderBy: {field: CREATED_AT, direction: $direction}) {
      nodes {"""
    + ISSUE_FIELDS
    + """
      }
    }
  }
}
"""
)

CLOSED_ISSUES_QUERY = """
query($owner: String!, $repo: String!, $first: Int!) {
  repository(owner: $owner, name: $repo) {
    issues(first: $first, states: CLOSED, orderBy: {field: UPDATED_AT, direction: DESC}) {
      nodes {
        number
        title
        closedAt
        labels(first: 20) {
          nodes { name }
        }
      }
    }
  }
}
"""

ASSIGNABLE_ACTORS_QUERY = """
query($owner: String!, $repo: String!) {
  repository(owner: $owner, name: $repo) {
    id
    suggestedActors(capabilities: [CAN_BE_ASSIGNED], first: 100) {
      nodes { login __typename ... on Bot { id } ... on User { id } }
    }
  }
}
"""

LABEL_QUERY = """
query($owner: String!, $repo: String!, $name: String!) {
  repository(owner: $owner, name: $repo) {
    label(name: $name) { id }
  }
}
"""

ADD_ASSIGNEES_MUTATION = """
mutation($issueId: ID!, $assigneeIds: [ID!]!) {
  addAssigneesToAssignable(input: {assignableId: $issueId, assigneeIds: $assigneeIds}) {
    assignable {
      ... on Issue {
        assignees(first: 10) { nodes { login } }
      }
    }
  }
}
"""

CREATE_ISSUE_MUTATION = """
mutation($repositoryId: ID!, $title: String!, $body: String!, $assigneeIds: [ID!]) {
  createIssue(input: {repositoryId: $repositoryId, title: $title, body: $body, assigneeIds: $assigneeIds}) {
    issue {
      id
      number
      url
      title
      assignees(first: 10) { nodes { login id } }
    }
  }
}
"""

ADD_LABELS_MUTATION = """
mutation($issueId: ID!, $labelIds: [ID!]!) {
  addLabelsToLabelable(input: {labelableId: $issueId, labelIds: $labelIds}) {
    labelable {
      ... on Issue {
        labels(first: 10) { nodes { name } }
      }
    }
  }
}
"""


class AgentNotFoundError(RuntimeError):
    """The coding agent is not among the repository's assignable actors."""


class LabelNotFoundError(RuntimeError):
    """A label the run depends on does not exist in the repository."""


def get_github_client() -> Github:
    """Get authenticated GitHub client."""
    token = os.environ.get("GITHUB_TOKEN")
    if not token:
        raise ValueError("GITHUB_TOKEN environment variable is required")
    return Github(auth=Auth.Token(token))


class GitHubClient:
    """Issue tracker queries and mutations for one repository.

    GraphQL calls go through the PyGithub requester; the sub-issues and
    release endpoints use REST.
    """

    def __init__(self, repo: str, gh: Optional[Github] = None):
        self.repo = repo
        self.owner, self.name = repo.split("/", 1)
        self._gh = gh or get_github_client()
        self._repository = None

    @property
    def repository(self):
        if self._repository is None:
            self._repository = self._gh.get_repo(self.repo)
        return self._repository

    def _graphql(self, query: str, **variables) -> dict:
        # Mutations address nodes by id and declare no $owner/$repo
        if "$owner" in query:
            variables = {"owner": self.owner, "repo": self.name, **variables}
        _, data = self._gh.requester.graphql_query(query, variables)
        if data.get("errors"):
            raise GithubException(400, data, None)
        return data.get("data") or {}

    # === Queries ===

    def list_open_issues(
        self, label: Optional[str] = None, first: int = 100, direction: str = "ASC"
    ) -> list[Issue]:
        """List open issues, oldest first by default, optionally for one label."""
        data = self._graphql(
            OPEN_ISSUES_QUERY,
            first=first,
            labels=[label] if label else None,
            direction=direction,
        )
        nodes = data["repository"]["issues"]["nodes"]
        return [Issue.from_graphql(node) for node in nodes]

    def list_closed_issues(self, first: int) -> list[Issue]:
        """List recently closed issues, most recently updated first."""
        data = self._graphql(CLOSED_ISSUES_QUERY, first=first)
        nodes = data["repository"]["issues"]["nodes"]
        return [Issue.from_graphql(node) for node in nodes]

    def get_agent_identity(self, login: str = "copilot-swe-agent") -> AgentIdentity:
        """Resolve the repository id and the coding agent's bot id."""
        data = self._graphql(ASSIGNABLE_ACTORS_QUERY)
        repository = data["repository"]
        actors = repository["suggestedActors"]["nodes"]
        bot = next(
            (a for a in actors if a.get("login") == login and a.get("__typename") == "Bot"),
            None,
        )
        if bot is None:
            raise AgentNotFoundError(
                f"Copilot bot agent '{login}' not found in suggestedActors"
            )
        return AgentIdentity(
            repository_id=repository["id"], agent_id=bot["id"], agent_login=bot["login"]
        )

    def get_label_id(self, name: str) -> str:
        """Look up a label's node id by name."""
        data = self._graphql(LABEL_QUERY, name=name)
        label = data["repository"].get("label")
        if not label:
            raise LabelNotFoundError(f"Label '{name}' not found in repository {self.repo}.")
        return label["id"]

    def get_sub_issue_count(self, number: int) -> int:
        """Count sub-issues through REST; failures count as zero."""
        try:
            _, data = self._gh.requester.requestJsonAndCheck(
                "GET",
                f"/repos/{self.repo}/issues/{number}/sub_issues",
                parameters={"per_page": 100},
                headers={"X-GitHub-Api-Version": GITHUB_API_VERSION},
            )
        except GithubException as e:
            _log(f"Sub-issue lookup failed for #{number}: {e.status}", "debug", "github")
            return 0
        except requests.exceptions.RequestException as e:
            _log(f"Sub-issue lookup failed for #{number}: {e}", "warning", "github")
            return 0
        return len(data or [])

    async def fetch_sub_issue_counts_async(self, numbers: Iterable[int]) -> dict[int, int]:
        """Fetch sub-issue counts concurrently."""
        numbers = list(numbers)
        counts = await asyncio.gather(
            *(asyncio.to_thread(self.get_sub_issue_count, number) for number in numbers)
        )
        return dict(zip(numbers, counts))

    def fetch_sub_issue_counts(self, numbers: Iterable[int]) -> dict[int, int]:
        """Fetch sub-issue counts concurrently (sync wrapper)."""
        numbers = list(numbers)
        if not numbers:
            return {}
        return asyncio.run(self.fetch_sub_issue_counts_async(numbers))

    def enrich_with_sub_issues(self, issues: list[Issue]) -> list[Issue]:
        """Replace the GraphQL sub-issue counts with REST counts."""
        counts = self.fetch_sub_issue_counts(issue.number for issue in issues)
        return [
            issue.model_copy(update={"sub_issue_count": counts.get(issue.number, 0)})
            for issue in issues
        ]

    # === Mutations ===

    def add_assignees(self, issue_id: str, assignee_ids: list[str]) -> None:
        """Assign actors to an issue."""
        self._graphql(ADD_ASSIGNEES_MUTATION, issueId=issue_id, assigneeIds=assignee_ids)

    def create_issue(
        self, repository_id: str, title: str, body: str, assignee_ids: list[str]
    ) -> Issue:
        """Create an issue, assigned from the start."""
        data = self._graphql(
            CREATE_ISSUE_MUTATION,
            repositoryId=repository_id,
            title=title,
            body=body,
            assigneeIds=assignee_ids,
        )
        return Issue.from_graphql(data["createIssue"]["issue"])

    def add_labels(self, issue_id: str, label_ids: list[str]) -> None:
        """Attach labels to an issue."""
        self._graphql(ADD_LABELS_MUTATION, issueId=issue_id, labelIds=label_ids)

    # === Releases ===

    def list_releases(self) -> list[Release]:
        """List the repository's releases."""
        return [
            Release(id=r.id, tag_name=r.tag_name, published_at=r.published_at)
            for r in self.repository.get_releases()
        ]

    def delete_release(self, release_id: int) -> None:
        self.repository.get_release(release_id).delete_release()

    def delete_tag(self, tag_name: str) -> None:
        self.repository.get_git_ref(f"tags/{tag_name}").delete()
