"""End-to-end tests for the assignment graph with an in-memory GitHub client."""

import pytest
from github import GithubException

from autoassign.graph.workflow import RunResult, run_assignment
from autoassign.integrations.github import AgentNotFoundError, LabelNotFoundError
from autoassign.nodes.refactor import DRY_RUN_ISSUE_URL, build_refactor_title
from autoassign.nodes.schemas import AssignedIssue

AUTO_TITLE = "refactor: codebase improvements [AUTO] - 2025-06-01T00:00:00.000Z"


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


def run(settings, client, now, sleep=None):
    return run_assignment(settings, client, now=now, sleep=sleep or SleepRecorder())


class TestAutoMode:
    """Assignment of existing issues in auto mode."""

    def test_assigns_highest_priority_issue(
        self, issue_factory, client_factory, settings_factory, now, agent
    ):
        client = client_factory(
            open_issues=[issue_factory(1, labels=("enhancement",)), issue_factory(2, labels=("bug",))]
        )
        result = run(settings_factory(), client, now)

        assert result.action == "assign_existing"
        assert result.effective_mode == "auto"
        assert result.assigned_issue.number == 2
        assert result.assigned_issue.created is False
        assert client.assigned == [("I_2", [agent.agent_id])]
        assert client.created == []

    def test_dry_run_makes_no_mutations(
        self, issue_factory, client_factory, settings_factory, now
    ):
        client = client_factory(open_issues=[issue_factory(5, labels=("bug",))])
        result = run(settings_factory(dry_run=True), client, now)

        assert result.action == "assign_existing"
        assert result.assigned_issue.number == 5
        assert result.assigned_issue.dry_run is True
        assert client.assigned == []

    def test_busy_agent_is_skipped(
        self, issue_factory, client_factory, settings_factory, now, agent
    ):
        client = client_factory(
            open_issues=[
                issue_factory(1, labels=("bug",), assignees=(agent.agent_id,)),
                issue_factory(2, labels=("bug",)),
            ]
        )
        result = run(settings_factory(), client, now)

        assert result.action == "skip"
        assert result.reason == "Copilot already has assigned issues and force=false"
        assert result.assigned_issue is None
        assert client.assigned == []

    def test_agent_matched_by_id_not_login(
        self, issue_factory, client_factory, settings_factory, now
    ):
        """Issues assigned to someone else do not count as the agent's work."""
        client = client_factory(
            open_issues=[
                issue_factory(1, labels=("bug",), assignees=("U_human",)),
                issue_factory(2, labels=("bug",)),
            ]
        )
        result = run(settings_factory(), client, now)
        assert result.action == "assign_existing"
        assert result.assigned_issue.number == 2

    def test_force_assigns_despite_workload(
        self, issue_factory, client_factory, settings_factory, now, agent
    ):
        client = client_factory(
            open_issues=[
                issue_factory(1, labels=("bug",), assignees=(agent.agent_id,)),
                issue_factory(2, labels=("documentation",)),
            ]
        )
        result = run(settings_factory(force=True), client, now)
        assert result.action == "assign_existing"
        assert result.assigned_issue.number == 2

    def test_no_work_and_creation_disabled(self, client_factory, settings_factory, now):
        client = client_factory()
        result = run(settings_factory(create_refactor_issue=False), client, now)

        assert result.action == "none"
        assert "create-refactor-issue is disabled" in result.reason
        assert result.assigned_issue is None
        assert client.created == []

    def test_falls_back_to_refactor_creation(self, client_factory, settings_factory, now, agent):
        client = client_factory()
        result = run(settings_factory(), client, now)

        assert result.action == "create_and_assign"
        assert result.effective_mode == "auto"
        assert len(client.created) == 1
        created = client.created[0]
        assert created["title"] == build_refactor_title(now)
        assert created["assignee_ids"] == [agent.agent_id]
        assert created["repository_id"] == agent.repository_id
        assert client.labeled == [("I_1000", ["LA_refactor"])]


class TestRefactorMode:
    """Refactor issue reuse, creation and cooldown."""

    def test_reuses_open_refactor_issue(
        self, issue_factory, client_factory, settings_factory, now, agent
    ):
        client = client_factory(open_issues=[issue_factory(4, labels=("refactor",))])
        result = run(settings_factory(mode="refactor"), client, now)

        assert result.action == "assign_existing"
        assert result.assigned_issue.number == 4
        assert client.assigned == [("I_4", [agent.agent_id])]
        assert client.created == []

    def test_refactor_mode_skips_when_agent_busy(
        self, issue_factory, client_factory, settings_factory, now, agent
    ):
        client = client_factory(
            open_issues=[issue_factory(1, labels=("refactor",), assignees=(agent.agent_id,))]
        )
        result = run(settings_factory(mode="refactor"), client, now)
        assert result.action == "skip"
        assert result.reason == "Copilot already has a refactor issue assigned"

    def test_cooldown_blocks_creation(
        self, issue_factory, client_factory, settings_factory, now
    ):
        client = client_factory(
            closed_issues=[
                issue_factory(8, labels=("bug",), closed_days_ago=0.5),
                issue_factory(7, labels=("refactor",), title=AUTO_TITLE, closed_days_ago=2),
            ]
        )
        result = run(settings_factory(mode="refactor"), client, now)

        assert result.action == "none"
        assert result.reason.startswith("Auto-created refactor issue #7 was closed 2 days ago")
        assert result.assigned_issue is None
        assert client.created == []
        assert client.closed_queries == [20]

    def test_creation_after_cooldown(self, issue_factory, client_factory, settings_factory, now):
        client = client_factory(
            closed_issues=[
                issue_factory(7, labels=("refactor",), title=AUTO_TITLE, closed_days_ago=10)
            ]
        )
        result = run(settings_factory(mode="refactor"), client, now)

        assert result.action == "create_and_assign"
        assert result.effective_mode == "refactor"
        assert result.assigned_issue.created is True
        assert result.assigned_issue.number == 1000

    def test_creation_disabled_in_refactor_mode(self, client_factory, settings_factory, now):
        client = client_factory()
        result = run(settings_factory(mode="refactor", create_refactor_issue=False), client, now)
        assert result.action == "none"
        assert client.created == []
        assert client.closed_queries == []

    def test_dry_run_creation(self, client_factory, settings_factory, now):
        client = client_factory()
        result = run(settings_factory(mode="refactor", dry_run=True), client, now)

        assert result.action == "create_and_assign"
        assert result.assigned_issue == AssignedIssue(
            id="dry-run-id",
            number=0,
            title=build_refactor_title(now),
            url=DRY_RUN_ISSUE_URL,
            created=True,
            dry_run=True,
        )
        assert client.created == []
        assert client.labeled == []

    def test_label_failure_is_not_fatal(self, client_factory, settings_factory, now):
        client = client_factory(label_error=GithubException(422, {"message": "nope"}, None))
        result = run(settings_factory(mode="refactor"), client, now)

        assert result.action == "create_and_assign"
        assert result.assigned_issue.number == 1000
        assert len(client.created) == 1

    def test_missing_refactor_label_is_fatal(self, client_factory, settings_factory, now):
        client = client_factory(label_id=None)
        with pytest.raises(LabelNotFoundError):
            run(settings_factory(mode="refactor"), client, now)
        assert client.created == []


class TestRefactorThreshold:
    """Threshold-driven switching on issue events."""

    def test_threshold_bypasses_cooldown(
        self, issue_factory, client_factory, settings_factory, now
    ):
        """A recent auto refactor issue outside the threshold window does not block."""
        closed = [issue_factory(n, labels=("bug",), closed_days_ago=0.1) for n in range(20, 24)]
        closed.append(issue_factory(9, labels=("refactor",), title=AUTO_TITLE, closed_days_ago=1))
        client = client_factory(
            open_issues=[issue_factory(30, labels=("bug",))], closed_issues=closed
        )
        result = run(settings_factory(event_name="issues"), client, now)

        assert result.effective_mode == "refactor"
        assert result.action == "create_and_assign"
        # Only the cadence window was read; the cooldown check was bypassed
        assert client.closed_queries == [5]
        assert client.assigned == []

    def test_recent_refactor_keeps_auto_mode(
        self, issue_factory, client_factory, settings_factory, now
    ):
        closed = [
            issue_factory(20, labels=("bug",), closed_days_ago=0.1),
            issue_factory(9, labels=("refactor",), closed_days_ago=1),
        ]
        client = client_factory(
            open_issues=[issue_factory(30, labels=("bug",))], closed_issues=closed
        )
        result = run(settings_factory(event_name="issues"), client, now)

        assert result.effective_mode == "auto"
        assert result.action == "assign_existing"
        assert result.assigned_issue.number == 30

    def test_schedule_event_never_switches(
        self, issue_factory, client_factory, settings_factory, now
    ):
        client = client_factory(open_issues=[issue_factory(30, labels=("bug",))])
        result = run(settings_factory(event_name="schedule"), client, now)
        assert result.effective_mode == "auto"
        assert client.closed_queries == []


class TestGraceWaitAndFailures:
    """Grace period and fatal errors."""

    def test_waits_on_issue_event(self, issue_factory, client_factory, settings_factory, now):
        sleep = SleepRecorder()
        client = client_factory(
            open_issues=[issue_factory(1, labels=("bug",))],
            closed_issues=[issue_factory(2, labels=("refactor",), closed_days_ago=0)],
        )
        run(settings_factory(event_name="issues", wait_seconds=30), client, now, sleep)
        assert sleep.calls == [30]

    def test_no_wait_for_other_events(self, client_factory, settings_factory, now):
        sleep = SleepRecorder()
        run(settings_factory(event_name="schedule", wait_seconds=30, dry_run=True), client_factory(), now, sleep)
        assert sleep.calls == []

    def test_no_wait_when_disabled(self, client_factory, settings_factory, now):
        sleep = SleepRecorder()
        run(settings_factory(event_name="issues", wait_seconds=0, dry_run=True), client_factory(), now, sleep)
        assert sleep.calls == []

    def test_agent_not_found(self, client_factory, settings_factory, now):
        client = client_factory(agent=None)
        with pytest.raises(AgentNotFoundError):
            run(settings_factory(), client, now)


class TestRunResult:
    """Tests for action outputs."""

    def test_outputs_with_issue(self):
        result = RunResult(
            effective_mode="refactor",
            action="assign_existing",
            reason="Assigned issue #3",
            assigned_issue=AssignedIssue(id="I_3", number=3, title="t", url="https://x/3"),
        )
        assert result.outputs() == {
            "assigned-issue-number": "3",
            "assigned-issue-url": "https://x/3",
            "assignment-mode": "refactor",
        }

    def test_outputs_without_issue(self):
        result = RunResult(effective_mode="auto", action="skip", reason="busy")
        assert result.outputs() == {
            "assigned-issue-number": "",
            "assigned-issue-url": "",
            "assignment-mode": "auto",
        }
