"""CLI entry point using Typer."""

import shutil
import subprocess
from pathlib import Path
from typing import Optional

import typer

from autoassign.config import DEFAULT_SKIP_LABELS, resolve_settings, setup_langsmith
from autoassign.graph.workflow import run_assignment
from autoassign.integrations.actions import (
    annotate_error,
    get_event_name,
    get_repository,
    set_outputs,
)
from autoassign.integrations.github import GitHubClient
from autoassign.nodes.select import PRIORITY_LABELS
from autoassign.releases import plan_release_cleanup, release_age_days

app = typer.Typer(
    name="autoassign",
    help="Assign GitHub Copilot to open issues by label priority",
)


def _resolve_repo(repo: Optional[str]) -> str:
    resolved = repo or get_repository()
    if not resolved:
        typer.echo("Error: repository is required (argument or GITHUB_REPOSITORY).")
        raise typer.Exit(1)
    return resolved


@app.command()
def assign(
    repo: Optional[str] = typer.Argument(None, help="Repository in owner/repo format"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="auto or refactor"),
    label_override: Optional[str] = typer.Option(
        None, "--label", "-l", help="Only consider issues with this label"
    ),
    required_label: Optional[str] = typer.Option(
        None, "--required-label", help="Only assign issues carrying this label"
    ),
    force: Optional[bool] = typer.Option(
        None, "--force/--no-force", help="Assign even if Copilot already has work"
    ),
    dry_run: Optional[bool] = typer.Option(
        None, "--dry-run/--no-dry-run", "-n", help="Report decisions without changing GitHub"
    ),
    allow_parent_issues: Optional[bool] = typer.Option(
        None, "--allow-parent-issues/--no-allow-parent-issues", help="Allow issues with sub-issues"
    ),
    skip_labels: Optional[str] = typer.Option(
        None, "--skip-labels", help="Comma-separated labels that exclude an issue"
    ),
    refactor_threshold: Optional[int] = typer.Option(
        None, "--refactor-threshold", help="Closed issues checked for a refactor issue"
    ),
    create_refactor_issue: Optional[bool] = typer.Option(
        None,
        "--create-refactor-issue/--no-create-refactor-issue",
        help="Create a refactor issue when nothing else is available",
    ),
    refactor_issue_template: Optional[str] = typer.Option(
        None, "--template", help="Workspace-relative path of the refactor issue body"
    ),
    wait_seconds: Optional[int] = typer.Option(
        None, "--wait-seconds", help="Grace period after issue events"
    ),
    refactor_cooldown_days: Optional[int] = typer.Option(
        None, "--cooldown-days", help="Days between auto-created refactor issues (0 disables)"
    ),
    event_name: Optional[str] = typer.Option(
        None, "--event", help="Triggering event (defaults to GITHUB_EVENT_NAME)"
    ),
) -> None:
    """Assign the next issue to Copilot, creating a refactor issue if needed."""
    setup_langsmith()
    repo = _resolve_repo(repo)
    event = event_name or get_event_name()

    try:
        settings = resolve_settings(
            repo,
            event_name=event,
            overrides={
                "mode": mode,
                "label-override": label_override,
                "required-label": required_label,
                "force": force,
                "dry-run": dry_run,
                "allow-parent-issues": allow_parent_issues,
                "skip-labels": skip_labels,
                "refactor-threshold": refactor_threshold,
                "create-refactor-issue": create_refactor_issue,
                "refactor-issue-template": refactor_issue_template,
                "wait-seconds": wait_seconds,
                "refactor-cooldown-days": refactor_cooldown_days,
            },
        )

        typer.echo(
            f"Running autoassign (mode: {settings.mode}, force: {settings.force}, "
            f"dryRun: {settings.dry_run})"
        )
        result = run_assignment(settings)
    except Exception as e:
        annotate_error(f"Action failed: {e}")
        raise typer.Exit(1) from e

    typer.echo(f"\nEffective mode: {result.effective_mode}")
    typer.echo(f"Action: {result.action}")
    if result.reason:
        typer.echo(f"Reason: {result.reason}")
    if result.assigned_issue:
        issue = result.assigned_issue
        typer.echo(f"Issue: #{issue.number} {issue.title}")
        typer.echo(f"URL: {issue.url}")
    if settings.dry_run:
        typer.echo("\n[DRY RUN] No actions taken on GitHub.")

    set_outputs(result.outputs())
    typer.echo("✓ Action completed successfully")


@app.command("cleanup-releases")
def cleanup_releases(
    repo: Optional[str] = typer.Argument(None, help="Repository in owner/repo format"),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", envvar="DRY_RUN", help="List deletions without deleting"
    ),
) -> None:
    """Delete old releases (and their tags) under the retention policy."""
    repo = _resolve_repo(repo)
    typer.echo(f"Repository: {repo}")
    typer.echo(f"Dry run: {dry_run}\n")

    try:
        client = GitHubClient(repo)
        typer.echo("Fetching releases...")
        releases = client.list_releases()
    except Exception as e:
        annotate_error(f"Error during cleanup: {e}")
        raise typer.Exit(1) from e

    typer.echo(f"Found {len(releases)} releases")
    if not releases:
        typer.echo("No releases found. Nothing to cleanup.")
        return

    plan = plan_release_cleanup(releases)

    def _describe(items) -> None:
        for release in sorted(items, key=lambda r: r.tag_name, reverse=True):
            age = release_age_days(release)
            age_str = f"{age} days ago" if age is not None else "unknown date"
            typer.echo(f"  - {release.tag_name} (published {age_str})")

    typer.echo(f"\nReleases to keep ({len(plan.keep)}):")
    _describe(plan.keep)

    if not plan.delete:
        typer.echo("\nNo releases to delete.")
        return

    typer.echo(f"\nReleases to delete ({len(plan.delete)}):")
    _describe(plan.delete)

    if dry_run:
        typer.echo("\nDry run mode - no releases will be deleted.")
        typer.echo(f"Would delete {len(plan.delete)} release(s)")
        return

    typer.echo("\nDeleting releases...")
    deleted = 0
    for release in plan.delete:
        try:
            client.delete_release(release.id)
        except Exception as e:
            typer.echo(f"  ✗ Failed to delete release {release.tag_name}: {e}", err=True)
            continue
        deleted += 1
        typer.echo(f"  ✓ Deleted release: {release.tag_name}")
        try:
            client.delete_tag(release.tag_name)
            typer.echo(f"  ✓ Deleted tag: {release.tag_name}")
        except Exception as e:
            typer.echo(f"  ⚠ Failed to delete tag {release.tag_name}: {e}", err=True)

    typer.echo(f"\n✓ Cleanup complete. Deleted {deleted} release(s).")


# gh label colors and descriptions, keyed by the labels the run routes on or skips
LABEL_STYLES = {
    "bug": ("D73A4A", "Something isn't working"),
    "documentation": ("0075CA", "Improvements or additions to documentation"),
    "refactor": ("FBCA04", "Code improvement without behavior change"),
    "enhancement": ("A2EEEF", "New feature or request"),
    "no-ai": ("B60205", "Never assign to Copilot"),
    "refining": ("C5DEF5", "Still being refined, not ready for Copilot"),
}


def repository_labels() -> list[str]:
    """Labels a repository needs: the priority order, then the skip labels."""
    return list(PRIORITY_LABELS) + [
        label for label in DEFAULT_SKIP_LABELS if label not in PRIORITY_LABELS
    ]


def create_label(name: str) -> str:
    """Create one label with gh; returns "created", "exists" or the gh error."""
    color, description = LABEL_STYLES.get(name, ("EDEDED", ""))
    result = subprocess.run(
        ["gh", "label", "create", name, "--color", color, "--description", description],
        capture_output=True,
        text=True,
    )
    if result.returncode == 0:
        return "created"
    if "already exists" in result.stderr:
        return "exists"
    return result.stderr.strip() or f"gh exited with {result.returncode}"


def _init_workflow_file() -> None:
    workflow_file = Path(".github/workflows/autoassign.yml")
    if workflow_file.exists() and not typer.confirm(
        f"{workflow_file} already exists. Overwrite?", default=False
    ):
        typer.echo("Skipping workflow file.")
        return
    workflow_file.parent.mkdir(parents=True, exist_ok=True)
    _write_workflow_file(workflow_file)


def _init_labels() -> int:
    """Create the repository labels and return how many failed."""
    typer.echo("\nCreating GitHub labels...")
    failed = 0
    for name in repository_labels():
        status = create_label(name)
        if status == "created":
            typer.echo(f"  Created: {name}")
        elif status == "exists":
            typer.echo(f"  Exists:  {name}")
        else:
            failed += 1
            typer.echo(f"  Failed:  {name} - {status}")
    return failed


@app.command()
def init(
    skip_labels: bool = typer.Option(
        False, "--skip-labels", help="Skip creating GitHub labels"
    ),
    skip_workflow: bool = typer.Option(
        False, "--skip-workflow", help="Skip creating workflow file"
    ),
) -> None:
    """Set up autoassign in the current repository.

    Writes .github/workflows/autoassign.yml and creates the priority and
    skip labels with the GitHub CLI.
    """
    if not Path(".git").exists():
        typer.echo("Error: Not a git repository. Run this command from the repo root.")
        raise typer.Exit(1)

    if not skip_labels and not shutil.which("gh"):
        typer.echo("Warning: GitHub CLI (gh) not found. Labels will not be created.")
        typer.echo("Install: https://cli.github.com/")
        skip_labels = True

    if not skip_workflow:
        _init_workflow_file()

    failed = 0 if skip_labels else _init_labels()
    if failed:
        typer.echo(f"\n{failed} label(s) could not be created; create them before the first run.")

    typer.echo("\nNext steps:")
    typer.echo("1. Enable Copilot coding agent for the repository.")
    typer.echo("2. Add a COPILOT_ASSIGN_TOKEN secret (a token allowed to assign Copilot).")
    if not skip_workflow:
        typer.echo("3. Commit and push .github/workflows/autoassign.yml")


WORKFLOW_TEMPLATE = """# autoassign - assign GitHub Copilot to open issues
# Generated by: autoassign init

name: autoassign

on:
  issues:
    types: [closed]
  schedule:
    - cron: "0 * * * *"
  workflow_dispatch:
    inputs:
      mode:
        description: "auto or refactor"
        default: "auto"
      force:
        description: "Assign even if Copilot already has work"
        default: "false"

# Runs are not coordinated by autoassign itself; serialize them here
concurrency:
  group: autoassign
  cancel-in-progress: false

jobs:
  assign:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: autoassign/autoassign@v1
        with:
          github-token: ${{ secrets.COPILOT_ASSIGN_TOKEN }}
          mode: ${{ github.event.inputs.mode || 'auto' }}
          force: ${{ github.event.inputs.force || 'false' }}
"""


def _write_workflow_file(workflow_file: Path) -> None:
    """Write the autoassign workflow template to the specified file."""
    workflow_file.write_text(WORKFLOW_TEMPLATE)
    typer.echo(f"Created: {workflow_file}")


if __name__ == "__main__":
    app()
