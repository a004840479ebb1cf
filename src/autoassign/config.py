"""Configuration and LangSmith setup."""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from autoassign.validation import (
    ConfigError,
    parse_bool,
    validate_label_array,
    validate_label_name,
    validate_mode,
    validate_positive_integer,
)

# Default values
DEFAULT_MODE = "auto"
DEFAULT_SKIP_LABELS = ("no-ai", "refining")
DEFAULT_REFACTOR_THRESHOLD = 4
DEFAULT_WAIT_SECONDS = 300
DEFAULT_REFACTOR_COOLDOWN_DAYS = 7
DEFAULT_AGENT_LOGIN = "copilot-swe-agent"

# Input bounds
REFACTOR_THRESHOLD_RANGE = (1, 100)
WAIT_SECONDS_RANGE = (0, 3600)
REFACTOR_COOLDOWN_DAYS_RANGE = (0, 365)

# Config file path (relative to the repository root)
CONFIG_PATH = ".github/autoassign.yml"


@dataclass
class AssignmentConfig:
    """How open issues are picked."""

    mode: str = DEFAULT_MODE
    label_override: Optional[str] = None
    required_label: Optional[str] = None
    allow_parent_issues: bool = False
    skip_labels: list[str] = field(default_factory=lambda: list(DEFAULT_SKIP_LABELS))


@dataclass
class RefactorConfig:
    """Refactor cadence and issue creation policy."""

    threshold: int = DEFAULT_REFACTOR_THRESHOLD
    create_issue: bool = True
    template: str = ""
    cooldown_days: int = DEFAULT_REFACTOR_COOLDOWN_DAYS


@dataclass
class RunConfig:
    """Per-invocation flags."""

    force: bool = False
    dry_run: bool = False
    wait_seconds: int = DEFAULT_WAIT_SECONDS
    agent_login: str = DEFAULT_AGENT_LOGIN


@dataclass
class AutoassignConfig:
    """Main configuration class."""

    version: str = "1.0"
    assignment: AssignmentConfig = field(default_factory=AssignmentConfig)
    refactor: RefactorConfig = field(default_factory=RefactorConfig)
    run: RunConfig = field(default_factory=RunConfig)


@dataclass(frozen=True)
class AssignSettings:
    """Validated, flattened settings consumed by the assignment graph."""

    repo: str
    mode: str = DEFAULT_MODE
    label_override: Optional[str] = None
    required_label: Optional[str] = None
    force: bool = False
    dry_run: bool = False
    allow_parent_issues: bool = False
    skip_labels: tuple[str, ...] = DEFAULT_SKIP_LABELS
    refactor_threshold: int = DEFAULT_REFACTOR_THRESHOLD
    create_refactor_issue: bool = True
    refactor_issue_template: str = ""
    wait_seconds: int = DEFAULT_WAIT_SECONDS
    refactor_cooldown_days: int = DEFAULT_REFACTOR_COOLDOWN_DAYS
    event_name: Optional[str] = None
    agent_login: str = DEFAULT_AGENT_LOGIN

    @property
    def owner(self) -> str:
        return self.repo.split("/", 1)[0]

    @property
    def name(self) -> str:
        return self.repo.split("/", 1)[1]


# Config key -> (section, attribute). Action inputs and CLI options use these keys.
SETTING_KEYS = {
    "mode": ("assignment", "mode"),
    "label-override": ("assignment", "label_override"),
    "required-label": ("assignment", "required_label"),
    "allow-parent-issues": ("assignment", "allow_parent_issues"),
    "skip-labels": ("assignment", "skip_labels"),
    "refactor-threshold": ("refactor", "threshold"),
    "create-refactor-issue": ("refactor", "create_issue"),
    "refactor-issue-template": ("refactor", "template"),
    "refactor-cooldown-days": ("refactor", "cooldown_days"),
    "force": ("run", "force"),
    "dry-run": ("run", "dry_run"),
    "wait-seconds": ("run", "wait_seconds"),
    "agent-login": ("run", "agent_login"),
}


def _apply_section(target: Any, data: Optional[Mapping[str, Any]]) -> None:
    if not data:
        return
    if not isinstance(data, Mapping):
        raise ConfigError(f"Expected a mapping, got: {data!r}")
    known = {f.name for f in fields(target)}
    for key, value in data.items():
        attr = key.replace("-", "_")
        if attr in known:
            setattr(target, attr, value)


def load_config(repo_path: Optional[Path] = None) -> AutoassignConfig:
    """Load autoassign configuration from the repository config file.

    Priority (highest to lowest) is resolved later by ``resolve_settings``:
    1. Explicit overrides (CLI options)
    2. GitHub Action inputs (INPUT_* environment variables)
    3. Repo config file (.github/autoassign.yml)
    4. Package defaults

    Args:
        repo_path: Path to repository root. Defaults to current directory.

    Returns:
        AutoassignConfig instance
    """
    config = AutoassignConfig()

    if repo_path is None:
        repo_path = Path(os.environ.get("GITHUB_WORKSPACE") or Path.cwd())

    config_file = repo_path / CONFIG_PATH
    if config_file.exists():
        with open(config_file) as f:
            data = yaml.safe_load(f) or {}

        config.version = str(data.get("version", config.version))
        _apply_section(config.assignment, data.get("assignment"))
        _apply_section(config.refactor, data.get("refactor"))
        _apply_section(config.run, data.get("run"))

    return config


def read_action_inputs(environ: Optional[Mapping[str, str]] = None) -> dict[str, str]:
    """Collect GitHub Action inputs exported by the runner as INPUT_* variables.

    The runner upper-cases names and keeps dashes (INPUT_DRY-RUN); underscore
    spellings (INPUT_DRY_RUN) are accepted too. Empty inputs are ignored.
    """
    environ = os.environ if environ is None else environ
    inputs = {}
    for key in SETTING_KEYS:
        for env_name in (f"INPUT_{key.upper()}", f"INPUT_{key.upper().replace('-', '_')}"):
            value = environ.get(env_name)
            if value is not None and value.strip():
                inputs[key] = value
                break
    return inputs


def _merge(config: AutoassignConfig, values: Mapping[str, Any]) -> None:
    for key, value in values.items():
        if value is None or key not in SETTING_KEYS:
            continue
        section, attr = SETTING_KEYS[key]
        setattr(getattr(config, section), attr, value)


def resolve_settings(
    repo: str,
    *,
    event_name: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    repo_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AssignSettings:
    """Merge defaults, config file, action inputs and overrides, then validate."""
    if not repo or "/" not in repo:
        raise ConfigError(f"Repository must be in owner/repo format, got: {repo!r}")

    config = load_config(repo_path)
    _merge(config, read_action_inputs(environ))
    _merge(config, overrides or {})

    assignment, refactor, run = config.assignment, config.refactor, config.run
    return AssignSettings(
        repo=repo,
        mode=validate_mode(assignment.mode),
        label_override=validate_label_name(assignment.label_override),
        required_label=validate_label_name(assignment.required_label),
        force=parse_bool(run.force),
        dry_run=parse_bool(run.dry_run),
        allow_parent_issues=parse_bool(assignment.allow_parent_issues),
        skip_labels=tuple(validate_label_array(assignment.skip_labels)),
        refactor_threshold=validate_positive_integer(
            refactor.threshold, DEFAULT_REFACTOR_THRESHOLD, *REFACTOR_THRESHOLD_RANGE
        ),
        create_refactor_issue=parse_bool(refactor.create_issue, default=True),
        refactor_issue_template=str(refactor.template or ""),
        wait_seconds=validate_positive_integer(
            run.wait_seconds, DEFAULT_WAIT_SECONDS, *WAIT_SECONDS_RANGE
        ),
        refactor_cooldown_days=validate_positive_integer(
            refactor.cooldown_days,
            DEFAULT_REFACTOR_COOLDOWN_DAYS,
            *REFACTOR_COOLDOWN_DAYS_RANGE,
        ),
        event_name=event_name,
        agent_login=str(run.agent_login or DEFAULT_AGENT_LOGIN),
    )


def setup_langsmith() -> bool:
    """Configure LangSmith tracing if API key is available.

    Returns:
        True if LangSmith is enabled, False otherwise.
    """
    if not os.environ.get("LANGCHAIN_API_KEY"):
        os.environ["LANGCHAIN_TRACING_V2"] = "false"
        return False

    os.environ.setdefault("LANGCHAIN_TRACING_V2", "true")
    os.environ.setdefault("LANGCHAIN_PROJECT", "autoassign")
    return True
