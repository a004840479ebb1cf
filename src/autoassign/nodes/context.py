"""Run-scoped collaborators handed to nodes through the graph config."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from langchain_core.runnables import RunnableConfig

from autoassign.config import AssignSettings
from autoassign.graph.state import AssignmentState
from autoassign.integrations.github import GitHubClient


@dataclass
class RunContext:
    """GitHub client, validated settings, and the sleep used for the grace wait."""

    client: GitHubClient
    settings: AssignSettings
    sleep: Callable[[float], None] = field(default=time.sleep)


def get_run_context(config: RunnableConfig) -> RunContext:
    return config["configurable"]["run_context"]


def get_now(state: AssignmentState) -> datetime:
    return state.get("now") or datetime.now(timezone.utc)
