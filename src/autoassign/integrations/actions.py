"""GitHub Actions runtime helpers: event context, step outputs, annotations."""

import os
import sys
import uuid
from typing import Mapping, Optional


def get_event_name(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Name of the event that triggered the workflow (e.g. "issues", "schedule")."""
    environ = os.environ if environ is None else environ
    return environ.get("GITHUB_EVENT_NAME") or None


def get_repository(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Repository in owner/repo format, when running inside Actions."""
    environ = os.environ if environ is None else environ
    return environ.get("GITHUB_REPOSITORY") or None


def set_outputs(outputs: Mapping[str, str], environ: Optional[Mapping[str, str]] = None) -> None:
    """Write step outputs to $GITHUB_OUTPUT, or echo them when not in Actions."""
    environ = os.environ if environ is None else environ
    output_file = environ.get("GITHUB_OUTPUT")
    if not output_file:
        for name, value in outputs.items():
            print(f"{name}={value}")
        return

    with open(output_file, "a", encoding="utf-8") as f:
        for name, value in outputs.items():
            value = str(value)
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                f.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                f.write(f"{name}={value}\n")


def annotate_error(message: str) -> None:
    """Emit an error annotation shown on the workflow run summary."""
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    print(f"::error::{escaped}", file=sys.stderr, flush=True)
