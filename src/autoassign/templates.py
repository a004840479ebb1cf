"""Refactor issue body template loading."""

import os
from pathlib import Path
from typing import Optional

from autoassign.observability import _log

# Default body shipped with the package
DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "prompts" / "refactor_issue.md"


def default_refactor_issue_body() -> str:
    return DEFAULT_TEMPLATE_PATH.read_text(encoding="utf-8")


def read_refactor_issue_template(
    template_path: Optional[str], workspace: Optional[Path] = None
) -> str:
    """Read the refactor issue body from a workspace-relative path.

    Never fails: the packaged default body is returned when the path is
    empty, escapes the workspace, does not exist, or cannot be read.
    """
    if not template_path or not template_path.strip():
        _log("No custom template path provided, using default content", "info", "template")
        return default_refactor_issue_body()

    root = Path(workspace or os.environ.get("GITHUB_WORKSPACE") or Path.cwd()).resolve()
    resolved = (root / template_path).resolve()

    if not resolved.is_relative_to(root):
        _log(
            f"Template path {template_path} is outside workspace, using default content",
            "warning",
            "template",
        )
        return default_refactor_issue_body()

    if not resolved.is_file():
        _log(f"Template file not found at {resolved}, using default content", "warning", "template")
        return default_refactor_issue_body()

    try:
        content = resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        _log(f"Error reading template file: {e}, using default content", "warning", "template")
        return default_refactor_issue_body()

    _log(f"Successfully loaded template from {resolved}", "info", "template")
    return content
