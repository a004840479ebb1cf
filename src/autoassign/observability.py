"""Observability utilities for workflow nodes.

Provides logging, timing, and tracing for LangGraph nodes.
"""

import functools
import os
import sys
import time
from typing import Any, Callable, TypeVar

from langsmith import traceable

F = TypeVar("F", bound=Callable[..., Any])

LEVEL_ORDER = {"debug": 10, "info": 20, "start": 20, "end": 20, "success": 20, "warning": 30, "error": 40}

SENSITIVE_MARKERS = ("token", "password", "secret", "api_key", "apikey")
SENSITIVE_KEYS = ("auth", "authorization")
REDACTED = "[REDACTED]"


def _threshold() -> int:
    level = os.environ.get("LOG_LEVEL", "info").strip().lower()
    return LEVEL_ORDER.get(level, LEVEL_ORDER["info"])


def _log(message: str, level: str = "info", node: str = "node") -> None:
    """Log message to stderr for GitHub Actions visibility."""
    if LEVEL_ORDER.get(level, LEVEL_ORDER["info"]) < _threshold():
        return
    prefix = {
        "debug": "🔍",
        "info": "ℹ️",
        "success": "✅",
        "error": "❌",
        "warning": "⚠️",
        "start": "🚀",
        "end": "🏁",
    }.get(level, "")
    print(f"{prefix} [{node}] {message}", file=sys.stderr, flush=True)


def redact(key: str, value: Any) -> Any:
    """Mask values whose key names a credential."""
    lowered = key.lower()
    if lowered in SENSITIVE_KEYS or any(marker in lowered for marker in SENSITIVE_MARKERS):
        return REDACTED
    return value


def traced_node(
    name: str,
    *,
    run_type: str = "chain",
    log_input: bool = False,
    log_output: bool = True,
) -> Callable[[F], F]:
    """Decorator to add tracing and logging to a LangGraph node.

    Combines LangSmith tracing with timing and logging for observability.

    Args:
        name: Name for the trace (e.g., "check_workload", "select_issue").
        run_type: LangSmith run type ("chain", "llm", "tool").
        log_input: Whether to log input state keys.
        log_output: Whether to log output keys.

    Example:
        @traced_node("select_issue")
        def select_issue_node(state: AssignmentState, config: RunnableConfig) -> dict:
            ...
    """

    def decorator(func: F) -> F:
        traced_func = traceable(name=name, run_type=run_type)(func)

        @functools.wraps(func)
        def wrapper(state: dict, *args: Any, **kwargs: Any) -> dict:
            _log("Starting...", "debug", name)
            if log_input:
                input_keys = [k for k in state.keys() if state.get(k) is not None]
                _log(f"Input keys: {input_keys}", "debug", name)

            start_time = time.perf_counter()

            try:
                result = traced_func(state, *args, **kwargs)

                elapsed = time.perf_counter() - start_time
                elapsed_str = (
                    f"{elapsed:.2f}s" if elapsed >= 1 else f"{elapsed * 1000:.0f}ms"
                )

                if log_output and isinstance(result, dict):
                    output_keys = list(result.keys())
                    _log(f"Completed in {elapsed_str}, output: {output_keys}", "debug", name)
                else:
                    _log(f"Completed in {elapsed_str}", "debug", name)

                return result

            except Exception as e:
                elapsed = time.perf_counter() - start_time
                _log(f"Failed after {elapsed:.2f}s: {e}", "error", name)
                raise

        return wrapper  # type: ignore

    return decorator


def log_node_event(node: str, event: str, level: str = "info", **data: Any) -> None:
    """Log a custom event from within a node.

    Args:
        node: Node name.
        event: Event description.
        level: Log level (debug, info, success, error, warning).
        **data: Additional data to log. Credential-like keys are redacted.

    Example:
        log_node_event("select_issue", "issue found", number=42)
    """
    if data:
        data_str = ", ".join(f"{k}={redact(k, v)}" for k, v in data.items())
        _log(f"{event} ({data_str})", level, node)
    else:
        _log(event, level, node)
