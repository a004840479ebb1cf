"""Validation of user-supplied inputs (action inputs, config file, CLI)."""

import re
from typing import Any, Iterable, Optional

from autoassign.observability import _log

LABEL_PATTERN = re.compile(r"^[a-zA-Z0-9\-_ ]+$")
MAX_LABEL_LENGTH = 50
MAX_LABELS = 50
VALID_MODES = ("auto", "refactor")


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


def validate_positive_integer(
    value: Any, default: int, minimum: int = 0, maximum: Optional[int] = None
) -> int:
    """Parse an integer input and enforce ``minimum <= value <= maximum``.

    Empty values fall back to ``default``.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        value = default
    if isinstance(value, bool):
        raise ConfigError(f"Invalid integer: {value}. Must be a valid number.")
    try:
        parsed = int(str(value).strip(), 10)
    except ValueError:
        raise ConfigError(f"Invalid integer: {value}. Must be a valid number.") from None

    upper = maximum if maximum is not None else parsed
    if parsed < minimum or parsed > upper:
        raise ConfigError(
            f"Integer out of range: {parsed}. Must be between {minimum} and {maximum}."
        )
    return parsed


def validate_label_name(label: Any) -> Optional[str]:
    """Return the trimmed label, None when empty, or raise ConfigError."""
    if not label or not isinstance(label, str):
        return None
    trimmed = label.strip()
    if not trimmed:
        return None
    if len(trimmed) > MAX_LABEL_LENGTH:
        raise ConfigError(
            f"Label too long: {len(trimmed)} characters. Maximum is {MAX_LABEL_LENGTH}."
        )
    if not LABEL_PATTERN.match(trimmed):
        raise ConfigError(
            f'Label contains invalid characters: "{trimmed}". '
            "Only alphanumeric, dash, underscore, and space allowed."
        )
    return trimmed


def validate_label_array(labels: Any, max_labels: int = MAX_LABELS) -> list[str]:
    """Validate a list of labels, dropping invalid ones with a warning."""
    if isinstance(labels, str):
        labels = split_labels(labels)
    if not isinstance(labels, (list, tuple)):
        return []

    validated = []
    for label in labels:
        try:
            name = validate_label_name(label)
        except ConfigError as e:
            _log(f"Skipping invalid label: {e}", "warning", "config")
            continue
        if name:
            validated.append(name)
    validated = unique(validated)

    if len(validated) > max_labels:
        _log(
            f"Too many labels ({len(validated)}). Limiting to {max_labels}.",
            "warning",
            "config",
        )
        return validated[:max_labels]
    return validated


def split_labels(raw: str) -> list[str]:
    """Split a comma-separated label string."""
    return [label.strip() for label in raw.split(",") if label.strip()]


def validate_mode(mode: Any) -> str:
    """Return a known assignment mode or raise ConfigError."""
    if mode is None:
        return "auto"
    value = str(mode).strip().lower() or "auto"
    if value not in VALID_MODES:
        raise ConfigError(f"Unknown mode: {mode}. Expected one of {', '.join(VALID_MODES)}.")
    return value


def parse_bool(value: Any, default: bool = False) -> bool:
    """Interpret action-style boolean inputs ("true"/"false")."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ConfigError(f"Invalid boolean: {value}. Use true or false.")


def unique(labels: Iterable[str]) -> list[str]:
    """Drop duplicate labels, keeping first occurrence order."""
    seen: set[str] = set()
    result = []
    for label in labels:
        if label not in seen:
            seen.add(label)
            result.append(label)
    return result
