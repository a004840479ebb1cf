"""Assign GitHub Copilot to open issues by label priority."""

__version__ = "0.1.0"
