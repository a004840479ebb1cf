"""Tests for logging and node tracing helpers."""

import pytest

from autoassign.observability import _log, log_node_event, redact, traced_node


class TestLog:
    """Tests for _log level filtering."""

    def test_info_shown_by_default(self, capsys, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        _log("hello", "info", "select_issue")
        assert capsys.readouterr().err == "ℹ️ [select_issue] hello\n"

    def test_debug_hidden_by_default(self, capsys, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        _log("details", "debug", "select_issue")
        assert capsys.readouterr().err == ""

    def test_debug_level(self, capsys, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        _log("details", "debug", "select_issue")
        assert "🔍 [select_issue] details" in capsys.readouterr().err

    def test_error_level_hides_warnings(self, capsys, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        _log("careful", "warning")
        _log("broken", "error")
        err = capsys.readouterr().err
        assert "careful" not in err
        assert "broken" in err


class TestRedaction:
    """Tests for sensitive value redaction."""

    @pytest.mark.parametrize("key", ["token", "GITHUB_TOKEN", "api_key", "password", "Authorization", "auth"])
    def test_sensitive_keys(self, key):
        assert redact(key, "s3cr3t") == "[REDACTED]"

    @pytest.mark.parametrize("key", ["login", "author", "number"])
    def test_plain_keys(self, key):
        assert redact(key, "value") == "value"

    def test_log_node_event_redacts(self, capsys, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        log_node_event("resolve_agent", "Found bot", login="copilot-swe-agent", token="ghp_x")
        err = capsys.readouterr().err
        assert "login=copilot-swe-agent" in err
        assert "token=[REDACTED]" in err
        assert "ghp_x" not in err


class TestTracedNode:
    """Tests for traced_node."""

    def test_returns_result_and_preserves_name(self):
        @traced_node("demo")
        def demo_node(state, config=None):
            return {"seen": state["value"]}

        assert demo_node({"value": 3}) == {"seen": 3}
        assert demo_node.__name__ == "demo_node"

    def test_logs_and_reraises(self, capsys, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        @traced_node("demo")
        def failing_node(state):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            failing_node({})
        assert "[demo] Failed after" in capsys.readouterr().err
