"""Tests for logging helpers and session stats."""

import logging

import pytest

from relay_bot.core.logging import (
    SessionStats,
    get_session_stats,
    is_ai_debug,
    log_llm_call,
    log_llm_response,
    log_timing,
    reset_session_stats,
    set_ai_debug,
)


class TestSessionStats:
    def test_increment(self):
        stats = SessionStats()
        stats.increment("gate_passes")
        stats.increment("gate_passes", 2)
        assert stats.gate_passes == 3

    def test_unknown_and_private_stats_ignored(self):
        stats = SessionStats()
        stats.increment("no_such_stat")
        stats.increment("_lock")
        stats.increment("api_calls")
        assert stats.api_calls == {}

    def test_api_calls_per_provider(self):
        stats = SessionStats()
        stats.increment_api_call("OpenAI")
        stats.increment_api_call("OpenAI")
        stats.increment_api_call("Gemini")
        assert stats.api_calls == {"OpenAI": 2, "Gemini": 1}

    def test_summary(self):
        stats = SessionStats(gate_passes=1, gate_fails=3, apologies=1)
        summary = stats.summary()
        assert summary["gate_rate"] == "25%"
        assert summary["apologies"] == 1

    def test_summary_line(self):
        stats = SessionStats(messages_received=4, local_fallbacks=2)
        line = stats.summary_line()
        assert "received=4" in line
        assert "local=2" in line
        assert "gate_rate=0%" in line

    def test_reset(self):
        get_session_stats().increment("apologies")
        reset_session_stats()
        assert get_session_stats().apologies == 0


class TestAiDebug:
    @pytest.fixture(autouse=True)
    def restore_flag(self):
        yield
        set_ai_debug(False)

    def test_silent_by_default(self, caplog: pytest.LogCaptureFixture):
        set_ai_debug(False)
        with caplog.at_level(logging.INFO, logger="relay_bot.ai_debug"):
            log_llm_call("OpenAI", "gpt", user_prompt="hello")
            log_llm_response("OpenAI", "hi")
        assert caplog.records == []

    def test_logs_when_enabled(self, caplog: pytest.LogCaptureFixture):
        set_ai_debug(True)
        assert is_ai_debug() is True
        with caplog.at_level(logging.INFO, logger="relay_bot.ai_debug"):
            log_llm_call("OpenAI", "gpt", system_prompt="be nice", user_prompt="hello")
            log_llm_response("OpenAI", None)
        assert "LLM CALL: OpenAI" in caplog.text
        assert "be nice" in caplog.text
        assert "<empty>" in caplog.text


def test_log_timing(caplog: pytest.LogCaptureFixture):
    logger = logging.getLogger("relay_bot.test")
    with caplog.at_level(logging.DEBUG, logger="relay_bot.test"):
        with log_timing(logger, "Thing"):
            pass
    assert "Thing completed in" in caplog.text
