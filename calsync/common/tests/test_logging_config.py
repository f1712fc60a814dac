"""
Unit tests for logging configuration.

Tests the text renderer, service context extraction and sync/account
context handling.
"""

import logging
from unittest.mock import MagicMock

import pytest
import structlog

from calsync.common.logging_config import (
    EnhancedTextRenderer,
    account_id_var,
    add_service_context,
    add_sync_context,
    get_logger,
    setup_service_logging,
    sync_id_context,
    sync_id_var,
)


class TestLoggingConfiguration:
    """Test the logging configuration features."""

    def setup_method(self):
        sync_id_var.set("uninitialized")
        account_id_var.set("none")
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    def teardown_method(self):
        sync_id_var.set("uninitialized")
        account_id_var.set("none")
        logging.getLogger().handlers.clear()
        structlog.reset_defaults()

    def test_add_sync_context(self):
        sync_id_var.set("sync-abc")
        account_id_var.set("acct-1")

        result = add_sync_context(MagicMock(), "info", {"event": "test message"})

        assert result["sync_id"] == "sync-abc"
        assert result["account_id"] == "acct-1"

    def test_add_sync_context_no_context(self):
        result = add_sync_context(MagicMock(), "info", {"event": "test message"})

        assert "sync_id" not in result
        assert "account_id" not in result

    def test_explicit_account_id_wins(self):
        account_id_var.set("acct-1")

        result = add_sync_context(
            MagicMock(), "info", {"event": "x", "account_id": "acct-2"}
        )

        assert result["account_id"] == "acct-2"

    def test_add_service_context(self):
        event_dict = {"logger": "calsync.sync.core.sync_coordinator", "event": "test"}
        assert add_service_context(MagicMock(), "info", event_dict)["service"] == "sync"

        event_dict = {"logger": "third_party.module", "event": "test"}
        assert "service" not in add_service_context(MagicMock(), "info", event_dict)

    def test_enhanced_text_renderer(self):
        renderer = EnhancedTextRenderer("calendar-sync")
        event_dict = {
            "timestamp": "2024-01-15T10:30:00Z",
            "level": "error",
            "logger": "calsync.sync.core.sync_coordinator",
            "event": "Error syncing calendar account",
            "sync_id": "sync-12345678",
            "account_id": "acct-1",
            "provider": "google",
        }

        line = renderer(MagicMock(), "error", event_dict)

        assert "[calendar-sync]" in line
        assert "[ERROR]" in line
        assert "[5678]" in line
        assert "sync.core.sync_coordinator" in line
        assert "Account: acct-1" in line
        assert "provider=google" in line

    def test_sync_id_context(self):
        sync_id_var.set("caller")

        with sync_id_context("sync-1") as sync_id:
            assert sync_id == "sync-1"
            assert sync_id_var.get() == "sync-1"

        assert sync_id_var.get() == "caller"

    def test_sync_id_context_generates_id(self):
        with sync_id_context() as sync_id:
            assert sync_id not in ("", "uninitialized")
            assert sync_id_var.get() == sync_id

        assert sync_id_var.get() == "uninitialized"

    def test_sync_id_context_resets_on_error(self):
        with pytest.raises(RuntimeError):
            with sync_id_context("sync-2"):
                raise RuntimeError("boom")

        assert sync_id_var.get() == "uninitialized"

    def test_setup_service_logging_text(self, capsys):
        setup_service_logging("calendar-sync", log_level="DEBUG", log_format="text")

        get_logger("calsync.sync.test").info("hello", account_id="acct-9")

        output = capsys.readouterr().out
        assert "hello" in output
        assert "Account: acct-9" in output
