"""
ConditionX Configuration Tests

Environment-driven configuration and the cached singleton.
"""

import pytest

from conditionx.config import AuditBackend, configure_logging, get_config, load_config, reset_config
from conditionx.core.audit_log import InMemoryAuditStorage, NullAuditStorage, get_audit_storage
from conditionx.core.evaluator import ConditionEvaluator
from conditionx.validation import ConfigValidator


class TestConfig:
    """Test configuration loading."""

    def setup_method(self):
        reset_config()

    def teardown_method(self):
        reset_config()

    def test_defaults(self, monkeypatch):
        for name in [
            "CONDITIONX_MAX_CONDITIONS",
            "CONDITIONX_CACHE_MAX_ENTRIES",
            "CONDITIONX_AUDIT_BACKEND",
            "CONDITIONX_FUZZY_THRESHOLD",
            "CONDITIONX_DEBUG",
        ]:
            monkeypatch.delenv(name, raising=False)

        config = load_config()
        assert config.limits.max_conditions == 100
        assert config.limits.max_condition_depth == 32
        assert config.limits.default_timeout_ms == 30000
        assert config.cache.max_entries == 1024
        assert config.audit_backend == AuditBackend.MEMORY
        assert config.fuzzy_threshold == 0.8
        assert not config.debug

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CONDITIONX_MAX_CONDITIONS", "5")
        monkeypatch.setenv("CONDITIONX_CACHE_MAX_ENTRIES", "2")
        monkeypatch.setenv("CONDITIONX_AUDIT_BACKEND", "none")
        monkeypatch.setenv("CONDITIONX_FUZZY_THRESHOLD", "0.95")
        monkeypatch.setenv("CONDITIONX_DEBUG", "yes")

        config = get_config()
        assert config.limits.max_conditions == 5
        assert config.cache.max_entries == 2
        assert config.audit_backend == AuditBackend.NONE
        assert config.fuzzy_threshold == 0.95
        assert config.debug

        assert ConfigValidator().limits.max_conditions == 5
        assert ConditionEvaluator().get_cache_stats().max_entries == 2
        assert ConditionEvaluator().operators.fuzzy_threshold == 0.95
        assert isinstance(get_audit_storage(), NullAuditStorage)

    def test_unknown_audit_backend_falls_back_to_memory(self, monkeypatch):
        monkeypatch.setenv("CONDITIONX_AUDIT_BACKEND", "postgres")
        assert load_config().audit_backend == AuditBackend.MEMORY
        assert isinstance(get_audit_storage(), InMemoryAuditStorage)

    def test_singleton_until_reset(self, monkeypatch):
        monkeypatch.setenv("CONDITIONX_MAX_CONDITIONS", "7")
        first = get_config()
        monkeypatch.setenv("CONDITIONX_MAX_CONDITIONS", "8")

        assert get_config() is first
        reset_config()
        assert get_config().limits.max_conditions == 8

    def test_configure_logging_accepts_unknown_level(self, monkeypatch):
        monkeypatch.setenv("CONDITIONX_LOG_LEVEL", "chatty")
        config = load_config()

        assert config.log_level == "CHATTY"
        configure_logging(config)
