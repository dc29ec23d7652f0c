"""
Tests for kube_health_monitor/config.py - YAML configuration
"""

import pytest
from unittest.mock import patch

from kube_health_monitor.config import (
    DEFAULT_LOG_TAIL_LINES, DEFAULT_OPS_MAILBOX, MonitorConfig, SMTPConfig, load_config,
)
from kube_health_monitor.errors import ConfigError


FULL_CONFIG = """
smtp:
  host: smtp.example.com
  port: 587
  from: monitor@example.com
  no_auth: false
  username: alerts
  use_tls: true
excluded_namespaces:
  - kube-system
  - monitoring
log_tail_lines: 100
crash_loop_threshold: 5
send_delay_seconds: 0.5
ops_mailbox: ops@example.com
sweep_timeout_seconds: 300
"""


@pytest.fixture
def write_config(tmp_path):
    def _write(text):
        path = tmp_path / "config.yaml"
        path.write_text(text)
        return path
    return _write


class TestLoadConfig:
    """Test load_config()."""

    def test_full_config(self, write_config):
        config = load_config(write_config(FULL_CONFIG))

        assert config.smtp.host == "smtp.example.com"
        assert config.smtp.port == 587
        assert config.smtp.sender == "monitor@example.com"
        assert config.smtp.no_auth is False
        assert config.smtp.use_tls is True
        assert config.smtp.address == "smtp.example.com:587"
        assert config.excluded_namespaces == frozenset({"kube-system", "monitoring"})
        assert config.log_tail_lines == 100
        assert config.crash_loop_threshold == 5
        assert config.send_delay_seconds == 0.5
        assert config.ops_mailbox == "ops@example.com"
        assert config.sweep_timeout_seconds == 300.0

    def test_defaults(self, write_config):
        config = load_config(write_config("smtp:\n  host: relay\n"))

        assert config.log_tail_lines == DEFAULT_LOG_TAIL_LINES
        assert config.crash_loop_threshold == 3
        assert config.send_delay_seconds == 0.1
        assert config.excluded_namespaces == frozenset()
        assert config.ops_mailbox == DEFAULT_OPS_MAILBOX
        assert config.sweep_timeout_seconds is None

    def test_zero_tail_lines_uses_default(self, write_config):
        config = load_config(write_config("log_tail_lines: 0\n"))
        assert config.log_tail_lines == 50

    def test_empty_file(self, write_config):
        with patch.dict("os.environ", {}, clear=True):
            config = load_config(write_config(""))
            assert config == MonitorConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="failed to read"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, write_config):
        with pytest.raises(ConfigError, match="failed to parse"):
            load_config(write_config("smtp: [unclosed\n"))

    def test_top_level_list_rejected(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config("- a\n- b\n"))

    def test_bad_types(self, write_config):
        with pytest.raises(ConfigError, match="log_tail_lines"):
            load_config(write_config("log_tail_lines: lots\n"))
        with pytest.raises(ConfigError, match="excluded_namespaces"):
            load_config(write_config("excluded_namespaces: kube-system\n"))
        with pytest.raises(ConfigError, match="smtp.port"):
            load_config(write_config("smtp:\n  port: true\n"))

    def test_negative_values_rejected(self, write_config):
        with pytest.raises(ConfigError):
            load_config(write_config("send_delay_seconds: -1\n"))
        with pytest.raises(ConfigError):
            load_config(write_config("crash_loop_threshold: -2\n"))


class TestSMTPConfig:
    """Test SMTP section parsing."""

    def test_password_from_env(self):
        with patch.dict("os.environ", {"SMTP_PASSWORD": "from-env"}):
            smtp = SMTPConfig.from_dict({"host": "relay"})
        assert smtp.password == "from-env"

    def test_explicit_password_wins(self):
        with patch.dict("os.environ", {"SMTP_PASSWORD": "from-env"}):
            smtp = SMTPConfig.from_dict({"password": "inline"})
        assert smtp.password == "inline"

    def test_no_auth_default(self):
        assert SMTPConfig.from_dict({}).no_auth is True

    def test_quoted_booleans_rejected(self):
        with pytest.raises(ConfigError, match="smtp.no_auth"):
            SMTPConfig.from_dict({"no_auth": "false"})
        with pytest.raises(ConfigError, match="smtp.use_tls"):
            SMTPConfig.from_dict({"use_tls": "yes"})

    def test_config_is_immutable(self):
        config = MonitorConfig()
        with pytest.raises(AttributeError):
            config.log_tail_lines = 10
