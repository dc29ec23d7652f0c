"""
kube-health-monitor Configuration

YAML-based configuration loaded once at process start.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Union

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_CONFIG_PATH = os.environ.get("KUBE_HEALTH_CONFIG", "./config.yaml")

DEFAULT_LOG_TAIL_LINES = 50
DEFAULT_CRASH_LOOP_THRESHOLD = 3
DEFAULT_SEND_DELAY_SECONDS = 0.1
DEFAULT_SMTP_PORT = 25
DEFAULT_SMTP_TIMEOUT = 30
DEFAULT_OPS_MAILBOX = "infra-alerts@example.com"

# Annotation contract, not configurable
OWNER_ANNOTATION = "service_owner"
OWNER_DL_ANNOTATION = "owner_dl"


@dataclass(frozen=True)
class SMTPConfig:
    """
    SMTP server connection parameters.

    Attributes:
        host: Mail relay host
        port: Mail relay port
        sender: Envelope and header From address
        no_auth: Whitelisted relay, send without STARTTLS/LOGIN
        username: Login user when auth is enabled
        password: Login password (falls back to SMTP_PASSWORD)
        use_tls: Issue STARTTLS before login
        timeout_seconds: Socket timeout
    """
    host: str = "localhost"
    port: int = DEFAULT_SMTP_PORT
    sender: str = ""
    no_auth: bool = True
    username: str = ""
    password: str = ""
    use_tls: bool = False
    timeout_seconds: int = DEFAULT_SMTP_TIMEOUT

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SMTPConfig":
        """Create SMTP config from the ``smtp`` section."""
        return cls(
            host=str(data.get("host") or "localhost"),
            port=_as_int(data.get("port"), DEFAULT_SMTP_PORT, "smtp.port"),
            sender=str(data.get("from") or ""),
            no_auth=_as_bool(data.get("no_auth"), True, "smtp.no_auth"),
            username=str(data.get("username") or ""),
            password=str(data.get("password") or os.environ.get("SMTP_PASSWORD", "")),
            use_tls=_as_bool(data.get("use_tls"), False, "smtp.use_tls"),
            timeout_seconds=_as_int(
                data.get("timeout_seconds"), DEFAULT_SMTP_TIMEOUT, "smtp.timeout_seconds"
            ),
        )


@dataclass(frozen=True)
class MonitorConfig:
    """
    Process-wide configuration, immutable for the run.

    Attributes:
        smtp: Mail transport settings
        excluded_namespaces: Namespaces skipped entirely (exact match)
        log_tail_lines: Log lines attached to each alert
        crash_loop_threshold: Restart count above which a container is flagged
        send_delay_seconds: Pause between alert sends
        ops_mailbox: Operations mailbox copied on every alert
        sweep_timeout_seconds: Optional deadline for the whole sweep
    """
    smtp: SMTPConfig = field(default_factory=SMTPConfig)
    excluded_namespaces: FrozenSet[str] = frozenset()
    log_tail_lines: int = DEFAULT_LOG_TAIL_LINES
    crash_loop_threshold: int = DEFAULT_CRASH_LOOP_THRESHOLD
    send_delay_seconds: float = DEFAULT_SEND_DELAY_SECONDS
    ops_mailbox: str = DEFAULT_OPS_MAILBOX
    sweep_timeout_seconds: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonitorConfig":
        """Create config from a parsed YAML document."""
        smtp_data = data.get("smtp") or {}
        if not isinstance(smtp_data, dict):
            raise ConfigError("'smtp' must be a mapping")

        excluded = data.get("excluded_namespaces") or []
        if isinstance(excluded, str) or not isinstance(excluded, (list, tuple, set)):
            raise ConfigError("'excluded_namespaces' must be a list of names")

        # Zero or missing falls back to the default
        tail = _as_int(data.get("log_tail_lines"), DEFAULT_LOG_TAIL_LINES, "log_tail_lines")
        if tail <= 0:
            tail = DEFAULT_LOG_TAIL_LINES

        threshold = _as_int(
            data.get("crash_loop_threshold"), DEFAULT_CRASH_LOOP_THRESHOLD, "crash_loop_threshold"
        )
        if threshold < 0:
            raise ConfigError("'crash_loop_threshold' must not be negative")

        delay = _as_float(
            data.get("send_delay_seconds"), DEFAULT_SEND_DELAY_SECONDS, "send_delay_seconds"
        )
        if delay < 0:
            raise ConfigError("'send_delay_seconds' must not be negative")

        timeout = data.get("sweep_timeout_seconds")
        if timeout is not None:
            timeout = _as_float(timeout, None, "sweep_timeout_seconds")

        return cls(
            smtp=SMTPConfig.from_dict(smtp_data),
            excluded_namespaces=frozenset(str(ns) for ns in excluded),
            log_tail_lines=tail,
            crash_loop_threshold=threshold,
            send_delay_seconds=delay,
            ops_mailbox=str(data.get("ops_mailbox") or DEFAULT_OPS_MAILBOX),
            sweep_timeout_seconds=timeout,
        )


def load_config(config_path: Union[str, Path, None] = None) -> MonitorConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the config file (defaults to DEFAULT_CONFIG_PATH)

    Returns:
        MonitorConfig

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(config_path or DEFAULT_CONFIG_PATH)

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"failed to parse config {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config {path} must be a mapping at the top level")

    config = MonitorConfig.from_dict(data)
    logger.debug(
        f"Loaded config from {path} "
        f"(excluded={sorted(config.excluded_namespaces)}, tail={config.log_tail_lines})"
    )
    return config


def _as_bool(value: Any, default: bool, name: str) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"'{name}' must be true or false, got {value!r}")
    return value


def _as_int(value: Any, default: Optional[int], name: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{name}' must be an integer, got {value!r}")


def _as_float(value: Any, default: Optional[float], name: str) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"'{name}' must be a number, got {value!r}")
