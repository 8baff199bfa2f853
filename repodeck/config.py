"""Configuration loader."""

import configparser
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from repodeck.errors import ConfigError

DEFAULT_HISTORY_LIMIT = 50
DEFAULT_GIT_BINARY = "git"
DEFAULT_GIT_TIMEOUT = 0.0
CONFIG_SECTION = "repodeck"

logger = logging.getLogger(__name__)


class ScanPolicy(str, Enum):
    """What a scan does when one repository fails to probe."""

    ABORT = "abort"  # raise the first failure (strict batch semantics)
    ISOLATE = "isolate"  # skip the failed repository and report it


def default_max_workers() -> int:
    return os.cpu_count() or 1


@dataclass
class DebugConfig:
    """Debug configuration."""

    enabled: bool = False

    @classmethod
    def from_env(cls) -> "DebugConfig":
        """Load debug config from environment variable."""
        debug_env = os.environ.get("REPODECK_DEBUG", "").lower()
        enabled = debug_env in ("1", "true", "yes")
        return cls(enabled=enabled)


@dataclass
class Config:
    """Repodeck configuration."""

    max_workers: int = field(default_factory=default_max_workers)
    scan_policy: ScanPolicy = ScanPolicy.ABORT
    history_limit: int = DEFAULT_HISTORY_LIMIT
    git_binary: str = DEFAULT_GIT_BINARY
    git_timeout: float = DEFAULT_GIT_TIMEOUT
    config_path: Optional[Path] = None
    debug: DebugConfig = field(default_factory=DebugConfig.from_env)


def default_config_path() -> Path:
    """
    Resolve the config file location.

    Order: $REPODECK_CONFIG, $XDG_CONFIG_HOME/repodeck/config,
    ~/.config/repodeck/config.
    """
    explicit = os.environ.get("REPODECK_CONFIG")
    if explicit:
        return Path(explicit)
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "repodeck" / "config"


def _parse_config_file(config_path: Path) -> dict[str, str]:
    """
    Parse INI-style config file.

    Keys from [DEFAULT] and [repodeck] are merged, [repodeck] winning.

    Returns:
        Dict of config values keyed by upper-case option name
    """
    if not config_path.exists():
        return {}

    parser = configparser.ConfigParser()
    try:
        parser.read(config_path)
    except configparser.Error as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    config = {}
    for key, value in parser.defaults().items():
        config[key.upper()] = value
    if parser.has_section(CONFIG_SECTION):
        for key, value in parser[CONFIG_SECTION].items():
            config[key.upper()] = value

    return config


def _parse_int(name: str, raw: Optional[str], default: int, minimum: int) -> int:
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value, using default: {default}")
        return default
    if value < minimum:
        logger.warning(f"{name} must be >={minimum}, using default: {default}")
        return default
    return value


def _parse_float(name: str, raw: Optional[str], default: float) -> float:
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value, using default: {default}")
        return default
    if value < 0:
        logger.warning(f"{name} must be >=0, using default: {default}")
        return default
    return value


def parse_scan_policy(raw: str) -> ScanPolicy:
    """
    Parse a scan policy name.

    Raises:
        ConfigError: If the name is not a known policy
    """
    try:
        return ScanPolicy(raw.strip().lower())
    except ValueError as e:
        valid = ", ".join(p.value for p in ScanPolicy)
        raise ConfigError(f"Invalid scan policy: {raw}. Must be one of: {valid}") from e


def get_config(config_path: Optional[Path] = None) -> Config:
    """
    Get current configuration.

    Resolves from:
    1. Defaults
    2. Config file (see default_config_path)
    3. Environment variables (REPODECK_*)

    Args:
        config_path: Explicit config file (overrides the default location)

    Returns:
        Config object

    Raises:
        ConfigError: If the config file or scan policy is invalid
    """
    path = config_path or default_config_path()
    file_config = _parse_config_file(path)

    def lookup(env_name: str, file_key: str) -> Optional[str]:
        return os.environ.get(env_name) or file_config.get(file_key)

    max_workers = _parse_int(
        "REPODECK_MAX_WORKERS",
        lookup("REPODECK_MAX_WORKERS", "MAX_WORKERS"),
        default_max_workers(),
        minimum=1,
    )
    history_limit = _parse_int(
        "REPODECK_HISTORY_LIMIT",
        lookup("REPODECK_HISTORY_LIMIT", "HISTORY_LIMIT"),
        DEFAULT_HISTORY_LIMIT,
        minimum=1,
    )
    git_timeout = _parse_float(
        "REPODECK_GIT_TIMEOUT",
        lookup("REPODECK_GIT_TIMEOUT", "GIT_TIMEOUT"),
        DEFAULT_GIT_TIMEOUT,
    )

    policy_str = lookup("REPODECK_SCAN_POLICY", "SCAN_POLICY")
    scan_policy = parse_scan_policy(policy_str) if policy_str else ScanPolicy.ABORT

    git_binary = lookup("REPODECK_GIT", "GIT_BINARY") or DEFAULT_GIT_BINARY

    debug = DebugConfig.from_env()
    debug_file = file_config.get("DEBUG")
    if not debug.enabled and debug_file:
        debug.enabled = debug_file.lower() in ("1", "true", "yes")

    logger.debug(f"Config file: {path} (exists: {path.exists()})")
    logger.debug(f"Max workers: {max_workers}")
    logger.debug(f"Scan policy: {scan_policy.value}")
    logger.debug(f"History limit: {history_limit}")
    logger.debug(f"Git binary: {git_binary}")
    logger.debug(f"Git timeout: {git_timeout}")

    return Config(
        max_workers=max_workers,
        scan_policy=scan_policy,
        history_limit=history_limit,
        git_binary=git_binary,
        git_timeout=git_timeout,
        config_path=path,
        debug=debug,
    )
