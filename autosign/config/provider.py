"""Configuration provider following Black Box Design principles."""
import copy
import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

import yaml

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_VALIDATION_ORDER = ["jwt_token", "multiplexer", "password_list"]

DEFAULT_SETTINGS: Dict[str, Any] = {
    "general": {
        "loglevel": "INFO",
        "logfile": None,
        "journalfile": "/var/autosign/autosign.journal",
        "token_validity": 7200,
        "validation_order": list(DEFAULT_VALIDATION_ORDER),
    },
    "jwt_token": {
        "validity": 7200,
    },
}


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two dictionaries.

    Nested dictionaries are combined; any other value in override replaces
    the value in base. Neither argument is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def merge_layers(*layers: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge settings layers, lowest priority first."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged = deep_merge(merged, layer)
    return merged


@dataclass
class GeneralConfig:
    """General section of the autosign configuration."""
    loglevel: str
    logfile: Optional[str]
    journalfile: str
    token_validity: int
    validation_order: List[str]


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_general_config(self) -> GeneralConfig:
        """Get general configuration."""
        ...

    def get_section(self, name: str) -> Dict[str, Any]:
        """Get a named configuration section (empty if absent)."""
        ...


def _candidate_paths() -> List[Optional[str]]:
    """Return candidate config file paths, most specific first."""
    return [
        os.getenv("AUTOSIGN_CONFIG"),
        "/etc/autosign.conf",
        "/usr/local/etc/autosign.conf",
        os.path.join(os.path.expanduser("~"), ".autosign.conf"),
    ]


def overrides_from_env() -> Dict[str, Any]:
    """Build an overrides layer from AUTOSIGN_* environment variables."""
    overrides: Dict[str, Any] = {}
    if os.getenv("AUTOSIGN_LOGLEVEL"):
        overrides.setdefault("general", {})["loglevel"] = os.environ["AUTOSIGN_LOGLEVEL"]
    if os.getenv("AUTOSIGN_JWT_SECRET"):
        overrides.setdefault("jwt_token", {})["secret"] = os.environ["AUTOSIGN_JWT_SECRET"]
    if os.getenv("AUTOSIGN_JOURNALFILE"):
        overrides.setdefault("jwt_token", {})["journalfile"] = os.environ["AUTOSIGN_JOURNALFILE"]
    return overrides


class FileConfigProvider:
    """YAML file based configuration provider."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize provider.

        Args:
            config_file: Explicit config file; disables path discovery
            overrides: Highest-priority settings layer
        """
        if overrides is not None and not isinstance(overrides, dict):
            raise ConfigurationError("overrides must be a dictionary")

        self.config_file_paths = [config_file] if config_file else list(filter(None, _candidate_paths()))
        self.overrides = overrides or {}
        self._file_settings: Optional[Dict[str, Any]] = None

    @property
    def location(self) -> Optional[str]:
        """Path of the config file in use, if any."""
        for path in self.config_file_paths:
            if os.path.isfile(path):
                return path
        return None

    def _load_file(self) -> Dict[str, Any]:
        if self._file_settings is not None:
            return self._file_settings

        path = self.location
        if path is None:
            logger.debug(f"No configuration file found in {self.config_file_paths}")
            self._file_settings = {}
            return self._file_settings

        logger.debug(f"Reading configuration file {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Unable to read configuration file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {path} does not contain a mapping")

        self._file_settings = data
        return self._file_settings

    @property
    def settings(self) -> Dict[str, Any]:
        """Merged settings: defaults, then config file, then overrides."""
        return merge_layers(DEFAULT_SETTINGS, self._load_file(), self.overrides)

    def get_section(self, name: str) -> Dict[str, Any]:
        """Get a named configuration section (empty if absent)."""
        section = self.settings.get(name)
        if section is None:
            logger.debug(f"No configuration section named '{name}'")
            return {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Configuration section '{name}' is not a mapping")
        return section

    def get_general_config(self) -> GeneralConfig:
        """Get general configuration."""
        general = self.get_section("general")
        order = general.get("validation_order")
        if isinstance(order, str):
            order = [order]

        loglevel = str(general.get("loglevel") or "INFO").upper()
        if not isinstance(logging.getLevelName(loglevel), int):
            raise ConfigurationError(f"Unknown loglevel '{loglevel}' in general configuration")

        journalfile = general.get("journalfile")
        if not journalfile:
            raise ConfigurationError("general configuration requires a 'journalfile' setting")

        try:
            return GeneralConfig(
                loglevel=loglevel,
                logfile=general.get("logfile"),
                journalfile=str(journalfile),
                token_validity=int(general.get("token_validity", 7200)),
                validation_order=[str(name) for name in (order or [])],
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid general configuration: {e}") from e


def generate_default_config(path: str) -> str:
    """
    Write a starter configuration file with a random token secret.

    Args:
        path: Destination file; must not exist

    Returns:
        The path written

    Raises:
        ConfigurationError: If the file already exists
    """
    target = Path(path)
    if target.exists():
        raise ConfigurationError(f"File {path} already exists, aborting")

    config = {
        "general": {
            "loglevel": "WARNING",
            "logfile": "/var/log/autosign.log",
            "validation_order": list(DEFAULT_VALIDATION_ORDER),
        },
        "jwt_token": {
            "secret": secrets.token_urlsafe(64),
            "validity": 7200,
            "journalfile": DEFAULT_SETTINGS["general"]["journalfile"],
        },
    }

    target.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Wrote default configuration to {path}")
    return str(target)
