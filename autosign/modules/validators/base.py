"""
Base class for validation strategies.

Validators take the challenge password and certname from a certificate
signing request and decide whether the request should be signed. They also
receive the raw request in case the extracted fields are not enough.

Subclasses must set NAME and implement perform_check(). NAME selects the
configuration section the validator reads and is the name used in
validation_order.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from ...config.provider import ConfigProvider, FileConfigProvider, merge_layers
from ...errors import ConfigurationError, ValidatorResultError
from .interfaces import RawRequest


class ValidatorSettings(BaseModel):
    """Settings shared by all validators."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class ValidatorBase(ABC):
    """
    Parent class for validation backends.

    Settings are resolved once at construction from three layers, most
    specific first: explicit overrides, the validator's section of the
    configuration file, then default_settings().
    """

    NAME = "base"
    settings_model: Type[ValidatorSettings] = ValidatorSettings

    def __init__(
        self,
        config_provider: Optional[ConfigProvider] = None,
        overrides: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize validator.

        Args:
            config_provider: Source of the validator's configuration section
            overrides: Settings taking precedence over the configuration file
            logger: Optional logger replacing the validator module's logger

        Raises:
            ConfigurationError: If the resolved settings are unusable
        """
        self.log = logger or logging.getLogger(type(self).__module__)
        self.config_provider = config_provider or FileConfigProvider()
        self.overrides = overrides or {}
        self.log.debug(f"Starting autosign validator: {self.name}")
        self.settings = self._resolve_settings()
        self.setup()

    @property
    def name(self) -> str:
        return self.NAME

    def default_settings(self) -> Dict[str, Any]:
        """Lowest-priority settings layer. Override to set defaults."""
        return {}

    def validate_settings(self, settings: ValidatorSettings) -> None:
        """Check resolved settings. Raise ConfigurationError if unusable."""

    def setup(self) -> None:
        """Hook for additional setup once settings are resolved."""

    @abstractmethod
    def perform_check(self, challenge_password: str, certname: str, raw_csr: RawRequest) -> bool:
        """
        Validate a request.

        Args:
            challenge_password: challengePassword attribute of the request;
                a serialized token for token-based validators
            certname: Certname being requested. This is untrusted input.
            raw_csr: The request as received by the policy executable

        Returns:
            True if the certificate should be signed, False otherwise
        """

    def validate(self, challenge_password: str, certname: str, raw_csr: RawRequest) -> bool:
        """
        Check inputs, run perform_check() and log the outcome.

        Raises:
            TypeError: If challenge_password or certname is not a string
            ValidatorResultError: If perform_check() returns a non-boolean
        """
        self.log.debug(f"Attempting to validate using {self.name}")
        if not isinstance(challenge_password, str):
            raise TypeError("challenge_password must be a string")
        if not isinstance(certname, str):
            raise TypeError("certname must be a string")
        if raw_csr is not None and not isinstance(raw_csr, (str, bytes)):
            raise TypeError("raw_csr must be str or bytes")

        result = self.perform_check(challenge_password, certname, raw_csr)
        if result is True:
            self.log.info(f"Validated '{certname}' using '{self.name}' validator")
            return True
        if result is False:
            self.log.debug(f"Unable to validate '{certname}' using '{self.name}' validator")
            return False

        self.log.error(f"{self.name} returned a non-boolean result: {result!r}")
        raise ValidatorResultError(f"{self.name} returned a non-boolean result")

    def _resolve_settings(self) -> ValidatorSettings:
        merged = merge_layers(
            self.default_settings(),
            self.config_provider.get_section(self.name),
            self.overrides,
        )
        self.log.debug(f"Resolved settings keys for {self.name}: {sorted(merged)}")

        try:
            settings = self.settings_model(**merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings for {self.name} validator: {e}") from e

        self.validate_settings(settings)
        return settings
