"""
Validator chain.

Runs the configured validators in order and approves a request as soon as
one of them succeeds. Validators are constructed for every decision, so a
validator that cannot be configured only removes itself from that decision.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ...config.provider import ConfigProvider
from ...errors import ConfigurationError
from .interfaces import RawRequest, ValidatorConstructor
from .registry import resolve_validation_order


@dataclass
class ValidationResult:
    """Outcome of one validator for one decision."""
    name: str
    ok: bool
    error: Optional[str] = None


class ValidatorChain:
    """First-success-wins evaluation of an ordered list of validators."""

    def __init__(
        self,
        config_provider: ConfigProvider,
        validation_order: Optional[List[str]] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None,
        registry: Optional[Dict[str, ValidatorConstructor]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize chain.

        Args:
            config_provider: Configuration handed to every validator
            validation_order: Validator names; defaults to general.validation_order
            overrides: Per-validator settings overrides, keyed by validator name
            registry: Name to constructor table (defaults to VALIDATORS)
            logger: Optional logger replacing the module logger
        """
        self.log = logger or logging.getLogger(__name__)
        self.config_provider = config_provider
        self.overrides = overrides or {}

        if validation_order is None:
            validation_order = config_provider.get_general_config().validation_order
        self.validators = resolve_validation_order(validation_order, registry)
        self.results: List[ValidationResult] = []

        self.log.debug(f"Validation order: {[v.NAME for v in self.validators]}")

    def decide(self, challenge_password: str, certname: str, raw_csr: RawRequest) -> bool:
        """
        Decide whether a request should be signed.

        Args:
            challenge_password: Credential presented with the request
            certname: Certname being requested
            raw_csr: The request as received by the policy executable

        Returns:
            True if any validator approves, False otherwise

        Raises:
            TypeError: If challenge_password or certname is not a string
            ConfigurationError: If no configured validator could be built
        """
        if not isinstance(challenge_password, str):
            raise TypeError("challenge_password must be a string")
        if not isinstance(certname, str):
            raise TypeError("certname must be a string")

        self.results = []
        config_errors: List[ConfigurationError] = []

        for constructor in self.validators:
            name = constructor.NAME
            try:
                validator = constructor(self.config_provider, overrides=self.overrides.get(name))
            except ConfigurationError as e:
                self.log.warning(f"Skipping {name} validator: {e}")
                config_errors.append(e)
                self.results.append(ValidationResult(name=name, ok=False, error=str(e)))
                continue

            try:
                ok = validator.validate(challenge_password, certname, raw_csr)
            except Exception as e:  # noqa: BLE001
                self.log.error(f"Error validating '{certname}' with {name}: {e}")
                self.results.append(ValidationResult(name=name, ok=False, error=str(e)))
                continue

            self.results.append(ValidationResult(name=name, ok=ok))
            if ok:
                self.log.info(f"Successfully validated '{certname}' using {name}")
                return True

        if self.validators and len(config_errors) == len(self.validators):
            if len(config_errors) == 1:
                raise config_errors[0]
            raise ConfigurationError(
                "No usable validators: " + "; ".join(str(e) for e in config_errors)
            ) from config_errors[-1]

        self.log.info(f"Unable to validate '{certname}' using any validator")
        return False
