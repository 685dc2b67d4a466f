"""Validator interfaces following Black Box Design principles."""
import logging
from typing import Any, Dict, Optional, Protocol, Union

from ...config.provider import ConfigProvider

RawRequest = Union[str, bytes, None]


class Validator(Protocol):
    """Protocol for validation strategies - allows swappable implementations."""

    NAME: str

    def validate(self, challenge_password: str, certname: str, raw_csr: RawRequest) -> bool:
        """
        Decide whether a request should be signed.

        Args:
            challenge_password: Credential presented with the request
            certname: Certname being requested (untrusted)
            raw_csr: The request as received by the policy executable

        Returns:
            True to approve, False otherwise
        """
        ...


class ValidatorConstructor(Protocol):
    """Protocol for registered validator constructors."""

    NAME: str

    def __call__(
        self,
        config_provider: ConfigProvider,
        overrides: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> Validator:
        ...
