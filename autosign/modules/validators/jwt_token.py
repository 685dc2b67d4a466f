"""
JSON Web Token validator.

This is the primary validator. The token must be signed with the shared
secret from the [jwt_token] section, must not be expired, and its subject
must match the requested certname. One-time tokens are additionally
recorded in the journal so they cannot be used again.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from ...errors import CredentialError, MissingRequiredSecret
from ..journal import Journal
from ..token import check, extract_expiry
from .base import ValidatorBase, ValidatorSettings
from .interfaces import RawRequest


class JWTTokenSettings(ValidatorSettings):
    """Settings for the jwt_token validator."""

    secret: Optional[str] = None
    journalfile: str
    validity: int = Field(default=7200, description="Default lifetime of issued tokens")


class JWTTokenValidator(ValidatorBase):
    """Validate requests using signed, time-limited tokens."""

    NAME = "jwt_token"
    settings_model = JWTTokenSettings

    def default_settings(self) -> Dict[str, Any]:
        general = self.config_provider.get_general_config()
        return {
            "journalfile": general.journalfile,
            "validity": general.token_validity,
        }

    def validate_settings(self, settings: JWTTokenSettings) -> None:
        if not settings.secret:
            self.log.error("No secret setting found in jwt_token configuration")
            raise MissingRequiredSecret("jwt_token validator requires a 'secret' setting")

    def setup(self) -> None:
        self.journal = Journal(self.settings.journalfile, logger=self.log)

    def perform_check(self, challenge_password: str, certname: str, raw_csr: RawRequest) -> bool:
        self.log.info(f"Attempting to validate with {self.name}")
        secret = self.settings.secret

        token = check(certname, challenge_password, secret, log=self.log)
        if token is None:
            return False

        self.log.debug(f"Validated token {token.id}, checking reusability")
        if token.reusable:
            return True

        try:
            valid_to = extract_expiry(challenge_password, secret)
        except CredentialError as e:
            self.log.info(f"Token {token.id} expired during validation: {e}")
            return False

        # add() is False if the token has already been used
        if self.journal.add(token.id, valid_to, token.to_dict()):
            return True

        self.log.warning(
            f"Journal cannot validate one-time token {token.id}; it may already have been used"
        )
        return False
