"""
Password list validator.

Approves a request if its challenge password is in a configured list. Not a
very secure or flexible scheme, but many existing autosign policy scripts
implement it.

    password_list:
      password:
        - hunter2
        - opensesame
"""

import secrets
from typing import Any, List

from pydantic import Field, field_validator

from .base import ValidatorBase, ValidatorSettings
from .interfaces import RawRequest


class PasswordListSettings(ValidatorSettings):
    """Settings for the password_list validator."""

    password: List[str] = Field(default_factory=list)

    @field_validator("password", mode="before")
    @classmethod
    def wrap_single_password(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, (str, int)):
            return [str(v)]
        if isinstance(v, list):
            return [str(item) for item in v]
        return v


class PasswordListValidator(ValidatorBase):
    """Validate requests against a static list of passwords."""

    NAME = "password_list"
    settings_model = PasswordListSettings

    def perform_check(self, challenge_password: str, certname: str, raw_csr: RawRequest) -> bool:
        self.log.debug("Validating against simple password list")
        candidate = challenge_password.encode("utf-8")
        matches = [
            secrets.compare_digest(candidate, password.encode("utf-8"))
            for password in self.settings.password
        ]
        return any(matches)
