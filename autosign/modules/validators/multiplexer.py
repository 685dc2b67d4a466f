"""
Multiplexer validator.

Sends the request received by the autosign executable to one or more
external policy executables, so existing autosign scripts can be used next
to the native validators. Each executable is called the way a certificate
authority calls a policy executable: certname as the only argument, the raw
request on stdin, exit status 0 to approve.

Example configuration:

    multiplexer:
      strategy: all
      timeout: 10
      external_policy_executable:
        - /usr/local/bin/custom-autosigner1.sh
        - /usr/local/bin/another-autosign-script.rb
"""

import os
import subprocess
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from ...errors import (
    ExecutableNotFound,
    ExecutionFailure,
    ExternalPolicyError,
    InvalidStrategyValue,
    NonZeroExit,
)
from .base import ValidatorBase, ValidatorSettings
from .interfaces import RawRequest

STRATEGIES = ("any", "all")


class MultiplexerSettings(ValidatorSettings):
    """Settings for the multiplexer validator."""

    strategy: str = "any"
    external_policy_executable: List[str] = Field(default_factory=list)
    timeout: Optional[float] = Field(default=30, gt=0, description="Seconds to wait for each executable")

    @field_validator("external_policy_executable", mode="before")
    @classmethod
    def wrap_single_executable(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v


class MultiplexerValidator(ValidatorBase):
    """Validate requests with external policy executables."""

    NAME = "multiplexer"
    settings_model = MultiplexerSettings

    def default_settings(self) -> Dict[str, Any]:
        return {"strategy": "any"}

    def validate_settings(self, settings: MultiplexerSettings) -> None:
        if settings.strategy not in STRATEGIES:
            self.log.error("strategy setting must be set to 'any' or 'all'")
            raise InvalidStrategyValue(
                f"Unknown multiplexer strategy '{settings.strategy}', expected 'any' or 'all'"
            )

        for executable in settings.external_policy_executable:
            if not os.path.isfile(executable):
                raise ExecutableNotFound(f"External policy executable {executable} not found")
            if not os.access(executable, os.X_OK):
                raise ExecutableNotFound(f"External policy executable {executable} is not executable")

    def perform_check(self, challenge_password: str, certname: str, raw_csr: RawRequest) -> bool:
        self.log.debug("Validating using multiplexed external executables")
        executables = self.settings.external_policy_executable
        if not executables:
            self.log.debug("No external policy executables configured")
            return False

        if isinstance(raw_csr, str):
            raw_csr = raw_csr.encode("utf-8")

        results = [self._run(executable, certname, raw_csr or b"") for executable in executables]
        return self._apply_strategy(results)

    def _run(self, executable: str, certname: str, raw_csr: bytes) -> bool:
        """Run one executable and report its vote."""
        self.log.debug(f"Attempting to validate using {executable}")
        try:
            self._execute(executable, certname, raw_csr)
        except ExternalPolicyError as e:
            self.log.debug(f"{executable} did not approve '{certname}': {e}")
            return False
        self.log.debug(f"{executable} approved '{certname}'")
        return True

    def _execute(self, executable: str, certname: str, raw_csr: bytes) -> None:
        try:
            process = subprocess.run(
                [executable, certname],
                input=raw_csr,
                capture_output=True,
                timeout=self.settings.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise ExecutionFailure(f"{executable} timed out after {self.settings.timeout}s") from e
        except OSError as e:
            raise ExecutionFailure(f"{executable} could not be executed: {e}") from e

        if process.returncode != 0:
            if process.stderr:
                self.log.debug(f"stderr from {executable}: {process.stderr.decode('utf-8', 'replace').strip()}")
            raise NonZeroExit(executable, process.returncode)

    def _apply_strategy(self, results: List[bool]) -> bool:
        if self.settings.strategy == "all":
            self.log.debug("Validating using 'all' strategy")
            return all(results)
        self.log.debug("Validating using 'any' strategy")
        return any(results)
