"""
Error taxonomy for the autosign decision engine.

Only ConfigurationError is expected to reach callers of the validator chain.
The other families are raised and handled inside the module that owns them
and degrade to a failed validation.
"""


class AutosignError(Exception):
    """Base class for all autosign errors."""


# Credential codec


class CredentialError(AutosignError):
    """A signed credential could not be verified or parsed."""


class ExpiredSignature(CredentialError):
    """The credential's exp claim lies in the past."""


class InvalidSignature(CredentialError):
    """Signature mismatch or an undecodable envelope."""


class MalformedPayload(CredentialError):
    """The envelope verified but its data claim is unusable."""


# Anti-replay journal


class ReplayError(AutosignError):
    """A credential identifier cannot be recorded in the journal."""


class DuplicateCredentialID(ReplayError):
    """The identifier has already been consumed."""


class InvalidCredentialID(ReplayError):
    """The identifier is not a v4 UUID."""


# Configuration


class ConfigurationError(AutosignError):
    """A validator cannot be built from its resolved settings."""


class MissingRequiredSecret(ConfigurationError):
    """No shared secret is configured for token validation."""


class InvalidStrategyValue(ConfigurationError):
    """Multiplexer strategy is neither 'any' nor 'all'."""


class ExecutableNotFound(ConfigurationError):
    """An external policy executable is missing or not executable."""


# External policy executables


class ExternalPolicyError(AutosignError):
    """An external policy executable did not approve the request."""


class NonZeroExit(ExternalPolicyError):
    """The executable ran and exited with a non-zero status."""

    def __init__(self, executable: str, returncode: int):
        super().__init__(f"{executable} exited with status {returncode}")
        self.executable = executable
        self.returncode = returncode


class ExecutionFailure(ExternalPolicyError):
    """The executable could not be started or did not finish in time."""


class ValidatorResultError(AutosignError):
    """A validator returned something other than a boolean."""
