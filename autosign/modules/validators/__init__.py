"""
Validators Module - Black Box Interface

Purpose: Decide whether a certificate signing request should be signed
Interface: ValidatorFactory.build(), ValidatorChain.decide(), VALIDATORS
Hidden: Settings resolution, token and journal handling, external processes

New validators subclass ValidatorBase and are added to VALIDATORS.
"""

from .base import ValidatorBase, ValidatorSettings
from .chain import ValidationResult, ValidatorChain
from .factory import ValidatorFactory
from .jwt_token import JWTTokenValidator
from .multiplexer import MultiplexerValidator
from .password_list import PasswordListValidator
from .registry import VALIDATORS, resolve_validation_order

__all__ = [
    "VALIDATORS",
    "JWTTokenValidator",
    "MultiplexerValidator",
    "PasswordListValidator",
    "ValidationResult",
    "ValidatorBase",
    "ValidatorChain",
    "ValidatorFactory",
    "ValidatorSettings",
    "resolve_validation_order",
]
