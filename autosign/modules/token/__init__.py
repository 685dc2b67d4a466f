"""
Token Module - Black Box Interface

Purpose: Issue and verify signed, time-limited autosign tokens
Interface: Token, sign(), verify_and_decode(), extract_expiry(), check(), validate()
Hidden: JWT envelope layout, signing algorithm, subject matching rules

The codec is stateless; replay protection lives in the journal module.
"""

from .token import (
    Token,
    check,
    extract_expiry,
    sign,
    subject_matches,
    validate,
    verify_and_decode,
)

__all__ = [
    "Token",
    "check",
    "extract_expiry",
    "sign",
    "subject_matches",
    "validate",
    "verify_and_decode",
]
