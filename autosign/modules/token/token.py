"""
Signed token codec for autosign.

A token authorizes signing of one certname (or any certname matching a
regular expression) for a limited time. Tokens are JSON Web Tokens signed
with HS512 using a secret shared between the issuer and the validator.

Wire format:
    {"data": "<JSON of to_dict()>", "exp": <POSIX seconds>}
"""

import json
import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import jwt

from ...errors import CredentialError, ExpiredSignature, InvalidSignature, MalformedPayload

logger = logging.getLogger(__name__)

ALGORITHM = "HS512"
DEFAULT_VALIDITY = 7200

# "/pattern/" where pattern is non-empty and does not start with a slash
SUBJECT_REGEX = re.compile(r"^/([^/].*)/$", re.DOTALL)


@dataclass
class Token:
    """
    Autosign token.

    Attributes:
        subject: Certname, or "/regex/" matched against the requested certname
        reusable: False for one-time tokens
        valid_for: Seconds of validity from issuance
        issued_by: Free-text issuer identifier, kept for auditing
        id: v4 UUID, used as the journal key for one-time tokens
        issued_at: POSIX seconds at construction
    """

    subject: str
    reusable: bool = False
    valid_for: int = DEFAULT_VALIDITY
    issued_by: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    issued_at: int = field(default_factory=lambda: int(time.time()))

    @property
    def expires_at(self) -> int:
        return self.issued_at + self.valid_for

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation carried in the data claim."""
        return {
            "certname": self.subject,
            "requester": self.issued_by,
            "reusable": self.reusable,
            "validfor": self.valid_for,
            "uuid": self.id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], expires_at: Optional[int] = None) -> "Token":
        """
        Rebuild a token from its wire representation.

        Args:
            data: Decoded data claim
            expires_at: exp claim; issuance time is derived from it when given

        Raises:
            MalformedPayload: If required fields are missing or mistyped
        """
        try:
            subject = data["certname"] if "certname" in data else data["subject"]
            reusable = data.get("reusable", False)
            valid_for = data["validfor"]
            token_id = data["uuid"]
        except (KeyError, TypeError) as e:
            raise MalformedPayload(f"token data is missing field: {e}") from e

        if not isinstance(subject, str) or not isinstance(token_id, str):
            raise MalformedPayload("certname and uuid must be strings")
        if not isinstance(reusable, bool):
            raise MalformedPayload("reusable must be a boolean")
        if isinstance(valid_for, bool) or not isinstance(valid_for, int):
            raise MalformedPayload("validfor must be an integer")

        kwargs: Dict[str, Any] = {}
        if expires_at is not None:
            kwargs["issued_at"] = expires_at - valid_for

        return cls(
            subject=subject,
            reusable=reusable,
            valid_for=valid_for,
            issued_by=str(data.get("requester") or ""),
            id=token_id,
            **kwargs,
        )


def sign(token: Token, secret: str) -> str:
    """Serialize and sign a token."""
    payload = {
        "data": json.dumps(token.to_dict(), sort_keys=True),
        "exp": token.expires_at,
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def _decode_claims(signed: str, secret: str) -> Dict[str, Any]:
    """Verify signature and expiry, returning the raw claims."""
    if not isinstance(signed, str) or not signed:
        raise InvalidSignature("token is empty")
    try:
        return jwt.decode(
            signed,
            secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "data"], "verify_exp": True},
        )
    except jwt.ExpiredSignatureError as e:
        raise ExpiredSignature("token has expired") from e
    except jwt.MissingRequiredClaimError as e:
        # Claims are only checked once the signature has verified
        raise MalformedPayload(f"token is missing a claim: {e}") from e
    except jwt.InvalidTokenError as e:
        raise InvalidSignature(f"invalid token: {e}") from e


def verify_and_decode(signed: str, secret: str) -> Token:
    """
    Verify a signed token and rebuild it.

    Raises:
        ExpiredSignature: exp is in the past
        InvalidSignature: signature mismatch or undecodable envelope
        MalformedPayload: the data claim is not a token
    """
    claims = _decode_claims(signed, secret)
    try:
        data = json.loads(claims["data"])
    except (TypeError, ValueError) as e:
        raise MalformedPayload(f"data claim is not JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedPayload("data claim is not an object")
    return Token.from_dict(data, expires_at=int(claims["exp"]))


def extract_expiry(signed: str, secret: str) -> int:
    """Return the verified exp claim of a signed token."""
    return int(_decode_claims(signed, secret)["exp"])


def subject_matches(subject: str, requested_name: str) -> bool:
    """
    Check a token subject against a requested certname.

    A "/regex/" subject is searched in the certname; anything else must be
    equal to it. An uncompilable pattern never matches.
    """
    match = SUBJECT_REGEX.match(subject)
    if match is None:
        return subject == requested_name

    try:
        pattern = re.compile(match.group(1))
    except re.error as e:
        logger.warning(f"Token subject '{subject}' is not a valid regular expression: {e}")
        return False
    return pattern.search(requested_name) is not None


def check(
    requested_name: str,
    signed: str,
    secret: str,
    log: Optional[logging.Logger] = None,
) -> Optional[Token]:
    """
    Verify a signed token and match its subject against a requested certname.

    Args:
        requested_name: Certname being requested
        signed: Serialized token
        secret: Shared HS512 secret
        log: Optional logger replacing the module logger

    Returns:
        The decoded token, or None if it does not verify or match
    """
    log = log or logger
    try:
        token = verify_and_decode(signed, secret)
    except CredentialError as e:
        log.info(f"Token validation failed with: {e}")
        return None

    if not subject_matches(token.subject, requested_name):
        log.info(f"Certname '{requested_name}' does not match '{token.subject}' in token {token.id}")
        return None
    return token


def validate(requested_name: str, signed: str, secret: str) -> bool:
    """
    Fail-closed check of a signed token against a requested certname.

    Returns:
        True if the token verifies and its subject matches, False otherwise
    """
    return check(requested_name, signed, secret) is not None
