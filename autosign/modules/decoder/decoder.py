"""
Certificate signing request decoding.

Extracts the fields validators care about from an X509 certificate signing
request so individual validators don't have to re-implement that logic.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from cryptography import x509
from cryptography.x509.oid import AttributeOID, NameOID

logger = logging.getLogger(__name__)


@dataclass
class DecodedRequest:
    """Fields extracted from a certificate signing request."""
    common_name: Optional[str]
    challenge_password: Optional[str]


def _load(csr: bytes) -> x509.CertificateSigningRequest:
    if b"-----BEGIN" in csr:
        return x509.load_pem_x509_csr(csr)
    return x509.load_der_x509_csr(csr)


def decode_csr(csr: Union[bytes, str]) -> Optional[DecodedRequest]:
    """
    Extract the common name and challengePassword from a request.

    Args:
        csr: PEM or DER encoded certificate signing request

    Returns:
        DecodedRequest, or None if the request cannot be decoded
    """
    logger.debug("Decoding CSR")
    if isinstance(csr, str):
        csr = csr.encode("utf-8")

    try:
        request = _load(csr)
    except (ValueError, TypeError) as e:
        logger.error(f"Unable to decode CSR: {e}")
        return None

    common_name = None
    names = request.subject.get_attributes_for_oid(NameOID.COMMON_NAME)
    if names:
        common_name = str(names[0].value)

    challenge_password = None
    try:
        attribute = request.attributes.get_attribute_for_oid(AttributeOID.CHALLENGE_PASSWORD)
    except x509.AttributeNotFound:
        logger.debug("CSR has no challengePassword attribute")
    else:
        value = attribute.value
        challenge_password = value.decode("utf-8", "replace") if isinstance(value, bytes) else str(value)

    logger.info(f"Decoded CSR for CN: {common_name}")
    return DecodedRequest(common_name=common_name, challenge_password=challenge_password)
