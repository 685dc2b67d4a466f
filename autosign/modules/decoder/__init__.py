"""
Decoder Module - Black Box Interface

Purpose: Extract certname and challenge password from a signing request
Interface: decode_csr()
Hidden: X509 parsing, PEM/DER detection

Feeds the validator chain; validators never parse requests themselves.
"""

from .decoder import DecodedRequest, decode_csr

__all__ = ["DecodedRequest", "decode_csr"]
